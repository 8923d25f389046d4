from __future__ import annotations
import os
from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

def _get_float(name: str, default: float) -> float:
	try:
		return float(os.getenv(name, default))
	except (TypeError, ValueError):
		return default

def _get_int(name: str, default: int) -> int:
	try:
		return int(float(os.getenv(name, default)))
	except (TypeError, ValueError):
		return default

def _get_bool(name: str, default: bool) -> bool:
	raw = os.getenv(name)
	if raw is None:
		return default
	return raw.strip().lower() in {"1", "true", "yes", "on"}

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///analytico.db")
DATABASE_ECHO = _get_bool("DATABASE_ECHO", False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Forecast / reorder
FORECAST_WINDOW = _get_int("FORECAST_WINDOW", 7)
FORECAST_HORIZON_DAYS = _get_int("FORECAST_HORIZON_DAYS", 7)
HISTORY_WINDOW_DAYS = _get_int("HISTORY_WINDOW_DAYS", 30)
REORDER_THRESHOLD_DAYS = _get_float("REORDER_THRESHOLD_DAYS", 7)

# Alerts
LOW_STOCK_LIMIT = _get_int("LOW_STOCK_LIMIT", 10)
CRITICAL_STOCK_LIMIT = _get_int("CRITICAL_STOCK_LIMIT", 5)

# Billing (not required for the analytics pipeline)
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_MONTHLY_PRICE_ID = os.getenv("STRIPE_MONTHLY_PRICE_ID", "price_monthly")
STRIPE_YEARLY_PRICE_ID = os.getenv("STRIPE_YEARLY_PRICE_ID", "price_yearly")
