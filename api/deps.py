from __future__ import annotations

from agents.alert_agent import AlertAgent
from agents.forecast_agent import ForecastAgent
from agents.import_agent import ImportAgent
from agents.reorder_agent import ReorderAgent
from agents.report_agent import ReportAgent
from db.session import get_session  # noqa: F401  re-exported for routers and test overrides
from services.billing import BillingService
from utils.config import (
    CRITICAL_STOCK_LIMIT,
    FORECAST_HORIZON_DAYS,
    FORECAST_WINDOW,
    HISTORY_WINDOW_DAYS,
    LOW_STOCK_LIMIT,
    REORDER_THRESHOLD_DAYS,
)


def get_forecast_agent():
    return ForecastAgent(window=FORECAST_WINDOW, horizon_days=FORECAST_HORIZON_DAYS)


def get_reorder_agent():
    return ReorderAgent(window_days=HISTORY_WINDOW_DAYS, threshold_days=REORDER_THRESHOLD_DAYS)


def get_alert_agent():
    return AlertAgent(
        low_stock_limit=LOW_STOCK_LIMIT,
        critical_stock_limit=CRITICAL_STOCK_LIMIT,
        stale_days=HISTORY_WINDOW_DAYS,
    )


def get_report_agent():
    return ReportAgent()


def get_import_agent():
    return ImportAgent()


def get_billing_service():
    return BillingService()
