from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from agents.forecast_agent import ForecastAgent, TrendResult
from agents.reorder_agent import ReorderAgent
from db.models import Forecast, utcnow
from db.session import atomic
from services.companies import get_company
from services.products import list_products, products_frame
from services.sales import sales_frame
from utils.config import (
    FORECAST_HORIZON_DAYS,
    FORECAST_WINDOW,
    HISTORY_WINDOW_DAYS,
    REORDER_THRESHOLD_DAYS,
)
from utils.preprocess import daily_totals

logger = logging.getLogger(__name__)

FORECAST_KIND = "vendas"
FORECAST_METHOD = "media_movel"


@dataclass
class ForecastOutcome:
    points: List[Dict] = field(default_factory=list)
    trend: Optional[TrendResult] = None
    reorder_suggestions: List[Dict] = field(default_factory=list)


def generate_forecast(
    session: Session,
    company_id: str,
    now: Optional[datetime] = None,
    forecast_agent: Optional[ForecastAgent] = None,
    reorder_agent: Optional[ReorderAgent] = None,
) -> ForecastOutcome:
    """Forecast the next days of revenue and list products that need restocking.

    Stored forecasts of the company are replaced (delete + insert) in a single
    transaction, so a failure keeps the previous set.
    """
    get_company(session, company_id)
    forecast_agent = forecast_agent or ForecastAgent(window=FORECAST_WINDOW, horizon_days=FORECAST_HORIZON_DAYS)
    reorder_agent = reorder_agent or ReorderAgent(window_days=HISTORY_WINDOW_DAYS, threshold_days=REORDER_THRESHOLD_DAYS)

    now = now or utcnow()
    since = now - timedelta(days=HISTORY_WINDOW_DAYS)
    sales = sales_frame(session, company_id, start=since, end=now)

    daily = daily_totals(sales[["date", "total"]])
    points_df, trend = forecast_agent.forecast(daily, today=now.date())

    with atomic(session):
        (session.query(Forecast)
                .filter(Forecast.company_id == company_id, Forecast.kind == FORECAST_KIND)
                .delete(synchronize_session=False))
        for row in points_df.itertuples(index=False):
            session.add(Forecast(
                company_id=company_id,
                forecast_date=row.date,
                estimated_value=float(row.predicted_value),
                kind=FORECAST_KIND,
                method=FORECAST_METHOD,
            ))

    products = products_frame(list_products(session, company_id))
    suggestions = reorder_agent.suggest(products, sales[["product_id", "quantity"]])

    logger.info(
        "Forecast for company %s: %d history days, slope %.2f, %d reorder suggestion(s)",
        company_id, len(daily), trend.slope, len(suggestions),
    )
    return ForecastOutcome(
        points=points_df.to_dict(orient="records"),
        trend=trend,
        reorder_suggestions=suggestions.to_dict(orient="records"),
    )


def list_forecasts(session: Session, company_id: str, today: Optional[date] = None) -> List[Forecast]:
    """Stored sales forecasts from today onwards."""
    today = today or utcnow().date()
    return (session.query(Forecast)
                   .filter(Forecast.company_id == company_id,
                           Forecast.kind == FORECAST_KIND,
                           Forecast.forecast_date >= today)
                   .order_by(Forecast.forecast_date)
                   .all())
