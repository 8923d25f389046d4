from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from agents.alert_agent import Alert, AlertAgent
from db.models import utcnow
from services.companies import get_company
from services.goals import list_goals
from services.products import list_products, products_frame
from services.sales import sales_frame
from utils.config import CRITICAL_STOCK_LIMIT, HISTORY_WINDOW_DAYS, LOW_STOCK_LIMIT

logger = logging.getLogger(__name__)


def generate_alerts(
    session: Session,
    company_id: str,
    now: Optional[datetime] = None,
    agent: Optional[AlertAgent] = None,
) -> List[Alert]:
    """Recompute every alert for the company from current data."""
    get_company(session, company_id)
    agent = agent or AlertAgent(
        low_stock_limit=LOW_STOCK_LIMIT,
        critical_stock_limit=CRITICAL_STOCK_LIMIT,
        stale_days=HISTORY_WINDOW_DAYS,
    )
    now = now or utcnow()

    products = products_frame(list_products(session, company_id))
    sales = sales_frame(session, company_id)
    goals = pd.DataFrame.from_records(
        [
            {"goal_id": g.id, "kind": g.kind, "target": g.target, "start": g.start, "end": g.end}
            for g in list_goals(session, company_id, active_at=now)
        ],
        columns=["goal_id", "kind", "target", "start", "end"],
    )

    alerts = agent.generate(products, sales, goals, now=now)
    logger.info("Generated %d alert(s) for company %s", len(alerts), company_id)
    return alerts
