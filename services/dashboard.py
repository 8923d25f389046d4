from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import pandas as pd
from sqlalchemy.orm import Session

from db.models import utcnow
from services.companies import get_company
from services.goals import list_goal_progress
from services.products import list_products, products_frame
from services.sales import sales_frame
from utils.config import LOW_STOCK_LIMIT


def _product_rows(df: pd.DataFrame):
    return [
        {"product_id": r["product_id"], "name": r["name"], "margin": float(r["margin"]),
         "current_stock": int(r["current_stock"]), "total_sold": float(r["total_sold"])}
        for r in df.to_dict(orient="records")
    ]


def build_dashboard(session: Session, company_id: str, now: Optional[datetime] = None, top_n: int = 5) -> Dict[str, Any]:
    get_company(session, company_id)
    now = now or utcnow()

    sales = sales_frame(session, company_id)
    products = products_frame(list_products(session, company_id))

    total_sales = float(sales["total"].sum()) if not sales.empty else 0.0
    average_ticket = total_sales / len(sales) if len(sales) else 0.0

    if not sales.empty:
        sold = sales.groupby("product_id")["total"].sum()
    else:
        sold = pd.Series(dtype=float)
    products["margin"] = products["sale_price"] - products["cost_price"]
    products["total_sold"] = products["product_id"].map(sold).fillna(0.0)
    products["has_sales"] = products["product_id"].isin(sold.index)

    most = products.sort_values("margin", ascending=False, kind="stable").head(top_n)
    least = products.sort_values("margin", ascending=True, kind="stable").head(top_n)
    stagnant = products[(products["current_stock"] < LOW_STOCK_LIMIT) | (~products["has_sales"])].head(top_n)

    days = pd.date_range(end=pd.Timestamp(now.date()), periods=7, freq="D")
    if not sales.empty:
        per_day = sales.assign(day=sales["date"].dt.normalize()).groupby("day")["total"].sum()
    else:
        per_day = pd.Series(dtype=float)
    trend = [{"date": d.date(), "total": float(per_day.get(d, 0.0))} for d in days]

    goals = [
        {
            "goal_id": gp.goal.id,
            "kind": gp.goal.kind,
            "target": gp.goal.target,
            "progress": gp.progress,
            "display_progress": gp.display_progress,
        }
        for gp in list_goal_progress(session, company_id)
    ]

    return {
        "total_sales": total_sales,
        "average_ticket": average_ticket,
        "most_profitable": _product_rows(most),
        "least_profitable": _product_rows(least),
        "stagnant_products": _product_rows(stagnant),
        "sales_trend": trend,
        "goals": goals,
    }
