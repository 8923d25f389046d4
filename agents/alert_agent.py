from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd

from utils.calculations import goal_progress, percent_change

LOW_STOCK = "low_stock"
TICKET_CHANGE = "ticket_change"
GOAL_REACHED = "goal_reached"
STALE_PRODUCT = "stale_product"


@dataclass
class Alert:
    id: str
    kind: str
    title: str
    description: str
    priority: str
    created_at: datetime
    read: bool = False
    data: Dict[str, Any] = field(default_factory=dict)


class AlertAgent:
    """
    Threshold alerts, recomputed from scratch on every call.

    Four independent checks: low stock, average-ticket swing between the two
    most recent 10-sale windows, goals reached in their active period, and
    products with stock but no sale in the trailing window. Nothing is stored
    or de-duplicated between runs.
    """

    def __init__(
        self,
        low_stock_limit: int = 10,
        critical_stock_limit: int = 5,
        ticket_window: int = 10,
        ticket_sample: int = 50,
        ticket_change_pct: float = 15.0,
        ticket_high_pct: float = 25.0,
        stale_days: int = 30,
    ):
        self.low_stock_limit = low_stock_limit
        self.critical_stock_limit = critical_stock_limit
        self.ticket_window = ticket_window
        self.ticket_sample = ticket_sample
        self.ticket_change_pct = ticket_change_pct
        self.ticket_high_pct = ticket_high_pct
        self.stale_days = stale_days

    def generate(
        self,
        products_df: pd.DataFrame,
        sales_df: pd.DataFrame,
        goals_df: pd.DataFrame,
        now: Optional[datetime] = None,
    ) -> List[Alert]:
        """
        Args:
            products_df: [product_id, name, current_stock]
            sales_df: [product_id, date, total]
            goals_df: [goal_id, kind, target, start, end]
        """
        now = now or datetime.now()
        sales_df = sales_df.copy()
        if not sales_df.empty:
            sales_df["date"] = pd.to_datetime(sales_df["date"])

        alerts: List[Alert] = []
        alerts.extend(self.low_stock(products_df, now))
        alerts.extend(self.ticket_change(sales_df, now))
        alerts.extend(self.goals_reached(goals_df, sales_df, now))
        alerts.extend(self.stale_products(products_df, sales_df, now))
        return alerts

    def low_stock(self, products_df: pd.DataFrame, now: datetime) -> List[Alert]:
        alerts = []
        if products_df.empty:
            return alerts
        low = products_df[products_df["current_stock"] < self.low_stock_limit]
        for _, p in low.iterrows():
            stock = p["current_stock"]
            alerts.append(Alert(
                id=f"estoque_{p['product_id']}",
                kind=LOW_STOCK,
                title="Low stock",
                description=f"{p['name']} has only {stock:g} units in stock",
                priority="high" if stock < self.critical_stock_limit else "medium",
                created_at=now,
                data={"product_id": p["product_id"], "current_stock": float(stock)},
            ))
        return alerts

    def ticket_change(self, sales_df: pd.DataFrame, now: datetime) -> List[Alert]:
        if len(sales_df) <= self.ticket_window:
            return []
        latest = sales_df.sort_values("date", ascending=False, kind="stable").head(self.ticket_sample)
        if len(latest) <= self.ticket_window:
            return []

        recent = latest.iloc[:self.ticket_window]["total"].astype(float)
        previous = latest.iloc[self.ticket_window:2 * self.ticket_window]["total"].astype(float)
        recent_avg, previous_avg = recent.mean(), previous.mean()

        variation = percent_change(recent_avg, previous_avg)
        if variation is None or abs(variation) <= self.ticket_change_pct:
            return []

        went_up = variation > 0
        return [Alert(
            id="ticket_medio",
            kind=TICKET_CHANGE,
            title="Average ticket increased" if went_up else "Average ticket decreased",
            description=(
                f"The average ticket {'increased' if went_up else 'decreased'} "
                f"{abs(variation):.1f}% over the latest sales"
            ),
            priority="high" if abs(variation) > self.ticket_high_pct else "medium",
            created_at=now,
            data={
                "variation": float(variation),
                "recent_average_ticket": float(recent_avg),
                "previous_average_ticket": float(previous_avg),
            },
        )]

    def goals_reached(self, goals_df: pd.DataFrame, sales_df: pd.DataFrame, now: datetime) -> List[Alert]:
        alerts = []
        if goals_df.empty:
            return alerts
        for _, g in goals_df.iterrows():
            start, end = pd.Timestamp(g["start"]), pd.Timestamp(g["end"])
            if not (start <= pd.Timestamp(now) <= end):
                continue
            if sales_df.empty:
                total = 0.0
            else:
                in_window = sales_df[(sales_df["date"] >= start) & (sales_df["date"] <= end)]
                total = float(in_window["total"].sum())
            progress = goal_progress(total, float(g["target"]))
            if progress >= 100:
                alerts.append(Alert(
                    id=f"meta_{g['goal_id']}",
                    kind=GOAL_REACHED,
                    title="Goal reached!",
                    description=f"The {g['kind']} goal was reached with {progress:.1f}%",
                    priority="low",
                    created_at=now,
                    data={"goal_id": g["goal_id"], "progress": progress, "sales_total": total},
                ))
        return alerts

    def stale_products(self, products_df: pd.DataFrame, sales_df: pd.DataFrame, now: datetime) -> List[Alert]:
        alerts = []
        if products_df.empty:
            return alerts
        cutoff = pd.Timestamp(now - timedelta(days=self.stale_days))
        if sales_df.empty:
            recently_sold = set()
        else:
            recently_sold = set(sales_df.loc[sales_df["date"] > cutoff, "product_id"])

        for _, p in products_df.iterrows():
            if p["current_stock"] > 0 and p["product_id"] not in recently_sold:
                alerts.append(Alert(
                    id=f"parado_{p['product_id']}",
                    kind=STALE_PRODUCT,
                    title="Stale product",
                    description=f"{p['name']} had no sales in the last {self.stale_days} days",
                    priority="medium",
                    created_at=now,
                    data={"product_id": p["product_id"], "current_stock": float(p["current_stock"])},
                ))
        return alerts


def mark_read(alerts: List[Alert], alert_id: str) -> List[Alert]:
    return [replace(a, read=True) if a.id == alert_id else a for a in alerts]


def mark_all_read(alerts: List[Alert]) -> List[Alert]:
    return [replace(a, read=True) for a in alerts]


def dismiss(alerts: List[Alert], alert_id: str) -> List[Alert]:
    return [a for a in alerts if a.id != alert_id]


def filter_alerts(alerts: List[Alert], kind: Optional[str] = None, read: Optional[bool] = None) -> List[Alert]:
    out = alerts
    if kind:
        out = [a for a in out if a.kind == kind]
    if read is not None:
        out = [a for a in out if a.read == read]
    return out
