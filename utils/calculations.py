from __future__ import annotations

from typing import Optional


def average_daily_sales(quantity_sold: float, window_days: int) -> float:
    # Fixed denominator: days without history still count.
    if window_days <= 0:
        return 0.0
    return quantity_sold / window_days


def days_of_stock(current_stock: float, avg_daily_sales: float) -> Optional[float]:
    """Days until stock runs out at the current pace; None when nothing sells."""
    if avg_daily_sales <= 0:
        return None
    return current_stock / avg_daily_sales


def goal_progress(sales_total: float, target: float) -> float:
    """Raw percentage of a goal reached. Not clamped."""
    if target <= 0:
        return 0.0
    return sales_total / target * 100


def display_progress(raw_progress: float) -> float:
    return min(max(raw_progress, 0.0), 100.0)


def margin_percent(cost_price: float, sale_price: float) -> float:
    if cost_price == 0 or sale_price == 0:
        return 0.0
    return (sale_price - cost_price) / sale_price * 100


def percent_change(current: float, previous: float) -> Optional[float]:
    if previous == 0:
        return None
    return (current - previous) / previous * 100
