from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import pandas as pd

from utils.calculations import average_daily_sales, days_of_stock

SUGGESTION_COLUMNS = ["product_id", "product_name", "current_stock", "average_daily_sales", "days_remaining"]


@dataclass
class ReorderRow:
    product_id: str
    product_name: str
    current_stock: float
    quantity_sold: float
    average_daily_sales: float
    days_remaining: Optional[float]
    needs_reorder: bool


class ReorderAgent:
    """Flags products whose stock will run out within the threshold at the recent sales pace."""

    def __init__(self, window_days: int = 30, threshold_days: float = 7):
        self.window_days = window_days
        self.threshold_days = threshold_days

    def evaluate(self, products_df: pd.DataFrame, sales_df: pd.DataFrame) -> List[ReorderRow]:
        """
        Args:
            products_df: columns [product_id, name, current_stock]
            sales_df: columns [product_id, quantity], already limited to the trailing window
        Returns:
            one ReorderRow per product; days_remaining is None when nothing sold
        """
        required = {"product_id", "name", "current_stock"}
        if not required.issubset(products_df.columns):
            raise ValueError(f"products_df must contain columns {required}")

        if sales_df.empty:
            sold = {}
        else:
            sold = sales_df.groupby("product_id")["quantity"].sum().to_dict()

        rows = []
        for _, p in products_df.iterrows():
            qty = float(sold.get(p["product_id"], 0.0))
            stock = float(p["current_stock"])
            avg = average_daily_sales(qty, self.window_days)
            remaining = days_of_stock(stock, avg)
            rows.append(
                ReorderRow(
                    product_id=p["product_id"],
                    product_name=p["name"],
                    current_stock=stock,
                    quantity_sold=qty,
                    average_daily_sales=avg,
                    days_remaining=remaining,
                    needs_reorder=remaining is not None and remaining < self.threshold_days,
                )
            )
        return rows

    def suggest(self, products_df: pd.DataFrame, sales_df: pd.DataFrame) -> pd.DataFrame:
        """Reorder candidates only, most urgent first."""
        candidates = [r for r in self.evaluate(products_df, sales_df) if r.needs_reorder]
        if not candidates:
            return pd.DataFrame(columns=SUGGESTION_COLUMNS)
        df = pd.DataFrame.from_records([r.__dict__ for r in candidates])
        df = df.sort_values("days_remaining", kind="stable").reset_index(drop=True)
        return df[SUGGESTION_COLUMNS]
