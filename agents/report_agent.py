from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List
import pandas as pd


@dataclass
class ReportSummary:
    total_sales: float
    average_ticket: float
    total_quantity: float
    sale_count: int
    top_products: List[Dict] = field(default_factory=list)


class ReportAgent:
    """Aggregates a period's sales into the figures shown on a report."""

    def __init__(self, top_n: int = 10):
        self.top_n = max(1, int(top_n))

    def build(self, sales_df: pd.DataFrame) -> ReportSummary:
        """
        Args:
            sales_df: [product_name, quantity, total], one row per sale in the period
        Returns:
            ReportSummary; top_products ranked by revenue, each {name, quantity, total}
        """
        if sales_df.empty:
            return ReportSummary(total_sales=0.0, average_ticket=0.0, total_quantity=0.0, sale_count=0)

        required = {"product_name", "quantity", "total"}
        if not required.issubset(sales_df.columns):
            raise ValueError(f"sales_df must contain columns {required}")

        total_sales = float(sales_df["total"].sum())
        count = int(len(sales_df))

        top = (sales_df.groupby("product_name")[["quantity", "total"]].sum()
                       .sort_values("total", ascending=False)
                       .head(self.top_n)
                       .reset_index()
                       .rename(columns={"product_name": "name"}))

        return ReportSummary(
            total_sales=total_sales,
            average_ticket=total_sales / count,
            total_quantity=float(sales_df["quantity"].sum()),
            sale_count=count,
            top_products=[
                {"name": r["name"], "quantity": float(r["quantity"]), "total": float(r["total"])}
                for r in top.to_dict(orient="records")
            ],
        )
