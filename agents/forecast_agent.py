from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import numpy as np
import pandas as pd


@dataclass
class TrendResult:
    slope: float
    intercept: float
    n_points: int

    @property
    def direction(self) -> str:
        return "growth" if self.slope > 0 else "decline"


@dataclass
class ForecastResult:
    date: date
    predicted_value: float


class ForecastAgent:
    """
    Forecasting agent.

    Smooths daily sales totals with a trailing moving average, fits an
    ordinary-least-squares line over the smoothed points (using the point
    index as x) and projects the line forward one value per calendar day.
    Projections are clamped at zero.
    """

    def __init__(self, window: int = 7, horizon_days: int = 7):
        if window < 1:
            raise ValueError("window must be >= 1")
        self.window = window
        self.horizon_days = horizon_days

    def moving_average(self, daily_df: pd.DataFrame) -> pd.DataFrame:
        """
        Args:
            daily_df: columns [date, total], ascending by date
        Returns:
            DataFrame columns [date, average_value], len(daily_df) - window + 1 rows
            (empty when there are fewer than `window` inputs)
        """
        required = {"date", "total"}
        if not required.issubset(daily_df.columns):
            raise ValueError(f"daily_df must contain columns {required}")

        if len(daily_df) < self.window:
            return pd.DataFrame(columns=["date", "average_value"])

        df = daily_df.reset_index(drop=True)
        averages = df["total"].astype(float).rolling(self.window).mean()
        out = pd.DataFrame({"date": df["date"], "average_value": averages})
        return out.iloc[self.window - 1:].reset_index(drop=True)

    def linear_trend(self, ma_df: pd.DataFrame) -> TrendResult:
        n = len(ma_df)
        if n == 0:
            return TrendResult(slope=0.0, intercept=0.0, n_points=0)

        y = ma_df["average_value"].to_numpy(dtype=float)
        x = np.arange(n, dtype=float)
        sum_x, sum_y = x.sum(), y.sum()
        sum_xy, sum_x2 = (x * y).sum(), (x * x).sum()

        denominator = n * sum_x2 - sum_x * sum_x
        if denominator == 0:
            # a single point carries no slope
            return TrendResult(slope=0.0, intercept=float(sum_y / n), n_points=n)

        slope = (n * sum_xy - sum_x * sum_y) / denominator
        intercept = (sum_y - slope * sum_x) / n
        return TrendResult(slope=float(slope), intercept=float(intercept), n_points=n)

    def project(self, trend: TrendResult, last_date: date) -> pd.DataFrame:
        records = []
        for i in range(1, self.horizon_days + 1):
            value = trend.intercept + trend.slope * (trend.n_points + i)
            records.append(
                ForecastResult(
                    date=last_date + timedelta(days=i),
                    predicted_value=max(float(value), 0.0),
                ).__dict__
            )
        return pd.DataFrame.from_records(records, columns=["date", "predicted_value"])

    def forecast(self, daily_df: pd.DataFrame, today: Optional[date] = None) -> tuple[pd.DataFrame, TrendResult]:
        """
        Args:
            daily_df: columns [date, total] of per-day sales totals
            today: projections never start before the day after `today`
        Returns:
            (DataFrame [date, predicted_value] with `horizon_days` rows, TrendResult)
        """
        if not daily_df.empty and "date" in daily_df.columns:
            daily_df = daily_df.sort_values("date", kind="stable")
        ma = self.moving_average(daily_df)
        trend = self.linear_trend(ma)

        if daily_df.empty:
            anchor = today or date.today()
        else:
            anchor = pd.Timestamp(daily_df["date"].iloc[-1]).date()
            if today is not None and today > anchor:
                anchor = today
        return self.project(trend, anchor), trend
