from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

_ACCEPTABLE_DATE_COLUMNS = ["date", "data_venda", "data", "sale_date"]
_ACCEPTABLE_QUANTITY_COLUMNS = ["quantity", "quantidade", "units_sold", "qty"]
_ACCEPTABLE_TOTAL_COLUMNS = ["total", "valor", "amount"]


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with lower-cased, stripped column names."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def first_present(columns: Iterable[str], candidates: Iterable[str]) -> Optional[str]:
    cols = set(columns)
    return next((c for c in candidates if c in cols), None)


def clean_sales(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize and validate raw sales rows.

    Accepts variant column names for date, quantity and total, normalizes them
    to canonical: date, quantity, total (plus product_id when present). Raises
    ValueError with a clear message instead of triggering a KeyError when
    expected columns are absent. Empty input yields an empty frame.
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=["date", "product_id", "quantity", "total"])

    original_cols = list(df.columns)
    df = normalize_columns(df)

    date_col = first_present(df.columns, _ACCEPTABLE_DATE_COLUMNS)
    if not date_col:
        raise ValueError(
            f"No date column found. Expected one of {_ACCEPTABLE_DATE_COLUMNS}. Got: {original_cols}"
        )
    total_col = first_present(df.columns, _ACCEPTABLE_TOTAL_COLUMNS)
    if not total_col:
        raise ValueError(
            f"No total column found. Expected one of {_ACCEPTABLE_TOTAL_COLUMNS}. Got: {original_cols}"
        )
    qty_col = first_present(df.columns, _ACCEPTABLE_QUANTITY_COLUMNS)

    df.rename(columns={date_col: "date", total_col: "total"}, inplace=True)
    if qty_col:
        df.rename(columns={qty_col: "quantity"}, inplace=True)
    else:
        df["quantity"] = 0
    if "produto_id" in df.columns and "product_id" not in df.columns:
        df.rename(columns={"produto_id": "product_id"}, inplace=True)

    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date"])

    df["total"] = pd.to_numeric(df["total"], errors="coerce").fillna(0.0)
    df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(0).clip(lower=0)

    return df.sort_values("date", kind="stable").reset_index(drop=True)


def daily_totals(sales_df: pd.DataFrame) -> pd.DataFrame:
    """Sum sales per calendar day, ascending. Days without sales are absent."""
    if sales_df.empty:
        return pd.DataFrame(columns=["date", "total"])
    out = sales_df.copy()
    out["date"] = pd.to_datetime(out["date"]).dt.normalize()
    return out.groupby("date", as_index=False)["total"].sum().sort_values("date").reset_index(drop=True)
