from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

import pandas as pd

from utils.preprocess import first_present

_NAME_COLUMNS = ["produto_nome", "nome", "produto", "name"]
_SALE_PRICE_COLUMNS = ["preco", "preco_venda", "price"]
_UNIT_PRICE_COLUMNS = ["preco_unitario", "preco", "preco_venda", "price"]
_DATE_COLUMNS = ["data_venda", "data", "date"]

DEFAULT_CATEGORY = "Importado"
DEFAULT_COST_RATIO = 0.7


@dataclass
class ProductRow:
    name: str
    category: str
    cost_price: float
    sale_price: float
    quantity: int


@dataclass
class SaleRow:
    product_name: str
    quantity: int
    unit_price: Optional[float]
    sold_at: Optional[datetime]
    line: int = 0


@dataclass
class ImportResult:
    rows: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def _number(value: Any) -> Optional[float]:
    if _blank(value):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    return float(text)


class ImportAgent:
    """
    Validates spreadsheet rows for bulk import.

    Expects headers already lower-cased. Invalid rows are skipped and reported
    as "Linha N: ..." where N is the spreadsheet line (the header is line 1).
    """

    def __init__(self, default_category: str = DEFAULT_CATEGORY, cost_ratio: float = DEFAULT_COST_RATIO):
        self.default_category = default_category
        self.cost_ratio = cost_ratio

    def parse_products(self, df: pd.DataFrame) -> ImportResult:
        result = ImportResult()
        cols = list(df.columns)
        name_col = first_present(cols, _NAME_COLUMNS)
        price_col = first_present(cols, _SALE_PRICE_COLUMNS)

        for idx, row in df.iterrows():
            line = int(idx) + 2
            try:
                name = row[name_col] if name_col else None
                if _blank(name):
                    result.errors.append(f"Linha {line}: product name is required")
                    continue

                sale_price = _number(row[price_col]) if price_col else None
                if sale_price is None or sale_price <= 0:
                    result.errors.append(f"Linha {line}: sale price must be greater than zero")
                    continue

                quantity = _number(row.get("quantidade"))
                if quantity is not None and not float(quantity).is_integer():
                    result.errors.append(f"Linha {line}: quantity must be a whole number")
                    continue
                quantity = int(quantity) if quantity is not None else 0
                if quantity < 0:
                    result.errors.append(f"Linha {line}: quantity cannot be negative")
                    continue

                cost = _number(row.get("preco_custo"))
                if cost is None:
                    cost = sale_price * self.cost_ratio

                category = row.get("categoria")
                category = self.default_category if _blank(category) else str(category).strip()

                result.rows.append(ProductRow(
                    name=str(name).strip(),
                    category=category,
                    cost_price=cost,
                    sale_price=sale_price,
                    quantity=quantity,
                ))
            except (TypeError, ValueError) as e:
                result.errors.append(f"Linha {line}: could not process row - {e}")
        return result

    def parse_sales(self, df: pd.DataFrame) -> ImportResult:
        result = ImportResult()
        cols = list(df.columns)
        name_col = first_present(cols, _NAME_COLUMNS)
        price_col = first_present(cols, _UNIT_PRICE_COLUMNS)
        date_col = first_present(cols, _DATE_COLUMNS)

        for idx, row in df.iterrows():
            line = int(idx) + 2
            try:
                name = row[name_col] if name_col else None
                if _blank(name):
                    result.errors.append(f"Linha {line}: product name is required")
                    continue

                quantity = _number(row.get("quantidade"))
                if quantity is None or quantity <= 0:
                    result.errors.append(f"Linha {line}: quantity must be greater than zero")
                    continue
                if not float(quantity).is_integer():
                    result.errors.append(f"Linha {line}: quantity must be a whole number")
                    continue

                unit_price = _number(row[price_col]) if price_col else None
                if unit_price is not None and unit_price <= 0:
                    result.errors.append(f"Linha {line}: unit price must be greater than zero")
                    continue

                sold_at = None
                if date_col and not _blank(row[date_col]):
                    parsed = pd.to_datetime(row[date_col], errors="coerce", dayfirst=False)
                    if pd.isna(parsed):
                        result.errors.append(f"Linha {line}: invalid date '{row[date_col]}'")
                        continue
                    sold_at = parsed.to_pydatetime().replace(tzinfo=None)

                result.rows.append(SaleRow(
                    product_name=str(name).strip(),
                    quantity=int(quantity),
                    unit_price=unit_price,
                    sold_at=sold_at,
                    line=line,
                ))
            except (TypeError, ValueError) as e:
                result.errors.append(f"Linha {line}: could not process row - {e}")
        return result
