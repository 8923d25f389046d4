from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import pandas as pd
from sqlalchemy.orm import Session

from db.models import Product, Sale, utcnow
from db.session import atomic
from services.companies import get_company
from services.products import get_product
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

SALES_COLUMNS = ["sale_id", "product_id", "product_name", "date", "quantity", "unit_price", "total"]


@dataclass
class SaleItem:
    product_id: str
    quantity: int
    unit_price: Optional[float] = None


def _merge_items(items: Sequence[SaleItem]) -> Dict[str, SaleItem]:
    merged: Dict[str, SaleItem] = {}
    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError("Item quantity must be greater than zero")
        if item.unit_price is not None and item.unit_price <= 0:
            raise ValidationError("Price must be greater than zero")
        if item.product_id in merged:
            existing = merged[item.product_id]
            existing.quantity += item.quantity
        else:
            merged[item.product_id] = SaleItem(item.product_id, item.quantity, item.unit_price)
    return merged


def record_sale(
    session: Session,
    company_id: str,
    items: Sequence[SaleItem],
    sold_at: Optional[datetime] = None,
) -> List[Sale]:
    """Insert one sale row per product and decrement stock, all in one transaction.

    Products are locked while stock is checked so concurrent sales of the same
    product cannot overwrite each other's decrement.
    """
    if not items:
        raise ValidationError("Add at least one item to the sale")
    get_company(session, company_id)
    merged = _merge_items(items)
    sold_at = sold_at or utcnow()

    created: List[Sale] = []
    with atomic(session):
        locked: Dict[str, Product] = {}
        for product_id, item in merged.items():
            product = get_product(session, company_id, product_id, for_update=True)
            if item.quantity > product.stock_quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}: requested {item.quantity}, "
                    f"available {product.stock_quantity}"
                )
            locked[product_id] = product

        for product_id, item in merged.items():
            product = locked[product_id]
            unit_price = item.unit_price if item.unit_price is not None else product.sale_price
            if unit_price is None or unit_price <= 0:
                raise ValidationError("Price must be greater than zero")
            sale = Sale(
                company_id=company_id,
                product_id=product_id,
                quantity=item.quantity,
                sold_at=sold_at,
                unit_price=unit_price,
                total=item.quantity * unit_price,
            )
            session.add(sale)
            product.stock_quantity = product.stock_quantity - item.quantity
            created.append(sale)

    logger.info("Recorded sale of %d item(s) for company %s", len(created), company_id)
    return created


def list_sales(
    session: Session,
    company_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    product_id: Optional[str] = None,
    limit: Optional[int] = None,
    newest_first: bool = True,
) -> List[Sale]:
    query = session.query(Sale).filter(Sale.company_id == company_id)
    if start is not None:
        query = query.filter(Sale.sold_at >= start)
    if end is not None:
        query = query.filter(Sale.sold_at <= end)
    if product_id:
        query = query.filter(Sale.product_id == product_id)
    order = Sale.sold_at.desc() if newest_first else Sale.sold_at.asc()
    query = query.order_by(order)
    if limit:
        query = query.limit(limit)
    return query.all()


def sales_frame(
    session: Session,
    company_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> pd.DataFrame:
    """Company sales as a frame, oldest first."""
    rows = (session.query(Sale, Product.name)
                   .join(Product, Sale.product_id == Product.id)
                   .filter(Sale.company_id == company_id))
    if start is not None:
        rows = rows.filter(Sale.sold_at >= start)
    if end is not None:
        rows = rows.filter(Sale.sold_at <= end)

    records = [
        {
            "sale_id": sale.id,
            "product_id": sale.product_id,
            "product_name": name,
            "date": sale.sold_at,
            "quantity": sale.quantity,
            "unit_price": sale.unit_price,
            "total": sale.total,
        }
        for sale, name in rows.order_by(Sale.sold_at.asc()).all()
    ]
    df = pd.DataFrame.from_records(records, columns=SALES_COLUMNS)
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"])
    return df
