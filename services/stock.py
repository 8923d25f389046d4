from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from db.models import StockEntry
from db.session import atomic
from services.products import get_product
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def record_stock_entry(
    session: Session,
    company_id: str,
    product_id: str,
    quantity: int,
    notes: Optional[str] = None,
) -> StockEntry:
    """Insert a stock entry and increment the product's stock in one transaction."""
    if not product_id:
        raise ValidationError("Product is required")
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero")

    with atomic(session):
        product = get_product(session, company_id, product_id, for_update=True)
        entry = StockEntry(
            company_id=company_id,
            product_id=product_id,
            quantity=quantity,
            notes=notes or None,
        )
        session.add(entry)
        product.stock_quantity = product.stock_quantity + quantity

    logger.info("Stock entry of %d for product %s (now %d)", quantity, product_id, product.stock_quantity)
    return entry


def list_stock_entries(session: Session, company_id: str, limit: int = 50) -> List[StockEntry]:
    return (session.query(StockEntry)
                   .options(joinedload(StockEntry.product))
                   .filter(StockEntry.company_id == company_id)
                   .order_by(StockEntry.entered_at.desc())
                   .limit(limit)
                   .all())
