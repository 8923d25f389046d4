from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

from db.models import Product
from db.session import atomic
from services.companies import get_company
from utils.calculations import margin_percent
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Geral"
_EDITABLE = ("name", "category", "cost_price", "sale_price", "stock_quantity")


def _validate(name, sale_price, cost_price, stock_quantity) -> None:
    if not name or not str(name).strip():
        raise ValidationError("Product name is required")
    if sale_price is None or sale_price <= 0:
        raise ValidationError("Sale price must be greater than zero")
    if cost_price is not None and cost_price < 0:
        raise ValidationError("Cost price cannot be negative")
    if stock_quantity is not None and stock_quantity < 0:
        raise ValidationError("Stock quantity cannot be negative")


def create_product(
    session: Session,
    company_id: str,
    name: str,
    sale_price: float,
    cost_price: float = 0.0,
    stock_quantity: int = 0,
    category: Optional[str] = None,
) -> Product:
    get_company(session, company_id)
    _validate(name, sale_price, cost_price, stock_quantity)

    product = Product(
        company_id=company_id,
        name=name.strip(),
        category=(category or "").strip() or DEFAULT_CATEGORY,
        cost_price=cost_price or 0.0,
        sale_price=sale_price,
        stock_quantity=stock_quantity or 0,
    )
    with atomic(session):
        session.add(product)
    logger.info("Created product %s (%s) for company %s", product.id, product.name, company_id)
    return product


def get_product(session: Session, company_id: str, product_id: str, for_update: bool = False) -> Product:
    query = session.query(Product).filter(Product.id == product_id, Product.company_id == company_id)
    if for_update:
        query = query.with_for_update()
    product = query.one_or_none()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def update_product(session: Session, company_id: str, product_id: str, **fields) -> Product:
    unknown = set(fields) - set(_EDITABLE)
    if unknown:
        raise ValidationError(f"Unknown product fields: {sorted(unknown)}")

    with atomic(session):
        product = get_product(session, company_id, product_id, for_update=True)
        merged = {k: getattr(product, k) for k in _EDITABLE}
        merged.update({k: v for k, v in fields.items() if v is not None})
        _validate(merged["name"], merged["sale_price"], merged["cost_price"], merged["stock_quantity"])

        merged["name"] = str(merged["name"]).strip()
        merged["category"] = (merged["category"] or "").strip() or DEFAULT_CATEGORY
        for key, value in merged.items():
            setattr(product, key, value)
    logger.info("Updated product %s", product_id)
    return product


def delete_product(session: Session, company_id: str, product_id: str) -> None:
    with atomic(session):
        product = get_product(session, company_id, product_id)
        session.delete(product)
    logger.info("Deleted product %s", product_id)


def list_products(
    session: Session,
    company_id: str,
    category: Optional[str] = None,
    search: Optional[str] = None,
    max_stock: Optional[int] = None,
) -> List[Product]:
    query = session.query(Product).filter(Product.company_id == company_id)
    if category:
        query = query.filter(Product.category == category)
    if search:
        query = query.filter(func.lower(Product.name).contains(search.strip().lower()))
    if max_stock is not None:
        query = query.filter(Product.stock_quantity <= max_stock)
    return query.order_by(Product.name).all()


def find_product_by_name(session: Session, company_id: str, name: str) -> Optional[Product]:
    return (session.query(Product)
                   .filter(Product.company_id == company_id,
                           func.lower(Product.name) == name.strip().lower())
                   .first())


def product_margin(product: Product) -> float:
    return margin_percent(product.cost_price or 0.0, product.sale_price or 0.0)


def products_frame(products: Iterable[Product]) -> pd.DataFrame:
    """[product_id, name, current_stock, cost_price, sale_price] for the agents."""
    records = [
        {
            "product_id": p.id,
            "name": p.name,
            "current_stock": p.stock_quantity,
            "cost_price": p.cost_price,
            "sale_price": p.sale_price,
        }
        for p in products
    ]
    return pd.DataFrame.from_records(
        records, columns=["product_id", "name", "current_stock", "cost_price", "sale_price"]
    )
