from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from agents.import_agent import DEFAULT_CATEGORY, DEFAULT_COST_RATIO, ImportAgent
from db.models import Product, Sale, Upload, utcnow
from db.session import atomic
from services.companies import get_company
from services.products import find_product_by_name
from utils.data_loader import decode_file_content, read_spreadsheet
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

IMPORT_KINDS = ("produtos", "vendas")


@dataclass
class UploadResult:
    upload_id: str
    rows_processed: int
    products_created: int
    errors: List[str] = field(default_factory=list)


def process_upload(
    session: Session,
    company_id: str,
    file_content: str,
    file_type: str,
    kind: str = "produtos",
    now: Optional[datetime] = None,
    agent: Optional[ImportAgent] = None,
) -> UploadResult:
    """Import products or sales from a base64 CSV/XLSX/XLS file.

    Product rows update a same-named product or create a new one. Sales rows
    are historical: they never touch stock, and a product name with no match
    creates the product on the fly. Everything is written in one transaction.
    """
    if not company_id or not file_content or not file_type:
        raise ValidationError("company_id, file_content and file_type are required")
    if kind not in IMPORT_KINDS:
        raise ValidationError(f"Import kind must be one of {list(IMPORT_KINDS)}")
    get_company(session, company_id)
    agent = agent or ImportAgent()
    now = now or utcnow()

    try:
        df = read_spreadsheet(decode_file_content(file_content), file_type)
    except ValueError as e:
        raise ValidationError(str(e))
    if df.empty:
        raise ValidationError("File is empty or has no valid data")

    parsed = agent.parse_products(df) if kind == "produtos" else agent.parse_sales(df)
    for message in parsed.errors:
        logger.warning("Import for company %s skipped %s", company_id, message)
    if not parsed.rows:
        raise ValidationError("No valid rows found in the file", details={"errors": parsed.errors})

    extension = file_type.strip().lower().lstrip(".")
    parse_errors = len(parsed.errors)
    with atomic(session):
        if kind == "produtos":
            created = _import_products(session, company_id, parsed.rows)
        else:
            created = _import_sales(session, company_id, parsed.rows, now, parsed.errors)
        processed = len(parsed.rows) - (len(parsed.errors) - parse_errors)
        if processed == 0:
            raise ValidationError("No valid rows found in the file", details={"errors": parsed.errors})
        upload = Upload(
            company_id=company_id,
            file_type=extension,
            url=f"empresa_{company_id}_{int(now.timestamp() * 1000)}.{extension}",
            sent_at=now,
        )
        session.add(upload)

    logger.info(
        "Imported %d %s row(s) for company %s, %d product(s) created, %d error(s)",
        processed, kind, company_id, created, len(parsed.errors),
    )
    return UploadResult(
        upload_id=upload.id,
        rows_processed=processed,
        products_created=created,
        errors=parsed.errors,
    )


def _import_products(session: Session, company_id: str, rows) -> int:
    created = 0
    seen: Dict[str, Product] = {}
    for row in rows:
        key = row.name.lower()
        product = seen.get(key) or find_product_by_name(session, company_id, row.name)
        if product is None:
            product = Product(company_id=company_id, name=row.name)
            session.add(product)
            created += 1
        product.category = row.category
        product.cost_price = row.cost_price
        product.sale_price = row.sale_price
        product.stock_quantity = row.quantity
        seen[key] = product
    return created


def _import_sales(session: Session, company_id: str, rows, now: datetime, errors: List[str]) -> int:
    created = 0
    seen: Dict[str, Product] = {}
    for row in rows:
        key = row.product_name.lower()
        product = seen.get(key) or find_product_by_name(session, company_id, row.product_name)
        if product is None:
            if row.unit_price is None:
                errors.append(f"Linha {row.line}: unknown product '{row.product_name}' needs a unit price")
                logger.warning("Import for company %s skipped line %d: unknown product without price", company_id, row.line)
                continue
            product = Product(
                company_id=company_id,
                name=row.product_name,
                category=DEFAULT_CATEGORY,
                cost_price=row.unit_price * DEFAULT_COST_RATIO,
                sale_price=row.unit_price,
                stock_quantity=0,
            )
            session.add(product)
            session.flush()
            created += 1
        seen[key] = product

        unit_price = row.unit_price if row.unit_price is not None else product.sale_price
        session.add(Sale(
            company_id=company_id,
            product_id=product.id,
            quantity=row.quantity,
            sold_at=row.sold_at or now,
            unit_price=unit_price,
            total=row.quantity * unit_price,
        ))
    return created
