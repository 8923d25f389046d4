from __future__ import annotations

import logging
import re
from typing import List

from sqlalchemy.orm import Session

from db.models import Company
from db.session import atomic
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def format_cnpj(raw: str) -> str:
    """Format a 14-digit CNPJ as 00.000.000/0000-00; other input is kept as typed."""
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) != 14:
        return (raw or "").strip()
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def create_company(session: Session, user_id: str, name: str, cnpj: str) -> Company:
    if not name or not name.strip():
        raise ValidationError("Company name is required")
    if not cnpj or not cnpj.strip():
        raise ValidationError("CNPJ is required")

    company = Company(user_id=user_id, name=name.strip(), cnpj=format_cnpj(cnpj))
    with atomic(session):
        session.add(company)
    logger.info("Created company %s for user %s", company.id, user_id)
    return company


def list_companies(session: Session, user_id: str) -> List[Company]:
    return (session.query(Company)
                   .filter(Company.user_id == user_id)
                   .order_by(Company.created_at.desc())
                   .all())


def get_company(session: Session, company_id: str) -> Company:
    company = session.get(Company, company_id)
    if company is None:
        raise NotFoundError(f"Company {company_id} not found")
    return company
