from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .schemas import (
    CompanyCreate,
    CompanyListResponse,
    CompanyOut,
    GoalCreate,
    GoalListResponse,
    GoalOut,
    GoalUpdate,
    ProductCreate,
    ProductListResponse,
    ProductOut,
    ProductUpdate,
    SaleCreate,
    SaleListResponse,
    SaleOut,
    StockEntryCreate,
    StockEntryListResponse,
    StockEntryOut,
)
from .deps import get_session
from services import companies, goals, products, sales, stock
from services.goals import GoalProgress
from services.sales import SaleItem

router = APIRouter()


def _product_out(product) -> ProductOut:
    out = ProductOut.model_validate(product)
    out.margin = products.product_margin(product)
    return out


def _goal_out(status: GoalProgress) -> GoalOut:
    g = status.goal
    return GoalOut(
        id=g.id,
        kind=g.kind,
        target=g.target,
        period=g.period,
        start=g.start,
        end=g.end,
        sales_total=status.sales_total,
        progress=status.progress,
        display_progress=status.display_progress,
        reached=status.reached,
    )


@router.get("/health")
def health():
    return {"success": True, "status": "ok"}


# ---- Companies ----

@router.post("/companies", response_model=CompanyOut, status_code=201)
def create_company(payload: CompanyCreate, session: Session = Depends(get_session)):
    return companies.create_company(session, payload.user_id, payload.name, payload.cnpj)


@router.get("/companies", response_model=CompanyListResponse)
def list_companies(user_id: str, session: Session = Depends(get_session)):
    rows = companies.list_companies(session, user_id)
    return CompanyListResponse(count=len(rows), rows=rows)


# ---- Products ----

@router.post("/companies/{company_id}/products", response_model=ProductOut, status_code=201)
def create_product(company_id: str, payload: ProductCreate, session: Session = Depends(get_session)):
    product = products.create_product(session, company_id, **payload.model_dump())
    return _product_out(product)


@router.get("/companies/{company_id}/products", response_model=ProductListResponse)
def list_products(
    company_id: str,
    category: Optional[str] = None,
    search: Optional[str] = None,
    max_stock: Optional[int] = None,
    session: Session = Depends(get_session),
):
    companies.get_company(session, company_id)
    rows = [_product_out(p) for p in products.list_products(session, company_id, category, search, max_stock)]
    return ProductListResponse(count=len(rows), rows=rows)


@router.put("/companies/{company_id}/products/{product_id}", response_model=ProductOut)
def update_product(company_id: str, product_id: str, payload: ProductUpdate, session: Session = Depends(get_session)):
    product = products.update_product(session, company_id, product_id, **payload.model_dump(exclude_unset=True))
    return _product_out(product)


@router.delete("/companies/{company_id}/products/{product_id}")
def delete_product(company_id: str, product_id: str, session: Session = Depends(get_session)):
    products.delete_product(session, company_id, product_id)
    return {"success": True}


# ---- Sales ----

@router.post("/companies/{company_id}/sales", response_model=SaleListResponse, status_code=201)
def record_sale(company_id: str, payload: SaleCreate, session: Session = Depends(get_session)):
    items = [SaleItem(i.product_id, i.quantity, i.unit_price) for i in payload.items]
    created = sales.record_sale(session, company_id, items, sold_at=payload.sold_at)
    rows = [SaleOut.model_validate(s) for s in created]
    return SaleListResponse(count=len(rows), total=sum(r.total for r in rows), rows=rows)


@router.get("/companies/{company_id}/sales", response_model=SaleListResponse)
def list_sales(
    company_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    product_id: Optional[str] = None,
    limit: Optional[int] = None,
    session: Session = Depends(get_session),
):
    companies.get_company(session, company_id)
    found = sales.list_sales(session, company_id, start=start, end=end, product_id=product_id, limit=limit)
    rows = [SaleOut.model_validate(s) for s in found]
    return SaleListResponse(count=len(rows), total=sum(r.total for r in rows), rows=rows)


# ---- Stock entries ----

@router.post("/companies/{company_id}/stock-entries", response_model=StockEntryOut, status_code=201)
def record_stock_entry(company_id: str, payload: StockEntryCreate, session: Session = Depends(get_session)):
    entry = stock.record_stock_entry(session, company_id, payload.product_id, payload.quantity, payload.notes)
    out = StockEntryOut.model_validate(entry)
    out.product_name = entry.product.name
    return out


@router.get("/companies/{company_id}/stock-entries", response_model=StockEntryListResponse)
def list_stock_entries(company_id: str, session: Session = Depends(get_session)):
    companies.get_company(session, company_id)
    rows = []
    for entry in stock.list_stock_entries(session, company_id):
        out = StockEntryOut.model_validate(entry)
        out.product_name = entry.product.name
        rows.append(out)
    return StockEntryListResponse(count=len(rows), rows=rows)


# ---- Goals ----

@router.post("/companies/{company_id}/goals", response_model=GoalOut, status_code=201)
def create_goal(company_id: str, payload: GoalCreate, session: Session = Depends(get_session)):
    goal = goals.create_goal(session, company_id, **payload.model_dump())
    return _goal_out(goals.goal_status(session, goal))


@router.get("/companies/{company_id}/goals", response_model=GoalListResponse)
def list_goals(company_id: str, session: Session = Depends(get_session)):
    companies.get_company(session, company_id)
    rows = [_goal_out(s) for s in goals.list_goal_progress(session, company_id)]
    return GoalListResponse(count=len(rows), rows=rows)


@router.put("/companies/{company_id}/goals/{goal_id}", response_model=GoalOut)
def update_goal(company_id: str, goal_id: str, payload: GoalUpdate, session: Session = Depends(get_session)):
    goal = goals.update_goal(session, company_id, goal_id, **payload.model_dump(exclude_unset=True))
    return _goal_out(goals.goal_status(session, goal))


@router.delete("/companies/{company_id}/goals/{goal_id}")
def delete_goal(company_id: str, goal_id: str, session: Session = Depends(get_session)):
    goals.delete_goal(session, company_id, goal_id)
    return {"success": True}
