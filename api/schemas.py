from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- Companies ----

class CompanyCreate(BaseModel):
    user_id: str
    name: str
    cnpj: str


class CompanyOut(OrmModel):
    success: bool = True
    id: str
    user_id: Optional[str] = None
    name: str
    cnpj: str
    created_at: dt.datetime


class CompanyListResponse(BaseModel):
    success: bool = True
    count: int
    rows: List[CompanyOut]


# ---- Products ----

class ProductCreate(BaseModel):
    name: str
    sale_price: float
    cost_price: float = 0.0
    stock_quantity: int = 0
    category: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sale_price: Optional[float] = None
    cost_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    category: Optional[str] = None


class ProductOut(OrmModel):
    success: bool = True
    id: str
    name: str
    category: Optional[str] = None
    cost_price: float
    sale_price: float
    stock_quantity: int
    margin: float = 0.0
    created_at: dt.datetime


class ProductListResponse(BaseModel):
    success: bool = True
    count: int
    rows: List[ProductOut]


# ---- Sales / stock ----

class SaleItemIn(BaseModel):
    product_id: str
    quantity: int
    unit_price: Optional[float] = None


class SaleCreate(BaseModel):
    items: List[SaleItemIn]
    sold_at: Optional[dt.datetime] = None


class SaleOut(OrmModel):
    id: str
    product_id: str
    quantity: int
    sold_at: dt.datetime
    unit_price: float
    total: float


class SaleListResponse(BaseModel):
    success: bool = True
    count: int
    total: float
    rows: List[SaleOut]


class StockEntryCreate(BaseModel):
    product_id: str
    quantity: int
    notes: Optional[str] = None


class StockEntryOut(OrmModel):
    success: bool = True
    id: str
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    entered_at: dt.datetime
    notes: Optional[str] = None


class StockEntryListResponse(BaseModel):
    success: bool = True
    count: int
    rows: List[StockEntryOut]


# ---- Goals ----

class GoalCreate(BaseModel):
    kind: str = "vendas"
    target: float
    period: str = "mensal"
    start: dt.datetime
    end: dt.datetime


class GoalUpdate(BaseModel):
    kind: Optional[str] = None
    target: Optional[float] = None
    period: Optional[str] = None
    start: Optional[dt.datetime] = None
    end: Optional[dt.datetime] = None


class GoalOut(BaseModel):
    success: bool = True
    id: str
    kind: str
    target: float
    period: str
    start: dt.datetime
    end: dt.datetime
    sales_total: float = 0.0
    progress: float = 0.0
    display_progress: float = 0.0
    reached: bool = False


class GoalListResponse(BaseModel):
    success: bool = True
    count: int
    rows: List[GoalOut]


# ---- Forecasts ----

class ForecastRequest(BaseModel):
    company_id: str


class ForecastPointOut(BaseModel):
    date: dt.date
    predicted_value: float


class TrendOut(BaseModel):
    slope: float
    direction: str


class ReorderSuggestionOut(BaseModel):
    product_id: str
    product_name: str
    current_stock: float
    average_daily_sales: float
    days_remaining: float


class ForecastResponse(BaseModel):
    success: bool = True
    forecast: List[ForecastPointOut]
    trend: TrendOut
    reorder_suggestions: List[ReorderSuggestionOut]


class StoredForecastOut(OrmModel):
    forecast_date: dt.date
    estimated_value: float
    method: str


class StoredForecastResponse(BaseModel):
    success: bool = True
    count: int
    total: float
    rows: List[StoredForecastOut]


# ---- Alerts / dashboard ----

class AlertOut(BaseModel):
    id: str
    kind: str
    title: str
    description: str
    priority: str
    created_at: dt.datetime
    read: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)


class AlertListResponse(BaseModel):
    success: bool = True
    count: int
    alerts: List[AlertOut]


class DashboardProduct(BaseModel):
    product_id: str
    name: str
    margin: float
    current_stock: int
    total_sold: float


class DailyTotal(BaseModel):
    date: dt.date
    total: float


class DashboardGoal(BaseModel):
    goal_id: str
    kind: str
    target: float
    progress: float
    display_progress: float


class DashboardResponse(BaseModel):
    success: bool = True
    total_sales: float
    average_ticket: float
    most_profitable: List[DashboardProduct]
    least_profitable: List[DashboardProduct]
    stagnant_products: List[DashboardProduct]
    sales_trend: List[DailyTotal]
    goals: List[DashboardGoal]


# ---- Reports ----

class ReportRequest(BaseModel):
    company_id: str
    period: Literal["semanal", "mensal"]
    email: Optional[str] = None


class TopProductOut(BaseModel):
    name: str
    quantity: float
    total: float


class ReportSummaryOut(BaseModel):
    total_sales: float
    average_ticket: float
    total_quantity: float
    sale_count: int


class ReportResponse(BaseModel):
    success: bool = True
    report_id: str
    url_pdf: str
    company: str
    period: str
    summary: ReportSummaryOut
    top_products: List[TopProductOut]
    generated_at: dt.datetime
    message: str


class ReportOut(OrmModel):
    id: str
    pdf_url: str
    reference_period: str
    created_at: dt.datetime


class ReportListResponse(BaseModel):
    success: bool = True
    count: int
    rows: List[ReportOut]


# ---- Uploads ----

class UploadRequest(BaseModel):
    company_id: str
    file_content: str
    file_type: str
    kind: Literal["produtos", "vendas"] = "produtos"

    @field_validator("file_type")
    @classmethod
    def _file_type(cls, v: str) -> str:
        v = v.strip().lower().lstrip(".")
        if v not in {"csv", "xlsx", "xls"}:
            raise ValueError("file_type must be csv, xlsx or xls")
        return v


class UploadResponse(BaseModel):
    success: bool = True
    upload_id: str
    rows_processed: int
    products_created: int
    errors: List[str]


# ---- Billing ----

class CheckoutRequest(BaseModel):
    user_id: str
    email: str
    plan_id: Literal["monthly", "yearly"]
    success_url: str
    cancel_url: str


class CheckoutResponse(BaseModel):
    success: bool = True
    checkout_url: str
    session_id: str


class PortalRequest(BaseModel):
    customer_id: str
    return_url: str


class PortalResponse(BaseModel):
    success: bool = True
    portal_url: str


class SubscriptionStatusRequest(BaseModel):
    user_id: str


class SubscriptionStatusResponse(BaseModel):
    success: bool = True
    active: bool
    status: Optional[str] = None
    plan: Optional[str] = None
    plan_name: Optional[str] = None
    next_charge: Optional[dt.datetime] = None
    amount: Optional[int] = None
    cancel_at_period_end: bool = False
    customer_id: Optional[str] = None


class WebhookResponse(BaseModel):
    success: bool = True
    received: bool = True
    event_type: Optional[str] = None
