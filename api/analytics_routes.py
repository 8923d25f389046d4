from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .schemas import (
    AlertListResponse,
    AlertOut,
    DashboardResponse,
    ForecastPointOut,
    ForecastRequest,
    ForecastResponse,
    ReorderSuggestionOut,
    ReportListResponse,
    ReportOut,
    ReportRequest,
    ReportResponse,
    ReportSummaryOut,
    StoredForecastOut,
    StoredForecastResponse,
    TopProductOut,
    TrendOut,
    UploadRequest,
    UploadResponse,
)
from .deps import (
    get_alert_agent,
    get_forecast_agent,
    get_import_agent,
    get_reorder_agent,
    get_report_agent,
    get_session,
)
from agents.alert_agent import AlertAgent, filter_alerts
from agents.forecast_agent import ForecastAgent
from agents.import_agent import ImportAgent
from agents.reorder_agent import ReorderAgent
from agents.report_agent import ReportAgent
from services.alerts import generate_alerts
from services.companies import get_company
from services.dashboard import build_dashboard
from services.forecasts import generate_forecast, list_forecasts
from services.reports import delete_report, generate_report, list_reports
from services.uploads import process_upload

router = APIRouter()


@router.post("/forecasts", response_model=ForecastResponse)
def create_forecast(
    payload: ForecastRequest,
    session: Session = Depends(get_session),
    forecast_agent: ForecastAgent = Depends(get_forecast_agent),
    reorder_agent: ReorderAgent = Depends(get_reorder_agent),
):
    outcome = generate_forecast(
        session, payload.company_id, forecast_agent=forecast_agent, reorder_agent=reorder_agent
    )
    # rounding is for display only; candidates were selected on raw values
    suggestions = [
        ReorderSuggestionOut(
            product_id=s["product_id"],
            product_name=s["product_name"],
            current_stock=s["current_stock"],
            average_daily_sales=round(float(s["average_daily_sales"]), 2),
            days_remaining=round(float(s["days_remaining"]), 1),
        )
        for s in outcome.reorder_suggestions
    ]
    return ForecastResponse(
        forecast=[ForecastPointOut(**p) for p in outcome.points],
        trend=TrendOut(slope=round(outcome.trend.slope, 2), direction=outcome.trend.direction),
        reorder_suggestions=suggestions,
    )


@router.get("/companies/{company_id}/forecasts", response_model=StoredForecastResponse)
def stored_forecasts(company_id: str, session: Session = Depends(get_session)):
    get_company(session, company_id)
    rows = [StoredForecastOut.model_validate(f) for f in list_forecasts(session, company_id)]
    return StoredForecastResponse(count=len(rows), total=sum(r.estimated_value for r in rows), rows=rows)


@router.get("/companies/{company_id}/alerts", response_model=AlertListResponse)
def alerts(
    company_id: str,
    kind: Optional[str] = None,
    read: Optional[bool] = None,
    session: Session = Depends(get_session),
    agent: AlertAgent = Depends(get_alert_agent),
):
    found = filter_alerts(generate_alerts(session, company_id, agent=agent), kind=kind, read=read)
    rows = [AlertOut(**a.__dict__) for a in found]
    return AlertListResponse(count=len(rows), alerts=rows)


@router.get("/companies/{company_id}/dashboard", response_model=DashboardResponse)
def dashboard(company_id: str, session: Session = Depends(get_session)):
    return DashboardResponse(**build_dashboard(session, company_id))


@router.post("/reports", response_model=ReportResponse)
def create_report(
    payload: ReportRequest,
    session: Session = Depends(get_session),
    agent: ReportAgent = Depends(get_report_agent),
):
    generated = generate_report(session, payload.company_id, payload.period, email=payload.email, agent=agent)
    summary = generated.summary
    return ReportResponse(
        report_id=generated.report.id,
        url_pdf=generated.report.pdf_url,
        company=generated.company_name,
        period=generated.period_label,
        summary=ReportSummaryOut(
            total_sales=summary.total_sales,
            average_ticket=summary.average_ticket,
            total_quantity=summary.total_quantity,
            sale_count=summary.sale_count,
        ),
        top_products=[TopProductOut(**p) for p in summary.top_products],
        generated_at=generated.report.created_at,
        message=generated.message,
    )


@router.get("/companies/{company_id}/reports", response_model=ReportListResponse)
def reports(company_id: str, session: Session = Depends(get_session)):
    get_company(session, company_id)
    rows = [ReportOut.model_validate(r) for r in list_reports(session, company_id)]
    return ReportListResponse(count=len(rows), rows=rows)


@router.delete("/companies/{company_id}/reports/{report_id}")
def remove_report(company_id: str, report_id: str, session: Session = Depends(get_session)):
    delete_report(session, company_id, report_id)
    return {"success": True}


@router.post("/uploads", response_model=UploadResponse)
def upload_file(
    payload: UploadRequest,
    session: Session = Depends(get_session),
    agent: ImportAgent = Depends(get_import_agent),
):
    result = process_upload(
        session,
        payload.company_id,
        payload.file_content,
        payload.file_type,
        kind=payload.kind,
        agent=agent,
    )
    return UploadResponse(**result.__dict__)
