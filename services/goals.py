from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from db.models import Goal, Sale
from db.session import atomic
from services.companies import get_company
from utils.calculations import display_progress, goal_progress
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

GOAL_KINDS = {"vendas", "lucro"}
GOAL_PERIODS = {"semanal", "mensal", "trimestral", "anual"}


@dataclass
class GoalProgress:
    goal: Goal
    sales_total: float
    progress: float
    display_progress: float

    @property
    def reached(self) -> bool:
        return self.progress >= 100


def _validate(kind: str, target: float, period: str, start: datetime, end: datetime) -> None:
    if kind not in GOAL_KINDS:
        raise ValidationError(f"Goal kind must be one of {sorted(GOAL_KINDS)}")
    if period not in GOAL_PERIODS:
        raise ValidationError(f"Goal period must be one of {sorted(GOAL_PERIODS)}")
    if target is None or target <= 0:
        raise ValidationError("Goal target must be greater than zero")
    if start is None or end is None:
        raise ValidationError("Goal start and end are required")
    if start >= end:
        raise ValidationError("Start date must be before end date")


def create_goal(
    session: Session,
    company_id: str,
    kind: str,
    target: float,
    period: str,
    start: datetime,
    end: datetime,
) -> Goal:
    get_company(session, company_id)
    _validate(kind, target, period, start, end)
    goal = Goal(company_id=company_id, kind=kind, target=target, period=period, start=start, end=end)
    with atomic(session):
        session.add(goal)
    logger.info("Created %s goal %s for company %s", kind, goal.id, company_id)
    return goal


def get_goal(session: Session, company_id: str, goal_id: str) -> Goal:
    goal = (session.query(Goal)
                   .filter(Goal.id == goal_id, Goal.company_id == company_id)
                   .one_or_none())
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} not found")
    return goal


def update_goal(session: Session, company_id: str, goal_id: str, **fields) -> Goal:
    with atomic(session):
        goal = get_goal(session, company_id, goal_id)
        values = {
            "kind": goal.kind, "target": goal.target, "period": goal.period,
            "start": goal.start, "end": goal.end,
        }
        values.update({k: v for k, v in fields.items() if v is not None and k in values})
        _validate(**values)
        for key, value in values.items():
            setattr(goal, key, value)
    logger.info("Updated goal %s", goal_id)
    return goal


def delete_goal(session: Session, company_id: str, goal_id: str) -> None:
    with atomic(session):
        session.delete(get_goal(session, company_id, goal_id))
    logger.info("Deleted goal %s", goal_id)


def sales_total_between(session: Session, company_id: str, start: datetime, end: datetime) -> float:
    total = (session.query(func.coalesce(func.sum(Sale.total), 0.0))
                    .filter(Sale.company_id == company_id,
                            Sale.sold_at >= start,
                            Sale.sold_at <= end)
                    .scalar())
    return float(total or 0.0)


def goal_status(session: Session, goal: Goal) -> GoalProgress:
    total = sales_total_between(session, goal.company_id, goal.start, goal.end)
    raw = goal_progress(total, goal.target)
    return GoalProgress(goal=goal, sales_total=total, progress=raw, display_progress=display_progress(raw))


def list_goals(session: Session, company_id: str, active_at: Optional[datetime] = None) -> List[Goal]:
    query = session.query(Goal).filter(Goal.company_id == company_id)
    if active_at is not None:
        query = query.filter(Goal.start <= active_at, Goal.end >= active_at)
    return query.order_by(Goal.start.desc()).all()


def list_goal_progress(session: Session, company_id: str) -> List[GoalProgress]:
    return [goal_status(session, g) for g in list_goals(session, company_id)]
