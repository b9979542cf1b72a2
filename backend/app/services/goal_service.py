"""Goal lifecycle: creation, scheduling, manual task entry and deletion."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from app.db.models.goal import Goal
from app.db.models.task import Task
from app.db.models.user import User
from app.services.ai_client import GenerationClient
from app.services.errors import PartialPersistenceFailure, TaskPersistenceError
from app.services.schedule_generation import generate_schedule
from app.services.schedule_parser import DATE_PATTERN, ParsedTaskRecord
from app.services.task_reconciliation import list_goal_tasks, reconcile_tasks

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "generated": "Goal created with an AI-generated schedule.",
    "fallback": "Goal created. The AI schedule was unavailable, so a generic schedule was used.",
    "partial": "Goal created but only part of the schedule could be saved. Retry or add tasks manually.",
    "failed": "Goal created but schedule generation failed. Please try again or add tasks manually.",
    "pending": "Goal created; schedule not generated yet.",
}


class GoalAccessError(LookupError):
    """Goal is missing or belongs to someone else."""

    def __init__(self, message: str, *, forbidden: bool = False) -> None:
        super().__init__(message)
        self.forbidden = forbidden


class ScheduleConflictError(RuntimeError):
    """The goal already has tasks and replacement was not requested."""


class InvalidTaskRecordError(ValueError):
    """A manually entered task is missing fields or has a malformed date."""


@dataclass
class ScheduleOutcome:
    goal: Goal
    tasks: List[Task] = field(default_factory=list)
    status: str = "pending"
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def message(self) -> str:
        return STATUS_MESSAGES.get(self.status, STATUS_MESSAGES["pending"])


def create_goal(
    db: Session,
    user: User,
    *,
    title: str,
    description: str,
    start_date: date,
    end_date: date,
) -> Goal:
    goal = Goal(
        user_id=user.id,
        title=title,
        description=description or "",
        start_date=start_date,
        end_date=end_date,
        schedule_status="pending",
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info("Goal %s created for user %s", goal.id, user.id)
    return goal


def get_owned_goal(db: Session, goal_id: int, user_id: int) -> Goal:
    goal = db.get(Goal, goal_id)
    if not goal:
        raise GoalAccessError("Goal not found")
    if goal.user_id != user_id:
        raise GoalAccessError("Goal does not belong to user", forbidden=True)
    return goal


def list_user_goals(db: Session, user_id: int) -> List[Goal]:
    return (
        db.query(Goal)
        .filter(Goal.user_id == user_id)
        .order_by(asc(Goal.created_at), asc(Goal.id))
        .all()
    )


def schedule_goal(
    db: Session,
    client: Optional[GenerationClient],
    goal: Goal,
    *,
    replace: bool = False,
    request_id: str | None = None,
) -> ScheduleOutcome:
    """Generate and persist the goal's schedule; the goal itself is never rolled back.

    With ``replace`` the existing tasks are only removed once a new draft is
    in hand, so a generation error leaves the old schedule untouched.
    """
    existing = list_goal_tasks(db, goal.id)
    if existing and not replace:
        raise ScheduleConflictError("Goal already has tasks; pass replace to regenerate")

    draft = generate_schedule(
        client,
        title=goal.title,
        description=goal.description,
        start_date=goal.start_date,
        end_date=goal.end_date,
        request_id=request_id,
    )

    if existing:
        for task in existing:
            db.delete(task)
        db.commit()
        logger.info("Removed %s existing tasks from goal %s before regeneration", len(existing), goal.id)

    outcome = ScheduleOutcome(goal=goal, source=draft.source, error=draft.error)
    try:
        outcome.tasks = reconcile_tasks(db, goal.id, draft.records)
        outcome.status = "fallback" if draft.used_fallback else "generated"
    except TaskPersistenceError as exc:
        outcome.tasks = exc.persisted
        outcome.status = "partial" if isinstance(exc, PartialPersistenceFailure) else "failed"
        outcome.error = "persistence"
        logger.error(
            "Schedule for goal %s stopped at record %s of %s (%s)",
            goal.id,
            exc.failed_index + 1,
            exc.total,
            outcome.status,
        )

    goal.schedule_status = outcome.status
    goal.schedule_source = draft.source
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return outcome


def validate_manual_records(entries: List[tuple[str, str]]) -> List[ParsedTaskRecord]:
    records: List[ParsedTaskRecord] = []
    for raw_date, raw_task in entries:
        date_text = (raw_date or "").strip()
        task_text = (raw_task or "").strip()
        if not date_text or not task_text:
            raise InvalidTaskRecordError("Each task must have date and task properties")
        if not DATE_PATTERN.match(date_text):
            raise InvalidTaskRecordError("Date must be in YYYY-MM-DD format")
        try:
            date.fromisoformat(date_text)
        except ValueError as exc:
            raise InvalidTaskRecordError(f"{date_text} is not a valid calendar date") from exc
        records.append(ParsedTaskRecord(date=date_text, task=task_text))
    return records


def add_manual_tasks(db: Session, goal: Goal, records: List[ParsedTaskRecord]) -> List[Task]:
    """Persist user-entered tasks; persistence errors propagate to the caller."""
    tasks = reconcile_tasks(db, goal.id, records)
    if goal.schedule_status in {"pending", "failed"}:
        goal.schedule_status = "generated"
        goal.schedule_source = "manual"
        db.add(goal)
        db.commit()
    return tasks


def delete_goal(db: Session, goal: Goal) -> None:
    goal_id = goal.id
    db.delete(goal)
    db.commit()
    logger.info("Goal %s deleted", goal_id)
