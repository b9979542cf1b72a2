"""Persist parsed schedule records as tasks owned by a goal."""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.task import Task
from app.services.errors import PartialPersistenceFailure, TotalPersistenceFailure
from app.services.schedule_parser import ParsedTaskRecord

logger = logging.getLogger(__name__)


def reconcile_tasks(db: Session, goal_id: int, records: Iterable[ParsedTaskRecord]) -> List[Task]:
    """Insert one task per record, committing each before moving on.

    Tasks committed before a failure stay in place; the raised error says
    whether anything was persisted.
    """
    pending = list(records)
    persisted: List[Task] = []
    for index, record in enumerate(pending):
        try:
            task = Task(
                goal_id=goal_id,
                date=date.fromisoformat(record.date),
                task=record.task,
                is_completed=False,
                completion_notes=None,
            )
            db.add(task)
            db.commit()
        except (SQLAlchemyError, ValueError) as exc:
            db.rollback()
            logger.exception("Failed to persist task %s/%s for goal %s", index + 1, len(pending), goal_id)
            error_cls = PartialPersistenceFailure if persisted else TotalPersistenceFailure
            raise error_cls(
                f"Persisted {len(persisted)} of {len(pending)} tasks",
                persisted=persisted,
                failed_index=index,
                total=len(pending),
            ) from exc
        db.refresh(task)
        persisted.append(task)

    logger.debug("Persisted %s tasks for goal %s", len(persisted), goal_id)
    return persisted


def list_goal_tasks(db: Session, goal_id: int) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.goal_id == goal_id)
        .order_by(asc(Task.date), asc(Task.id))
        .all()
    )
