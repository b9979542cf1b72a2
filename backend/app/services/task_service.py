"""Task lookups and completion updates."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from app.db.models.goal import Goal
from app.db.models.task import Task
from app.services.concept_validation import ValidationResult
from app.services.goal_service import GoalAccessError


def get_owned_task(db: Session, task_id: int, user_id: int) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise GoalAccessError("Task not found")
    goal = db.get(Goal, task.goal_id)
    if not goal or goal.user_id != user_id:
        raise GoalAccessError("Task does not belong to user", forbidden=True)
    return task


def list_user_tasks(
    db: Session,
    user_id: int,
    *,
    from_: Optional[date] = None,
    to: Optional[date] = None,
) -> List[Task]:
    query = db.query(Task).join(Goal, Task.goal_id == Goal.id).filter(Goal.user_id == user_id)
    if from_:
        query = query.filter(Task.date >= from_)
    if to:
        query = query.filter(Task.date <= to)
    return query.order_by(asc(Task.date), asc(Task.id)).all()


def apply_validation(db: Session, task: Task, result: ValidationResult, explanation: str) -> bool:
    """Complete the task when the verdict is valid; returns whether it changed."""
    if not result.is_valid:
        return False
    task.is_completed = True
    task.completion_notes = explanation
    task.completed_at = datetime.now(timezone.utc)
    db.add(task)
    db.commit()
    db.refresh(task)
    return True
