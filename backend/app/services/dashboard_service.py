"""Aggregation helpers for the dashboard endpoint."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from app.api.schemas.dashboard import GoalProgress, TodayTask, UserStats
from app.db.models.goal import Goal
from app.db.models.task import Task


@dataclass
class StreakSummary:
    streak: int = 0
    active_days: int = 0
    missing_days: int = 0
    completed_dates: List[date] = field(default_factory=list)


def summarize_days(tasks: Iterable[Task], today: date) -> StreakSummary:
    """Compute streak, active and missing days over scheduled days up to today.

    A scheduled day is active when at least one of its tasks is completed and
    missing when it is in the past with nothing completed. An unfinished
    today neither counts as missing nor breaks the streak.
    """
    completed_by_day: Dict[date, bool] = defaultdict(bool)
    for task in tasks:
        if task.date > today:
            continue
        completed_by_day[task.date] = completed_by_day[task.date] or bool(task.is_completed)

    scheduled_days = sorted(completed_by_day)
    completed_dates = [day for day in scheduled_days if completed_by_day[day]]
    missing = [day for day in scheduled_days if day < today and not completed_by_day[day]]

    streak = 0
    for day in reversed(scheduled_days):
        if completed_by_day[day]:
            streak += 1
        elif day == today:
            continue
        else:
            break

    return StreakSummary(
        streak=streak,
        active_days=len(completed_dates),
        missing_days=len(missing),
        completed_dates=completed_dates,
    )


def fetch_user_tasks(db: Session, user_id: int) -> List[Task]:
    return (
        db.query(Task)
        .join(Goal, Task.goal_id == Goal.id)
        .filter(Goal.user_id == user_id)
        .order_by(asc(Task.date), asc(Task.id))
        .all()
    )


def get_user_stats(db: Session, user_id: int, today: Optional[date] = None) -> UserStats:
    today = today or date.today()
    summary = summarize_days(fetch_user_tasks(db, user_id), today)
    return UserStats(
        streak=summary.streak,
        active_days=summary.active_days,
        missing_days=summary.missing_days,
        completed_dates=summary.completed_dates,
    )


def get_goal_progress(db: Session, user_id: int, today: Optional[date] = None) -> List[GoalProgress]:
    today = today or date.today()
    goals = (
        db.query(Goal)
        .filter(Goal.user_id == user_id)
        .order_by(asc(Goal.start_date), asc(Goal.id))
        .all()
    )
    tasks_by_goal: Dict[int, List[Task]] = defaultdict(list)
    for task in fetch_user_tasks(db, user_id):
        tasks_by_goal[task.goal_id].append(task)

    entries: List[GoalProgress] = []
    for goal in goals:
        tasks = tasks_by_goal.get(goal.id, [])
        total = len(tasks)
        completed = sum(1 for task in tasks if task.is_completed)
        entries.append(
            GoalProgress(
                goal_id=goal.id,
                title=goal.title,
                start_date=goal.start_date,
                end_date=goal.end_date,
                schedule_status=goal.schedule_status,
                total_tasks=total,
                completed_tasks=completed,
                completion_rate=(completed / total) if total else 0.0,
                today=[
                    TodayTask(task_id=task.id, task=task.task, is_completed=bool(task.is_completed))
                    for task in tasks
                    if task.date == today
                ],
            )
        )
    return entries
