"""Schemas for dashboard endpoint."""
from __future__ import annotations

from datetime import date
from typing import List

from pydantic import BaseModel


class UserStats(BaseModel):
    streak: int
    active_days: int
    missing_days: int
    completed_dates: List[date]


class TodayTask(BaseModel):
    task_id: int
    task: str
    is_completed: bool


class GoalProgress(BaseModel):
    goal_id: int
    title: str
    start_date: date
    end_date: date
    schedule_status: str
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    today: List[TodayTask]


class DashboardResponse(BaseModel):
    user_id: int
    stats: UserStats
    goals: List[GoalProgress]
    request_id: str
