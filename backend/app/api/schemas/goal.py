"""Schemas for goal creation, scheduling and manual task entry."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.api.schemas.task import TaskPayload

ScheduleStatus = Literal["pending", "generated", "fallback", "partial", "failed"]


class GoalCreateRequest(BaseModel):
    user_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_range(self) -> "GoalCreateRequest":
        if not self.title.strip():
            raise ValueError("title must not be blank")
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class GoalPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str
    start_date: date
    end_date: date
    schedule_status: ScheduleStatus
    schedule_source: Optional[str]
    created_at: datetime


class GoalScheduleResponse(BaseModel):
    goal: GoalPayload
    tasks: List[TaskPayload]
    schedule_status: ScheduleStatus
    schedule_source: Optional[str]
    fallback_reason: Optional[str] = None
    message: str
    request_id: str


class GoalScheduleRequest(BaseModel):
    user_id: int
    replace: bool = False


class ManualTaskRequest(BaseModel):
    user_id: int
    date: str
    task: str


class BulkTaskItem(BaseModel):
    date: str
    task: str


class BulkTaskRequest(BaseModel):
    user_id: int
    tasks: List[BulkTaskItem] = Field(..., min_length=1)


class SchedulePreviewRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_range(self) -> "SchedulePreviewRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ScheduleRecord(BaseModel):
    date: str
    task: str


class SchedulePreviewResponse(BaseModel):
    tasks: List[ScheduleRecord]
    source: Literal["ai", "fallback"]
    fallback_reason: Optional[str] = None
    request_id: str
