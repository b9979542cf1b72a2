"""Schemas for task listing and concept validation."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_id: int
    date: date
    task: str
    is_completed: bool
    completion_notes: Optional[str]
    completed_at: Optional[datetime]


class ConceptValidationRequest(BaseModel):
    user_id: int
    concept: str = Field(..., min_length=1, max_length=5000)


class ConceptValidationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., serialization_alias="isValid")
    feedback: str
    concepts_understood: List[str] = Field(default_factory=list, serialization_alias="conceptsUnderstood")
    concepts_missing: List[str] = Field(default_factory=list, serialization_alias="conceptsMissing")
    auto_accepted: bool = Field(False, serialization_alias="autoAccepted")
    task: TaskPayload
    request_id: str
