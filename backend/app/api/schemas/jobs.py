"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["user_stats"] = "user_stats"
    user_id: Optional[int] = None


class JobRunResponse(BaseModel):
    job: str
    users_processed: int
    users_updated: int
    request_id: str
