"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.jobs import JobRunRequest, JobRunResponse
from app.core.config import settings
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.job_runner import refresh_stats_for_all_users, refresh_stats_for_user

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "user_stats_time": f"{settings.stats_job_hour:02d}:{settings.stats_job_minute:02d}",
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    start = perf_counter()
    with trace("jobs.run_now", metadata={"job": payload.job, "request_id": request_id}, request_id=request_id):
        if payload.user_id is not None:
            try:
                changed = refresh_stats_for_user(db, payload.user_id)
            except ValueError as exc:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc
            processed, updated = 1, 1 if changed else 0
        else:
            result = refresh_stats_for_all_users(db)
            processed, updated = result.users_processed, result.users_updated

    log_metric("jobs.run_now.latency_ms", (perf_counter() - start) * 1000, metadata={"job": payload.job})
    return JobRunResponse(
        job=payload.job,
        users_processed=processed,
        users_updated=updated,
        request_id=request_id or "",
    )
