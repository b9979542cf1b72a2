"""Dashboard API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.dashboard import DashboardResponse
from app.db.deps import get_db
from app.observability.metrics import log_metric, timed_metric
from app.observability.tracing import trace
from app.services.dashboard_service import get_goal_progress, get_user_stats
from app.services.user_service import get_user

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse, tags=["dashboard"])
def get_dashboard(
    http_request: Request,
    user_id: int = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> DashboardResponse:
    if not get_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    request_id = getattr(http_request.state, "request_id", None)
    metric_metadata = {"user_id": str(user_id)}
    with timed_metric("dashboard.get", metadata=metric_metadata):
        with trace("dashboard.get", metadata={"request_id": request_id}, user_id=user_id, request_id=request_id):
            stats = get_user_stats(db, user_id)
            goals = get_goal_progress(db, user_id)

    log_metric("dashboard.get.goals_count", len(goals), metadata=metric_metadata)
    return DashboardResponse(
        user_id=user_id,
        stats=stats,
        goals=goals,
        request_id=request_id or "",
    )
