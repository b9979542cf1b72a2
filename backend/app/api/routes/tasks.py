"""Task listing and concept validation routes."""
from __future__ import annotations

from datetime import date
from time import perf_counter
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.task import ConceptValidationRequest, ConceptValidationResponse, TaskPayload
from app.core.context import bind_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.ai_client import GenerationClient, get_generation_client
from app.services.concept_validation import grade_explanation
from app.services.goal_service import GoalAccessError
from app.services.task_service import apply_validation, get_owned_task, list_user_tasks

router = APIRouter()


@router.get("/tasks", response_model=List[TaskPayload], tags=["tasks"])
def list_tasks(
    user_id: int = Query(..., description="User ID owning the tasks"),
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[TaskPayload]:
    """List a user's tasks across goals, optionally bounded by date."""
    tasks = list_user_tasks(db, user_id, from_=from_, to=to)
    log_metric("task.list.count", len(tasks), metadata={"user_id": str(user_id)})
    return [TaskPayload.model_validate(task) for task in tasks]


@router.post("/tasks/{task_id}/validate", response_model=ConceptValidationResponse, tags=["tasks"])
def validate_task_concept(
    task_id: int,
    payload: ConceptValidationRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> ConceptValidationResponse:
    """Grade the learner's explanation and complete the task if it is accepted."""
    try:
        task = get_owned_task(db, task_id, payload.user_id)
    except GoalAccessError as exc:
        code = status.HTTP_403_FORBIDDEN if exc.forbidden else status.HTTP_404_NOT_FOUND
        raise HTTPException(status_code=code, detail=str(exc)) from exc

    request_id = getattr(http_request.state, "request_id", None)
    bind_user_id(payload.user_id)
    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}/validate",
        "task_id": task_id,
        "explanation_length": len(payload.concept),
        "request_id": request_id,
    }

    start = perf_counter()
    try:
        with trace("task.validate", metadata=metadata, user_id=payload.user_id, request_id=request_id):
            result = grade_explanation(client, task.task, payload.concept)
            changed = apply_validation(db, task, result, payload.concept)
    except Exception:
        db.rollback()
        raise

    metric_metadata = {"task_id": str(task_id), "auto_accepted": result.auto_accepted}
    log_metric("task.validate.valid", 1 if result.is_valid else 0, metadata=metric_metadata)
    log_metric("task.validate.changed", 1 if changed else 0, metadata=metric_metadata)
    log_metric("task.validate.latency_ms", (perf_counter() - start) * 1000, metadata=metric_metadata)

    return ConceptValidationResponse(
        is_valid=result.is_valid,
        feedback=result.feedback,
        concepts_understood=result.concepts_understood,
        concepts_missing=result.concepts_missing,
        auto_accepted=result.auto_accepted,
        task=TaskPayload.model_validate(task),
        request_id=request_id or "",
    )
