"""Goal API routes: creation with schedule generation, listing and manual tasks."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from app.api.schemas.goal import (
    BulkTaskRequest,
    GoalCreateRequest,
    GoalPayload,
    GoalScheduleRequest,
    GoalScheduleResponse,
    ManualTaskRequest,
    SchedulePreviewRequest,
    SchedulePreviewResponse,
    ScheduleRecord,
)
from app.api.schemas.task import TaskPayload
from app.core.context import bind_user_id
from app.db.deps import get_db
from app.db.models.goal import Goal
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.ai_client import GenerationClient, get_generation_client
from app.services.errors import TaskPersistenceError
from app.services.goal_service import (
    GoalAccessError,
    InvalidTaskRecordError,
    ScheduleConflictError,
    ScheduleOutcome,
    add_manual_tasks,
    create_goal,
    delete_goal,
    get_owned_goal,
    list_user_goals,
    schedule_goal,
    validate_manual_records,
)
from app.services.schedule_generation import generate_schedule
from app.services.task_reconciliation import list_goal_tasks
from app.services.user_service import get_user

router = APIRouter()


@router.post("/goals", response_model=GoalScheduleResponse, status_code=status.HTTP_201_CREATED, tags=["goals"])
def create_goal_endpoint(
    payload: GoalCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> GoalScheduleResponse:
    """Create a goal and generate its daily schedule.

    The goal is kept even when no schedule could be stored; the response's
    ``schedule_status`` tells the caller which case happened.
    """
    request_id = getattr(http_request.state, "request_id", None)
    bind_user_id(payload.user_id)
    user = get_user(db, payload.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    metadata: Dict[str, Any] = {
        "route": "/goals",
        "start_date": payload.start_date.isoformat(),
        "end_date": payload.end_date.isoformat(),
        "request_id": request_id,
    }

    start = perf_counter()
    outcome: ScheduleOutcome | None = None
    try:
        with trace("goal.create", metadata=metadata, user_id=payload.user_id, request_id=request_id) as span:
            goal = create_goal(
                db,
                user,
                title=payload.title.strip(),
                description=payload.description,
                start_date=payload.start_date,
                end_date=payload.end_date,
            )
            outcome = schedule_goal(db, client, goal, request_id=request_id)
            if span:
                try:
                    span.update(metadata={**metadata, "goal_id": goal.id, "schedule_status": outcome.status})
                except Exception:
                    pass
    except Exception:
        db.rollback()
        raise
    finally:
        metric_metadata = {"user_id": str(payload.user_id)}
        if outcome:
            metric_metadata["schedule_status"] = outcome.status
        log_metric("goal.create.success", 1 if outcome else 0, metadata=metric_metadata)
        log_metric("goal.create.latency_ms", (perf_counter() - start) * 1000, metadata=metric_metadata)

    return _schedule_response(outcome, request_id)


@router.get("/goals", response_model=List[GoalPayload], tags=["goals"])
def list_goals(
    user_id: int = Query(..., description="User ID owning the goals"),
    db: Session = Depends(get_db),
) -> List[GoalPayload]:
    return [GoalPayload.model_validate(goal) for goal in list_user_goals(db, user_id)]


@router.get("/goals/{goal_id}", response_model=GoalPayload, tags=["goals"])
def get_goal(
    goal_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
) -> GoalPayload:
    return GoalPayload.model_validate(_load_goal(db, goal_id, user_id))


@router.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["goals"])
def delete_goal_endpoint(
    goal_id: int,
    http_request: Request,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
) -> Response:
    goal = _load_goal(db, goal_id, user_id)
    request_id = getattr(http_request.state, "request_id", None)
    with trace("goal.delete", metadata={"goal_id": goal_id}, user_id=user_id, request_id=request_id):
        delete_goal(db, goal)
    log_metric("goal.delete.success", 1, metadata={"user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/goals/{goal_id}/schedule", response_model=GoalScheduleResponse, tags=["goals"])
def regenerate_schedule(
    goal_id: int,
    payload: GoalScheduleRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> GoalScheduleResponse:
    """Retry schedule generation for a goal whose schedule is missing or unwanted."""
    goal = _load_goal(db, goal_id, payload.user_id)
    request_id = getattr(http_request.state, "request_id", None)
    bind_user_id(payload.user_id)

    try:
        with trace(
            "goal.schedule",
            metadata={"goal_id": goal_id, "replace": payload.replace},
            user_id=payload.user_id,
            request_id=request_id,
        ):
            outcome = schedule_goal(db, client, goal, replace=payload.replace, request_id=request_id)
    except ScheduleConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    log_metric("goal.schedule.status", 1, metadata={"status": outcome.status})
    return _schedule_response(outcome, request_id)


@router.get("/goals/{goal_id}/tasks", response_model=List[TaskPayload], tags=["goals"])
def list_tasks_for_goal(
    goal_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
) -> List[TaskPayload]:
    goal = _load_goal(db, goal_id, user_id)
    return [TaskPayload.model_validate(task) for task in list_goal_tasks(db, goal.id)]


@router.post("/goals/{goal_id}/tasks", response_model=TaskPayload, status_code=status.HTTP_201_CREATED, tags=["goals"])
def add_task(
    goal_id: int,
    payload: ManualTaskRequest,
    db: Session = Depends(get_db),
) -> TaskPayload:
    goal = _load_goal(db, goal_id, payload.user_id)
    tasks = _persist_manual(db, goal, [(payload.date, payload.task)])
    return TaskPayload.model_validate(tasks[0])


@router.post("/goals/{goal_id}/bulk-tasks", response_model=List[TaskPayload], status_code=status.HTTP_201_CREATED, tags=["goals"])
def add_bulk_tasks(
    goal_id: int,
    payload: BulkTaskRequest,
    db: Session = Depends(get_db),
) -> List[TaskPayload]:
    goal = _load_goal(db, goal_id, payload.user_id)
    tasks = _persist_manual(db, goal, [(item.date, item.task) for item in payload.tasks])
    return [TaskPayload.model_validate(task) for task in tasks]


@router.post("/schedules/preview", response_model=SchedulePreviewResponse, tags=["schedules"])
def preview_schedule(
    payload: SchedulePreviewRequest,
    http_request: Request,
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> SchedulePreviewResponse:
    """Generate a schedule without storing it, e.g. for review before creating a goal."""
    request_id = getattr(http_request.state, "request_id", None)
    draft = generate_schedule(
        client,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        request_id=request_id,
    )
    return SchedulePreviewResponse(
        tasks=[ScheduleRecord(date=record.date, task=record.task) for record in draft.records],
        source=draft.source,
        fallback_reason=draft.error,
        request_id=request_id or "",
    )


def _load_goal(db: Session, goal_id: int, user_id: int) -> Goal:
    try:
        return get_owned_goal(db, goal_id, user_id)
    except GoalAccessError as exc:
        code = status.HTTP_403_FORBIDDEN if exc.forbidden else status.HTTP_404_NOT_FOUND
        raise HTTPException(status_code=code, detail=str(exc)) from exc


def _persist_manual(db: Session, goal: Goal, entries: List[tuple[str, str]]):
    try:
        records = validate_manual_records(entries)
    except InvalidTaskRecordError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        tasks = add_manual_tasks(db, goal, records)
    except TaskPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "Failed to create tasks",
                "persisted": len(exc.persisted),
                "total": exc.total,
            },
        ) from exc
    log_metric("goal.tasks.manual", len(tasks), metadata={"goal_id": goal.id})
    return tasks


def _schedule_response(outcome: ScheduleOutcome | None, request_id: str | None) -> GoalScheduleResponse:
    if outcome is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Goal not created")
    return GoalScheduleResponse(
        goal=GoalPayload.model_validate(outcome.goal),
        tasks=[TaskPayload.model_validate(task) for task in outcome.tasks],
        schedule_status=outcome.status,
        schedule_source=outcome.source,
        fallback_reason=outcome.error,
        message=outcome.message,
        request_id=request_id or "",
    )
