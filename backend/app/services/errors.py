"""Error taxonomy for schedule generation, reconciliation and grading."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from app.db.models.task import Task


class EmptyScheduleError(ValueError):
    """The AI response contained no usable `YYYY-MM-DD: task` lines."""


class GenerationServiceError(RuntimeError):
    """The AI generation service could not be reached or refused the call."""

    def __init__(self, message: str, *, kind: str = "unavailable") -> None:
        super().__init__(message)
        self.kind = kind


class TaskPersistenceError(RuntimeError):
    """Persisting parsed task records failed at some index."""

    def __init__(
        self,
        message: str,
        *,
        persisted: Optional[List["Task"]] = None,
        failed_index: int = 0,
        total: int = 0,
    ) -> None:
        super().__init__(message)
        self.persisted: List["Task"] = list(persisted or [])
        self.failed_index = failed_index
        self.total = total


class PartialPersistenceFailure(TaskPersistenceError):
    """Some records were persisted before a later one failed."""


class TotalPersistenceFailure(TaskPersistenceError):
    """Not a single record could be persisted."""
