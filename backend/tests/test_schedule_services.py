"""Tests for schedule generation, reconciliation and goal scheduling."""
from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models.goal import Goal
from app.db.models.task import Task
from app.db.models.user import User
from app.services.errors import GenerationServiceError, PartialPersistenceFailure, TotalPersistenceFailure
from app.services.goal_service import (
    InvalidTaskRecordError,
    ScheduleConflictError,
    create_goal,
    schedule_goal,
    validate_manual_records,
)
from app.services.schedule_generation import build_schedule_prompt, generate_schedule
from app.services.schedule_parser import ParsedTaskRecord
from app.services.task_reconciliation import list_goal_tasks, reconcile_tasks


class _FakeClient:
    def __init__(self, text: str = "", error: GenerationServiceError | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def generate(self, prompt, *, system_prompt=None, json_mode=False):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt})
        if self.error:
            raise self.error
        return self.text


def _session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    User.__table__.create(bind=engine)
    Goal.__table__.create(bind=engine)
    Task.__table__.create(bind=engine)
    return TestingSession


@pytest.fixture()
def db():
    session = _session()()
    try:
        yield session
    finally:
        session.close()


def _seed_goal(db, start=date(2024, 3, 1), end=date(2024, 3, 5)) -> Goal:
    user = User(username="ada", email="ada@example.com")
    db.add(user)
    db.commit()
    return create_goal(db, user, title="Learn Python", description="", start_date=start, end_date=end)


def test_reconcile_round_trip(db) -> None:
    goal = _seed_goal(db)

    created = reconcile_tasks(db, goal.id, [ParsedTaskRecord(date="2024-03-01", task="Write unit tests")])
    tasks = list_goal_tasks(db, goal.id)

    assert [task.id for task in created] == [task.id for task in tasks]
    assert len(tasks) == 1
    assert tasks[0].date == date(2024, 3, 1)
    assert tasks[0].task == "Write unit tests"
    assert tasks[0].is_completed is False
    assert tasks[0].completion_notes is None


def test_reconcile_keeps_insertion_order_for_same_day(db) -> None:
    goal = _seed_goal(db)
    records = [
        ParsedTaskRecord(date="2024-03-02", task="Second day"),
        ParsedTaskRecord(date="2024-03-01", task="First A"),
        ParsedTaskRecord(date="2024-03-01", task="First B"),
    ]

    reconcile_tasks(db, goal.id, records)

    assert [task.task for task in list_goal_tasks(db, goal.id)] == ["First A", "First B", "Second day"]


def test_reconcile_reports_partial_failure(db) -> None:
    goal = _seed_goal(db)
    records = [
        ParsedTaskRecord(date="2024-03-01", task="Saved"),
        ParsedTaskRecord(date="2024-02-30", task="Impossible date"),
        ParsedTaskRecord(date="2024-03-03", task="Never reached"),
    ]

    with pytest.raises(PartialPersistenceFailure) as excinfo:
        reconcile_tasks(db, goal.id, records)

    assert excinfo.value.failed_index == 1
    assert excinfo.value.total == 3
    assert [task.task for task in excinfo.value.persisted] == ["Saved"]
    assert [task.task for task in list_goal_tasks(db, goal.id)] == ["Saved"]


def test_reconcile_reports_total_failure(db) -> None:
    goal = _seed_goal(db)

    with pytest.raises(TotalPersistenceFailure) as excinfo:
        reconcile_tasks(db, goal.id, [ParsedTaskRecord(date="2024-13-45", task="Bad")])

    assert excinfo.value.persisted == []
    assert list_goal_tasks(db, goal.id) == []


def test_reconcile_against_missing_goal_is_total_failure(db) -> None:
    with pytest.raises(TotalPersistenceFailure):
        reconcile_tasks(db, 999, [ParsedTaskRecord(date="2024-03-01", task="Orphan")])


def test_generate_schedule_uses_ai_records() -> None:
    client = _FakeClient("2024-03-01: Install Python\n2024-03-02: Variables: ints and strings")

    draft = generate_schedule(
        client,
        title="Learn Python",
        description="for data work",
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 2),
    )

    assert draft.source == "ai"
    assert draft.error is None
    assert [record.task for record in draft.records] == ["Install Python", "Variables: ints and strings"]
    assert "Additional context: for data work" in client.calls[0]["prompt"]
    assert client.calls[0]["system_prompt"]


@pytest.mark.parametrize(
    "client, reason",
    [
        (None, "missing_key"),
        (_FakeClient(error=GenerationServiceError("boom", kind="timeout")), "timeout"),
        (_FakeClient("Sorry, I cannot help with that."), "empty_schedule"),
        (_FakeClient("2024-02-30: Not a real day"), "empty_schedule"),
    ],
)
def test_generate_schedule_falls_back(client, reason) -> None:
    draft = generate_schedule(
        client,
        title="Learn Python",
        description="",
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 3),
    )

    assert draft.used_fallback
    assert draft.error == reason
    assert [record.date for record in draft.records] == ["2024-03-01", "2024-03-02", "2024-03-03"]


def test_generate_schedule_drops_impossible_dates_but_keeps_rest() -> None:
    client = _FakeClient("2024-02-29: Leap day\n2023-02-29: Not a leap year")

    draft = generate_schedule(
        client,
        title="Calendars",
        description="",
        start_date=date(2024, 2, 29),
        end_date=date(2024, 3, 1),
    )

    assert draft.source == "ai"
    assert [record.date for record in draft.records] == ["2024-02-29"]


def test_build_schedule_prompt_mentions_range_and_format() -> None:
    prompt = build_schedule_prompt("Rust", None, date(2024, 1, 1), date(2024, 1, 7))

    assert "between 2024-01-01 and 2024-01-07 for: Rust" in prompt
    assert "YYYY-MM-DD: Task description" in prompt
    assert "Additional context" not in prompt


def test_schedule_goal_marks_generated(db) -> None:
    goal = _seed_goal(db)
    client = _FakeClient("2024-03-01: Install Python\n2024-03-02: Write hello world")

    outcome = schedule_goal(db, client, goal)

    assert outcome.status == "generated"
    assert outcome.source == "ai"
    assert len(outcome.tasks) == 2
    db.refresh(goal)
    assert goal.schedule_status == "generated"
    assert goal.schedule_source == "ai"


def test_schedule_goal_marks_fallback(db) -> None:
    goal = _seed_goal(db)

    outcome = schedule_goal(db, _FakeClient(error=GenerationServiceError("down")), goal)

    assert outcome.status == "fallback"
    assert len(outcome.tasks) == 5
    assert goal.schedule_status == "fallback"


def test_schedule_goal_conflicts_without_replace(db) -> None:
    goal = _seed_goal(db)
    schedule_goal(db, None, goal)

    with pytest.raises(ScheduleConflictError):
        schedule_goal(db, None, goal)


def test_schedule_goal_replace_discards_previous_tasks(db) -> None:
    goal = _seed_goal(db)
    schedule_goal(db, None, goal)

    outcome = schedule_goal(db, _FakeClient("2024-03-01: Only task"), goal, replace=True)

    assert outcome.status == "generated"
    assert [task.task for task in list_goal_tasks(db, goal.id)] == ["Only task"]


class _CrashingClient:
    def generate(self, prompt, *, system_prompt=None, json_mode=False):
        raise RuntimeError("connection pool exhausted")


def test_schedule_goal_replace_keeps_old_tasks_when_generation_crashes(db) -> None:
    goal = _seed_goal(db)
    schedule_goal(db, _FakeClient("2024-03-01: Original task"), goal)
    done = list_goal_tasks(db, goal.id)[0]
    done.is_completed = True
    done.completion_notes = "Explained it"
    db.commit()

    with pytest.raises(RuntimeError):
        schedule_goal(db, _CrashingClient(), goal, replace=True)
    db.rollback()

    remaining = list_goal_tasks(db, goal.id)
    assert [(task.task, task.is_completed, task.completion_notes) for task in remaining] == [
        ("Original task", True, "Explained it")
    ]


def test_manual_records_reject_non_ascii_digits() -> None:
    with pytest.raises(InvalidTaskRecordError, match="YYYY-MM-DD"):
        validate_manual_records([("٢٠٢٤-٠٣-٠١", "Read")])

    assert validate_manual_records([(" 2024-03-01 ", " Read ")])[0].date == "2024-03-01"


def test_deleting_goal_cascades_to_tasks(db) -> None:
    goal = _seed_goal(db)
    schedule_goal(db, None, goal)
    goal_id = goal.id

    db.delete(goal)
    db.commit()

    assert db.query(Task).filter(Task.goal_id == goal_id).count() == 0
