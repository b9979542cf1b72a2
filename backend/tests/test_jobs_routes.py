from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.deps import get_db
from app.db.models.goal import Goal
from app.db.models.task import Task
from app.db.models.user import User
from app.main import app


@pytest.fixture()
def session_factory():
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

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    User.__table__.create(bind=engine)
    Goal.__table__.create(bind=engine)
    Task.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestingSessionLocal
    app.dependency_overrides.clear()


def _seed_user_with_done_task(session_factory) -> int:
    session = session_factory()
    try:
        user = User(username="runner", email="r@example.com")
        session.add(user)
        session.flush()
        yesterday = date.today() - timedelta(days=1)
        goal = Goal(user_id=user.id, title="Swim", start_date=yesterday, end_date=date.today())
        session.add(goal)
        session.flush()
        session.add(Task(goal_id=goal.id, date=yesterday, task="Laps", is_completed=True))
        session.commit()
        return user.id
    finally:
        session.close()


def test_jobs_config_and_run_now(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "debug", True)
    user_id = _seed_user_with_done_task(session_factory)

    with TestClient(app) as test_client:
        config = test_client.get("/jobs")
        run_all = test_client.post("/jobs/run-now", json={"job": "user_stats"})
        run_one = test_client.post("/jobs/run-now", json={"user_id": user_id})
        missing = test_client.post("/jobs/run-now", json={"user_id": 999})

    assert config.status_code == 200
    assert "scheduler_enabled" in config.json()
    assert config.json()["schedule"]["user_stats_time"]

    assert run_all.status_code == 200
    assert run_all.json()["users_processed"] == 1
    assert run_all.json()["users_updated"] == 1
    assert run_all.json()["request_id"]

    assert run_one.json()["users_updated"] == 0
    assert missing.status_code == 404

    with session_factory() as session:
        assert session.get(User, user_id).streak == 1


def test_jobs_run_now_forbidden_outside_debug(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "debug", False)
    with TestClient(app) as test_client:
        resp = test_client.post("/jobs/run-now", json={"job": "user_stats"})
    assert resp.status_code == 403


def test_jobs_run_now_rejects_unknown_job(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "debug", True)
    with TestClient(app) as test_client:
        resp = test_client.post("/jobs/run-now", json={"job": "weekly_plan"})
    assert resp.status_code == 422
