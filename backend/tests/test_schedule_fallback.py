"""Tests for the generic fallback schedule."""
from __future__ import annotations

from datetime import date

from app.services.schedule_fallback import FALLBACK_TASK_POOL, generate_fallback_schedule


def test_single_day_range_yields_one_record() -> None:
    records = generate_fallback_schedule("2024-01-01", "2024-01-01", "X")

    assert len(records) == 1
    assert records[0].date == "2024-01-01"
    assert records[0].task.endswith("related to X")


def test_long_range_is_capped_at_pool_size() -> None:
    records = generate_fallback_schedule(date(2024, 1, 1), date(2024, 1, 30), "Rust")

    assert len(records) == len(FALLBACK_TASK_POOL) == 8


def test_records_walk_consecutive_days_through_the_pool() -> None:
    records = generate_fallback_schedule(date(2024, 2, 27), date(2024, 3, 2), "Linear Algebra")

    assert [record.date for record in records] == [
        "2024-02-27",
        "2024-02-28",
        "2024-02-29",
        "2024-03-01",
        "2024-03-02",
    ]
    assert records[0].task == "Research basics and fundamental concepts related to Linear Algebra"
    assert records[4].task == "Work on a small project applying what you've learned related to Linear Algebra"


def test_generation_is_deterministic() -> None:
    first = generate_fallback_schedule("2024-05-01", "2024-05-10", "Go")
    second = generate_fallback_schedule("2024-05-01", "2024-05-10", "Go")

    assert first == second


def test_reversed_range_yields_nothing() -> None:
    assert generate_fallback_schedule("2024-05-10", "2024-05-01", "Go") == []
