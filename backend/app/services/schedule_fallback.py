"""Deterministic schedule used when the AI service cannot produce one."""
from __future__ import annotations

from datetime import date, timedelta
from typing import List

from app.services.schedule_parser import ParsedTaskRecord

FALLBACK_TASK_POOL = (
    "Research basics and fundamental concepts",
    "Complete introductory tutorials",
    "Practice basic exercises",
    "Review previous material and start intermediate concepts",
    "Work on a small project applying what you've learned",
    "Dive into advanced topics",
    "Complete a challenge project",
    "Review all material and identify knowledge gaps",
)


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def generate_fallback_schedule(start_date: date | str, end_date: date | str, goal_title: str) -> List[ParsedTaskRecord]:
    """One generic task per day from start_date, capped at the pool size.

    Ranges longer than the pool still produce only ``len(FALLBACK_TASK_POOL)``
    records. An end before the start produces nothing.
    """
    start = _as_date(start_date)
    end = _as_date(end_date)
    days_count = (end - start).days + 1

    records: List[ParsedTaskRecord] = []
    for offset in range(min(days_count, len(FALLBACK_TASK_POOL))):
        current = start + timedelta(days=offset)
        records.append(
            ParsedTaskRecord(
                date=current.isoformat(),
                task=f"{FALLBACK_TASK_POOL[offset]} related to {goal_title}",
            )
        )
    return records
