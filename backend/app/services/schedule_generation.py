"""Turn a goal into a dated task list via the AI service, with a fixed fallback."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.ai_client import GenerationClient, require_client
from app.services.errors import EmptyScheduleError, GenerationServiceError
from app.services.schedule_fallback import generate_fallback_schedule
from app.services.schedule_parser import ParsedTaskRecord, extract_schedule

logger = logging.getLogger(__name__)

SCHEDULE_SYSTEM_PROMPT = (
    "You are an AI schedule generator for a learning goal tracking app.\n"
    "Create a detailed daily schedule between the given dates that will help achieve the learning goal.\n"
    "Break down the goal into logical, achievable daily tasks.\n"
    "Each task should build upon previous learning.\n"
    "Format each task exactly as: YYYY-MM-DD: [specific task description]"
)


@dataclass
class ScheduleDraft:
    records: List[ParsedTaskRecord]
    source: str
    error: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == "fallback"


def build_schedule_prompt(title: str, description: str | None, start_date: date, end_date: date) -> str:
    context_line = f"Additional context: {description.strip()}\n" if description and description.strip() else ""
    return (
        f"Create a learning schedule between {start_date.isoformat()} and {end_date.isoformat()} for: {title}\n"
        f"{context_line}\n"
        "Break down the learning into daily tasks that:\n"
        "1. Start with fundamentals\n"
        "2. Gradually increase in complexity\n"
        "3. Include practical exercises\n"
        "4. Are specific and actionable\n\n"
        "Format each task exactly as:\n"
        "YYYY-MM-DD: Task description\n\n"
        "Example:\n"
        "2025-02-27: Complete Python basics tutorial and write first script\n"
        "2025-02-28: Practice Python functions and basic data structures"
    )


def generate_schedule(
    client: Optional[GenerationClient],
    *,
    title: str,
    description: str | None,
    start_date: date,
    end_date: date,
    request_id: str | None = None,
) -> ScheduleDraft:
    """Return AI-derived records, or the fallback schedule when generation fails."""
    metadata = {
        "title_length": len(title),
        "days": (end_date - start_date).days + 1,
        "request_id": request_id,
    }
    error: str
    with trace("schedule.generate", metadata=metadata, request_id=request_id):
        try:
            raw_text = require_client(client).generate(
                build_schedule_prompt(title, description, start_date, end_date),
                system_prompt=SCHEDULE_SYSTEM_PROMPT,
            )
            records = _drop_impossible_dates(extract_schedule(raw_text))
        except GenerationServiceError as exc:
            error = exc.kind
            logger.warning("Schedule generation failed (%s); using fallback schedule", exc.kind)
        except EmptyScheduleError:
            error = "empty_schedule"
            logger.warning("AI response had no parseable tasks; using fallback schedule")
        else:
            log_metric("schedule.generate.ai", 1, metadata={"records": len(records)})
            return ScheduleDraft(records=records, source="ai")

    log_metric("schedule.generate.fallback", 1, metadata={"reason": error})
    return ScheduleDraft(
        records=generate_fallback_schedule(start_date, end_date, title),
        source="fallback",
        error=error,
    )


def _drop_impossible_dates(records: List[ParsedTaskRecord]) -> List[ParsedTaskRecord]:
    """Remove records like 2024-02-30 that pass the format check but are not calendar days."""
    kept: List[ParsedTaskRecord] = []
    for record in records:
        try:
            date.fromisoformat(record.date)
        except ValueError:
            logger.debug("Dropping schedule record with impossible date %s", record.date)
            continue
        kept.append(record)
    if not kept:
        raise EmptyScheduleError("Generated schedule only contained impossible dates")
    return kept
