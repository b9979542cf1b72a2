"""Parse loosely formatted `YYYY-MM-DD: task` text returned by the AI service."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List

from app.services.errors import EmptyScheduleError

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


@dataclass(frozen=True)
class ParsedTaskRecord:
    date: str
    task: str


def iter_schedule_records(raw_text: str | None) -> Iterator[ParsedTaskRecord]:
    """Yield records in input order, silently skipping lines of the wrong shape.

    Only the first colon separates the date from the task, so a task such as
    ``Read Ch.3: Intro`` keeps its own colons. The date must match
    ``DATE_PATTERN`` exactly (ASCII digits only); no calendar validation is
    done here. Lines break on the newline character alone, so other Unicode
    line separators stay inside the task text.
    """
    for line in (raw_text or "").split("\n"):
        line = line.strip()
        if not line or ":" not in line:
            continue
        date_part, task_part = line.split(":", 1)
        date_part = date_part.strip()
        task_part = task_part.strip()
        if not DATE_PATTERN.match(date_part):
            logger.debug("Skipping schedule line without an ISO date: %r", line[:80])
            continue
        if not task_part:
            logger.debug("Skipping schedule line with an empty task: %r", line[:80])
            continue
        yield ParsedTaskRecord(date=date_part, task=task_part)


def parse_schedule_text(raw_text: str | None) -> List[ParsedTaskRecord]:
    return list(iter_schedule_records(raw_text))


def extract_schedule(raw_text: str | None) -> List[ParsedTaskRecord]:
    """Parse and insist on at least one record."""
    records = parse_schedule_text(raw_text)
    if not records:
        raise EmptyScheduleError("No valid tasks found in the generated schedule")
    return records
