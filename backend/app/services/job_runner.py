"""Batch job that refreshes the cached streak statistics on user rows."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.db.models.user import User
from app.services.dashboard_service import fetch_user_tasks, summarize_days

logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    users_updated: int
    failures: int = 0


def refresh_stats_for_user(db: Session, user_id: int, *, today: Optional[date] = None) -> bool:
    """Recompute one user's stats; returns True when the stored values changed."""
    user = db.get(User, user_id)
    if not user:
        raise ValueError(f"User {user_id} not found")

    summary = summarize_days(fetch_user_tasks(db, user_id), today or date.today())
    changed = (user.streak, user.active_days, user.missing_days) != (
        summary.streak,
        summary.active_days,
        summary.missing_days,
    )
    if changed:
        user.streak = summary.streak
        user.active_days = summary.active_days
        user.missing_days = summary.missing_days
        db.add(user)
        db.commit()
    return changed


def refresh_stats_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[int]] = None,
    today: Optional[date] = None,
) -> JobRunResult:
    ids = _normalize_user_ids(user_ids, db)
    processed = 0
    updated = 0
    failures = 0
    for uid in ids:
        try:
            changed = refresh_stats_for_user(db, uid, today=today)
        except Exception:  # pragma: no cover
            db.rollback()
            failures += 1
            logger.exception("Stats refresh failed for user %s", uid)
            continue
        processed += 1
        if changed:
            updated += 1
    return JobRunResult(users_processed=processed, users_updated=updated, failures=failures)


def _normalize_user_ids(user_ids: Optional[Iterable[int]], db: Session) -> List[int]:
    if user_ids is None:
        return [row[0] for row in db.query(User.id).order_by(User.id).all()]
    return list(dict.fromkeys(user_ids))
