"""Helpers for working with users."""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User


class DuplicateUsernameError(ValueError):
    """Username is already registered."""


def create_user(db: Session, *, username: str, email: str) -> User:
    """Insert a user row, translating the unique-username violation."""
    user = User(username=username, email=email)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateUsernameError(f"Username {username!r} is taken") from exc
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)
