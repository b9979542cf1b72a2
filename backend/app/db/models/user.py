"""User ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, Text, func, text as sa_text
from sqlalchemy.orm import relationship

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False)
    # Cached statistics, refreshed by the stats job.
    streak = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    active_days = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    missing_days = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    goals = relationship("Goal", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
