"""Goal ORM model."""
from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.orm import relationship

from app.db.base import Base

SCHEDULE_STATUSES = ("pending", "generated", "fallback", "partial", "failed")


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (Index("ix_goals_user_id", "user_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, server_default=sa_text("''"), default="")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    schedule_status = Column(String(length=20), nullable=False, server_default=sa_text("'pending'"), default="pending")
    schedule_source = Column(String(length=20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="goals")
    tasks = relationship(
        "Task",
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Task.id",
    )
