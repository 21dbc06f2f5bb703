"""Daily routine ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from fitcoach.db.base import Base
from fitcoach.db.types import JSONBCompat


class DailyRoutine(Base):
    """One persisted day of a user's journey, stored as the structured plan JSON."""

    __tablename__ = "daily_routines"
    __table_args__ = (
        Index("ix_daily_routines_user_id", "user_id"),
        UniqueConstraint("user_id", "day_number", name="uq_daily_routines_user_day"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Text, nullable=False)
    day_number = Column(Integer, nullable=False)
    structured_plan = Column(JSONBCompat, nullable=False, default=dict)
    completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
