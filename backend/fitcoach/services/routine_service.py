"""Persistence helpers for a user's day-by-day routines."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from fitcoach.db.models.daily_routine import DailyRoutine


logger = logging.getLogger(__name__)


def save_daily_routine(db: Session, user_id: str, structured_plan: dict) -> DailyRoutine:
    """Append the next day for ``user_id``: one past the latest stored day, or day 1."""
    latest = (
        db.query(func.max(DailyRoutine.day_number))
        .filter(DailyRoutine.user_id == user_id)
        .scalar()
    )
    routine = DailyRoutine(
        user_id=user_id,
        day_number=(latest or 0) + 1,
        structured_plan=structured_plan,
        completed=False,
    )
    db.add(routine)
    db.commit()
    db.refresh(routine)
    logger.info("Saved routine day %s for user %s", routine.day_number, user_id)
    return routine


def list_routines(db: Session, user_id: str) -> List[DailyRoutine]:
    return (
        db.query(DailyRoutine)
        .filter(DailyRoutine.user_id == user_id)
        .order_by(DailyRoutine.day_number.asc())
        .all()
    )


def get_routine_by_day(db: Session, user_id: str, day_number: int) -> Optional[DailyRoutine]:
    return (
        db.query(DailyRoutine)
        .filter(DailyRoutine.user_id == user_id, DailyRoutine.day_number == day_number)
        .one_or_none()
    )


def get_current_routine(db: Session, user_id: str) -> Optional[DailyRoutine]:
    """Latest day stored for the user."""
    return (
        db.query(DailyRoutine)
        .filter(DailyRoutine.user_id == user_id)
        .order_by(DailyRoutine.day_number.desc())
        .first()
    )


def mark_routine_completed(db: Session, routine_id: UUID) -> DailyRoutine:
    routine = db.get(DailyRoutine, routine_id)
    if not routine:
        raise ValueError(f"Routine not found: {routine_id}")
    routine.completed = True
    routine.completed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(routine)
    logger.info("Marked routine %s (day %s) completed", routine.id, routine.day_number)
    return routine


def count_completed_routines(db: Session, user_id: str) -> int:
    return (
        db.query(func.count(DailyRoutine.id))
        .filter(DailyRoutine.user_id == user_id, DailyRoutine.completed.is_(True))
        .scalar()
        or 0
    )


def delete_routines_for_user(db: Session, user_id: str) -> int:
    deleted = db.query(DailyRoutine).filter(DailyRoutine.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted %s routines for user %s", deleted, user_id)
    return deleted
