"""Wrap extracted day plans into the journey envelope returned to callers."""
from __future__ import annotations

import logging
from typing import Optional

from fitcoach.api.schemas.journey import DayPlan, Journey, JourneyOverview
from fitcoach.core.config import settings
from fitcoach.services.plan_extractor import extract_day_plan, fallback_meal, fallback_workout


logger = logging.getLogger(__name__)

FALLBACK_PROGRESS = "Expected to see initial improvements"
FALLBACK_TIPS = "Stay hydrated and maintain consistency!"


def build_journey(raw_plan: Optional[str], current_day: int = 1, total_days: Optional[int] = None) -> Journey:
    """Parse today's plan out of ``raw_plan`` and wrap it; falls back to a default journey on any error."""
    days = total_days or settings.journey_total_days
    try:
        day_plan = extract_day_plan(raw_plan, current_day)
        return Journey(
            current_day=current_day,
            total_days=days,
            overview=JourneyOverview(),
            days=[day_plan],
        )
    except Exception:
        logger.exception("Failed to assemble journey for day %s; returning fallback", current_day)
        return fallback_journey(current_day, days)


def fallback_journey(current_day: int = 1, total_days: Optional[int] = None) -> Journey:
    day = max(current_day, 1)
    return Journey(
        current_day=day,
        total_days=total_days or settings.journey_total_days,
        overview=JourneyOverview(estimated_progress=FALLBACK_PROGRESS),
        days=[
            DayPlan(
                day_number=day,
                workout=fallback_workout(),
                meal=fallback_meal(),
                tips=FALLBACK_TIPS,
            )
        ],
    )


def journey_to_payload(journey: Journey) -> dict:
    """camelCase dict ready for JSON responses or a JSON column."""
    return journey.model_dump(mode="json", by_alias=True)
