"""ORM models exposed for metadata discovery."""
from fitcoach.db.models.daily_routine import DailyRoutine

__all__ = [
    "DailyRoutine",
]
