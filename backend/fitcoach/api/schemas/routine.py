"""Schemas for persisted daily routines."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fitcoach.api.schemas.base import CamelModel


class RoutineSummary(CamelModel):
    id: UUID
    user_id: str
    day_number: int
    structured_plan: Dict[str, Any]
    completed: bool
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RoutineListResponse(CamelModel):
    user_id: str
    total_days: int
    completed_days: int
    routines: List[RoutineSummary]


class RoutineDeleteResponse(CamelModel):
    success: bool = True
    user_id: str
    deleted: int
