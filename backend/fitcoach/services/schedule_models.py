"""In-memory records describing registered report schedules."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fitcoach.api.schemas.plan import PlanRequest


class ScheduleType(str, enum.Enum):
    ONE_TIME = "ONE_TIME"
    RECURRING = "RECURRING"


@dataclass(frozen=True)
class DeliveryTargets:
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None


@dataclass(frozen=True)
class DeliveryFlags:
    generate_pdf: bool = False
    send_email: bool = False
    send_whatsapp: bool = False


@dataclass(frozen=True)
class ScheduleJob:
    """Immutable snapshot of one schedule; the store owns it for its whole lifetime."""

    schedule_id: str
    schedule_type: ScheduleType
    plan_request: PlanRequest
    run_at: Optional[datetime] = None
    cron_expression: Optional[str] = None
    targets: DeliveryTargets = field(default_factory=DeliveryTargets)
    flags: DeliveryFlags = field(default_factory=DeliveryFlags)
    report_name: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def display_name(self) -> str:
        return self.report_name or f"Fitness Plan {self.schedule_id}"
