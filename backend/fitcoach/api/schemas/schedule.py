"""Schemas for scheduled report endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from fitcoach.api.schemas.base import CamelModel
from fitcoach.api.schemas.plan import PlanRequest
from fitcoach.services.schedule_models import ScheduleJob


class ScheduleRequest(CamelModel):
    """Body of ``POST /scheduler/schedule``; required fields are checked by the scheduler."""

    schedule_type: Optional[str] = Field(default=None, description="ONE_TIME or RECURRING")
    scheduled_date_time: Optional[datetime] = None
    cron_expression: Optional[str] = Field(default=None, description="6-field cron, e.g. 0 0 9 * * MON")
    plan_request: Optional[PlanRequest] = None
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    report_name: Optional[str] = None
    generate_pdf: bool = False
    send_email: bool = False
    send_whatsapp: bool = Field(default=False, alias="sendWhatsApp")


class ScheduleSummary(CamelModel):
    schedule_id: str
    schedule_type: str
    scheduled_date_time: Optional[datetime] = None
    cron_expression: Optional[str] = None
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    report_name: Optional[str] = None
    generate_pdf: bool
    send_email: bool
    send_whatsapp: bool = Field(alias="sendWhatsApp")
    plan_request: PlanRequest
    created_at: datetime

    @classmethod
    def from_job(cls, job: ScheduleJob) -> "ScheduleSummary":
        return cls(
            schedule_id=job.schedule_id,
            schedule_type=job.schedule_type.value,
            scheduled_date_time=job.run_at,
            cron_expression=job.cron_expression,
            email=job.targets.email,
            whatsapp_number=job.targets.whatsapp_number,
            report_name=job.report_name,
            generate_pdf=job.flags.generate_pdf,
            send_email=job.flags.send_email,
            send_whatsapp=job.flags.send_whatsapp,
            plan_request=job.plan_request,
            created_at=job.created_at,
        )


class ScheduleCreatedResponse(CamelModel):
    success: bool = True
    schedule_id: str
    message: str
    scheduled_for: Optional[datetime] = None
    cron_expression: Optional[str] = None
    email: Optional[str] = None


class ScheduleCancelResponse(CamelModel):
    success: bool
    message: str
    schedule_id: str


class ScheduleListResponse(CamelModel):
    success: bool = True
    total_schedules: int
    schedules: Dict[str, ScheduleSummary]


class ScheduleDetailResponse(CamelModel):
    success: bool = True
    schedule_id: str
    schedule: ScheduleSummary
    is_active: bool


class ScheduleStatusResponse(CamelModel):
    schedule_id: str
    found: bool
    is_active: bool
    status: str
