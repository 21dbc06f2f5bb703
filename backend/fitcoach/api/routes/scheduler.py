"""Scheduled report routes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from fitcoach.api.schemas.schedule import (
    ScheduleCancelResponse,
    ScheduleCreatedResponse,
    ScheduleDetailResponse,
    ScheduleListResponse,
    ScheduleRequest,
    ScheduleStatusResponse,
    ScheduleSummary,
)
from fitcoach.core.errors import ScheduleValidationError
from fitcoach.observability.tracing import trace
from fitcoach.services.report_scheduler import ReportScheduler
from fitcoach.services.scheduler_factory import get_report_scheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.post("/schedule", response_model=ScheduleCreatedResponse)
def create_schedule(
    payload: ScheduleRequest,
    http_request: Request,
    scheduler: ReportScheduler = Depends(get_report_scheduler),
):
    """Register a ONE_TIME or RECURRING report."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"schedule_type": payload.schedule_type, "cron_expression": payload.cron_expression}
    try:
        with trace("scheduler.schedule", metadata=metadata, request_id=request_id):
            schedule_id = scheduler.schedule(payload)
    except ScheduleValidationError as exc:
        logger.warning("Invalid schedule request: %s", exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": str(exc)})
    except Exception as exc:
        logger.exception("Error scheduling report")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": f"Failed to schedule report: {exc}"},
        )

    is_one_time = payload.schedule_type.strip().upper() == "ONE_TIME"
    return ScheduleCreatedResponse(
        schedule_id=schedule_id,
        message="One-time report scheduled successfully" if is_one_time else "Recurring report scheduled successfully",
        scheduled_for=scheduler.localize(payload.scheduled_date_time) if is_one_time else None,
        cron_expression=None if is_one_time else payload.cron_expression,
        email=payload.email,
    )


@router.delete("/schedule/{schedule_id}", response_model=ScheduleCancelResponse)
def cancel_schedule(schedule_id: str, scheduler: ReportScheduler = Depends(get_report_scheduler)):
    if scheduler.cancel(schedule_id):
        return ScheduleCancelResponse(success=True, message="Schedule cancelled successfully", schedule_id=schedule_id)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "success": False,
            "message": "Schedule not found or already completed",
            "scheduleId": schedule_id,
        },
    )


@router.get("/schedules", response_model=ScheduleListResponse)
def list_schedules(scheduler: ReportScheduler = Depends(get_report_scheduler)) -> ScheduleListResponse:
    schedules = {schedule_id: ScheduleSummary.from_job(job) for schedule_id, job in scheduler.list_all().items()}
    return ScheduleListResponse(total_schedules=len(schedules), schedules=schedules)


@router.get("/schedule/{schedule_id}", response_model=ScheduleDetailResponse)
def get_schedule(schedule_id: str, scheduler: ReportScheduler = Depends(get_report_scheduler)):
    job = scheduler.get(schedule_id)
    if job is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "Schedule not found"},
        )
    return ScheduleDetailResponse(
        schedule_id=schedule_id,
        schedule=ScheduleSummary.from_job(job),
        is_active=scheduler.is_active(schedule_id),
    )


@router.get("/schedule/{schedule_id}/status", response_model=ScheduleStatusResponse)
def get_schedule_status(
    schedule_id: str,
    scheduler: ReportScheduler = Depends(get_report_scheduler),
) -> ScheduleStatusResponse:
    found, active = scheduler.get_status(schedule_id)
    return ScheduleStatusResponse(
        schedule_id=schedule_id,
        found=found,
        is_active=active,
        status="ACTIVE" if active else "INACTIVE",
    )
