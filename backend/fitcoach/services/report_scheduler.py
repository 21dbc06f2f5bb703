"""APScheduler-backed registration and firing of report schedules."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, JobSubmissionEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.util import convert_to_datetime

from fitcoach.api.schemas.plan import PlanRequest
from fitcoach.api.schemas.schedule import ScheduleRequest
from fitcoach.core.config import settings
from fitcoach.core.context import schedule_id_ctx_var
from fitcoach.core.errors import ScheduleValidationError
from fitcoach.observability.metrics import log_metric
from fitcoach.services.report_executor import ReportExecutor
from fitcoach.services.schedule_models import DeliveryFlags, DeliveryTargets, ScheduleJob, ScheduleType
from fitcoach.services.schedule_store import ScheduleStore


logger = logging.getLogger(__name__)

CRON_FIELDS = ("second", "minute", "hour", "day", "month", "day_of_week")
# Cron day-of-week numbering: 0 and 7 are Sunday.
_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")
_NUMBER_RE = re.compile(r"\d+")


def parse_cron_expression(expression: str, timezone: Optional[tzinfo] = None) -> CronTrigger:
    """
    Build a CronTrigger from a 6-field ``second minute hour day month day-of-week`` expression.

    ``?`` is read as ``*``, ``L`` in the day field as the last day of the month,
    and numeric weekdays follow cron numbering (0/7 Sunday, 1 Monday).
    Raises ScheduleValidationError for anything APScheduler rejects.
    """
    fields = (expression or "").split()
    if len(fields) != len(CRON_FIELDS):
        raise ScheduleValidationError(
            f"Invalid cron expression '{expression}': expected 6 fields "
            "(second minute hour day-of-month month day-of-week)"
        )
    values = [field.replace("?", "*").lower() for field in fields]
    if values[3] == "l":
        values[3] = "last"
    try:
        values[5] = _translate_weekdays(values[5])
        return CronTrigger(timezone=timezone, **dict(zip(CRON_FIELDS, values)))
    except ValueError as exc:
        raise ScheduleValidationError(f"Invalid cron expression '{expression}': {exc}") from exc


def _translate_weekdays(field: str) -> str:
    def _name(match: re.Match) -> str:
        index = int(match.group(0))
        if index >= len(_WEEKDAY_NAMES):
            raise ValueError(f"day-of-week value {index} out of range (0-7)")
        return _WEEKDAY_NAMES[index]

    parts = []
    for part in field.split(","):
        values, slash, step = part.partition("/")
        parts.append(_NUMBER_RE.sub(_name, values) + slash + step)
    return ",".join(parts)


def fire_times_between(trigger: CronTrigger, start: datetime, end: datetime) -> List[datetime]:
    """All fire times of ``trigger`` in ``[start, end)``; both bounds must be timezone-aware."""
    times: List[datetime] = []
    previous: Optional[datetime] = None
    now = start
    while True:
        fire_time = trigger.get_next_fire_time(previous, now)
        if fire_time is None or fire_time >= end:
            return times
        times.append(fire_time)
        previous = fire_time
        now = fire_time + timedelta(microseconds=1)


class _ApschedulerHandle:
    """Handle over one APScheduler job id; active until it fires for the last time or is cancelled."""

    def __init__(self, scheduler: BackgroundScheduler, job_id: str):
        self._scheduler = scheduler
        self._job_id = job_id
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            logger.debug("Job %s already gone from the scheduler", self._job_id)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def is_active(self) -> bool:
        return not self._cancelled and self._scheduler.get_job(self._job_id) is not None


class ReportScheduler:
    """
    Registers ONE_TIME and RECURRING report schedules and hands each firing to the executor.

    Firings run on a fixed thread pool. One schedule never runs concurrently with
    itself: a firing that arrives while the previous run is still executing is
    skipped, and missed firings are coalesced into one.
    """

    def __init__(
        self,
        store: ScheduleStore,
        executor: ReportExecutor,
        *,
        pool_size: Optional[int] = None,
        timezone: Optional[str] = None,
    ):
        self.store = store
        self._executor = executor
        self._scheduler = BackgroundScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": ThreadPoolExecutor(pool_size or settings.scheduler_pool_size)},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": None},
            timezone=timezone or settings.scheduler_timezone,
        )
        self._scheduler.add_listener(self._on_skipped, EVENT_JOB_MAX_INSTANCES)

    @property
    def timezone(self) -> tzinfo:
        return self._scheduler.timezone

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Report scheduler started (timezone=%s)", self.timezone)

    def shutdown(self, wait: bool = True) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Report scheduler stopped")

    def schedule(self, request: ScheduleRequest) -> str:
        """Validate an API request and register it; raises ScheduleValidationError."""
        if not request.schedule_type:
            raise ScheduleValidationError("scheduleType is required (ONE_TIME or RECURRING)")
        if request.plan_request is None:
            raise ScheduleValidationError("planRequest is required")

        schedule_type = request.schedule_type.strip().upper()
        targets = DeliveryTargets(email=request.email, whatsapp_number=request.whatsapp_number)
        flags = DeliveryFlags(
            generate_pdf=request.generate_pdf,
            send_email=request.send_email,
            send_whatsapp=request.send_whatsapp,
        )
        if schedule_type == ScheduleType.ONE_TIME.value:
            if request.scheduled_date_time is None:
                raise ScheduleValidationError("scheduledDateTime is required for ONE_TIME schedules")
            return self.schedule_one_time(
                request.plan_request, request.scheduled_date_time, targets, flags, request.report_name
            )
        if schedule_type == ScheduleType.RECURRING.value:
            if not request.cron_expression or not request.cron_expression.strip():
                raise ScheduleValidationError("cronExpression is required for RECURRING schedules")
            return self.schedule_recurring(
                request.plan_request, request.cron_expression.strip(), targets, flags, request.report_name
            )
        raise ScheduleValidationError("scheduleType must be ONE_TIME or RECURRING")

    def schedule_one_time(
        self,
        plan_request: PlanRequest,
        run_at: datetime,
        targets: Optional[DeliveryTargets] = None,
        flags: Optional[DeliveryFlags] = None,
        report_name: Optional[str] = None,
    ) -> str:
        """Arm a single firing at ``run_at`` (naive values are local to the scheduler); past times fire now."""
        aware_run_at = self.localize(run_at)
        run_date = max(aware_run_at, datetime.now(self.timezone))
        job = ScheduleJob(
            schedule_id=str(uuid4()),
            schedule_type=ScheduleType.ONE_TIME,
            plan_request=plan_request,
            run_at=aware_run_at,
            targets=targets or DeliveryTargets(),
            flags=flags or DeliveryFlags(),
            report_name=report_name,
        )
        logger.info("Scheduling one-time report %s for %s", job.schedule_id, aware_run_at.isoformat())
        self._register(job, DateTrigger(run_date=run_date, timezone=self.timezone))
        return job.schedule_id

    def schedule_recurring(
        self,
        plan_request: PlanRequest,
        cron_expression: str,
        targets: Optional[DeliveryTargets] = None,
        flags: Optional[DeliveryFlags] = None,
        report_name: Optional[str] = None,
    ) -> str:
        trigger = parse_cron_expression(cron_expression, self.timezone)
        job = ScheduleJob(
            schedule_id=str(uuid4()),
            schedule_type=ScheduleType.RECURRING,
            plan_request=plan_request,
            cron_expression=cron_expression,
            targets=targets or DeliveryTargets(),
            flags=flags or DeliveryFlags(),
            report_name=report_name,
        )
        logger.info("Scheduling recurring report %s with cron '%s'", job.schedule_id, cron_expression)
        self._register(job, trigger)
        return job.schedule_id

    def localize(self, value: datetime) -> datetime:
        """Attach the scheduler timezone to naive values; aware values keep their offset."""
        return convert_to_datetime(value, self.timezone, "run_at")

    def cancel(self, schedule_id: str) -> bool:
        """Stop future firings; a run already in progress completes. False when unknown or finished."""
        entry = self.store.remove(schedule_id)
        if entry is None:
            logger.warning("Schedule not found or already completed: %s", schedule_id)
            return False
        if entry.handle:
            entry.handle.cancel()
        log_metric("scheduler.cancelled", 1, metadata={"schedule_type": entry.job.schedule_type.value})
        logger.info("Scheduled report cancelled: %s", schedule_id)
        return True

    def get(self, schedule_id: str) -> Optional[ScheduleJob]:
        return self.store.get(schedule_id)

    def get_status(self, schedule_id: str) -> Tuple[bool, bool]:
        """Return ``(found, active)``."""
        if schedule_id not in self.store:
            return False, False
        return True, self.store.is_active(schedule_id)

    def is_active(self, schedule_id: str) -> bool:
        return self.store.is_active(schedule_id)

    def list_all(self) -> Dict[str, ScheduleJob]:
        return self.store.list_all()

    def _register(self, job: ScheduleJob, trigger) -> None:
        # The entry must exist before the trigger is armed; a past run_date can fire immediately.
        handle = _ApschedulerHandle(self._scheduler, job.schedule_id)
        self.store.register(job, handle)
        try:
            self._scheduler.add_job(
                self._fire,
                trigger=trigger,
                args=[job.schedule_id],
                id=job.schedule_id,
                name=job.display_name,
            )
        except Exception:
            self.store.remove(job.schedule_id)
            raise
        if handle.cancelled:
            # Cancelled before the job existed in APScheduler; disarm it now.
            self._remove_job(job.schedule_id)
            logger.info("Schedule %s was cancelled during registration", job.schedule_id)
            return
        log_metric("scheduler.registered", 1, metadata={"schedule_type": job.schedule_type.value})

    def _fire(self, schedule_id: str) -> None:
        job = self.store.get(schedule_id)
        if job is None:
            logger.info("Schedule %s is no longer registered; skipping firing", schedule_id)
            self._remove_job(schedule_id)
            return
        token = schedule_id_ctx_var.set(schedule_id)
        try:
            self._executor.run(job)
        except Exception:
            logger.exception("Scheduled report %s raised an unexpected error", schedule_id)
            log_metric("reports.run.failed", 1, metadata={"stage": "unexpected"})
        finally:
            schedule_id_ctx_var.reset(token)

    def _remove_job(self, job_id: str) -> None:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.debug("Job %s already gone from the scheduler", job_id)

    def _on_skipped(self, event: JobSubmissionEvent) -> None:
        logger.warning(
            "Skipped firing of %s at %s: previous run still in progress",
            event.job_id,
            ", ".join(run_time.isoformat() for run_time in event.scheduled_run_times),
        )
