"""Process-wide report scheduler wiring."""
from __future__ import annotations

from functools import lru_cache

from fitcoach.services.notifications.factory import get_email_sender, get_messaging_sender
from fitcoach.services.pdf_renderer import PdfRenderer
from fitcoach.services.plan_generator import PlanGenerator
from fitcoach.services.report_executor import ReportExecutor
from fitcoach.services.report_scheduler import ReportScheduler
from fitcoach.services.schedule_store import ScheduleStore


@lru_cache
def get_report_scheduler() -> ReportScheduler:
    store = ScheduleStore()
    executor = ReportExecutor(
        store=store,
        generator=PlanGenerator(),
        renderer=PdfRenderer(),
        email_sender=get_email_sender(),
        messaging_sender=get_messaging_sender(),
    )
    return ReportScheduler(store, executor)
