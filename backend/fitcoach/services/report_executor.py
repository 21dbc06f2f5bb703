"""Pipeline run on every firing of a report schedule."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

from fitcoach.core.errors import DeliveryFailure, FitCoachError
from fitcoach.observability.metrics import log_metric
from fitcoach.observability.tracing import trace
from fitcoach.services.notifications.base import EmailSender, MessagingSender
from fitcoach.services.notifications.messages import (
    build_failure_email,
    build_scheduled_report_caption,
    build_scheduled_report_email,
    build_scheduled_report_message,
)
from fitcoach.services.pdf_renderer import PdfRenderer, build_report_file_name
from fitcoach.services.plan_generator import PlanGenerator
from fitcoach.services.schedule_models import ScheduleJob, ScheduleType
from fitcoach.services.schedule_store import ScheduleStore


logger = logging.getLogger(__name__)


@dataclass
class ReportRunResult:
    schedule_id: str
    pdf_path: Optional[str] = None
    email_sent: bool = False
    whatsapp_sent: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ReportExecutor:
    """
    Generate, render and deliver one scheduled report.

    Generation and rendering failures end the run with a best-effort failure
    email. Each delivery channel is attempted on its own, so a broken SMTP
    relay does not stop the WhatsApp message. ONE_TIME schedules leave the
    store when the run ends, whatever the outcome.
    """

    def __init__(
        self,
        store: ScheduleStore,
        generator: PlanGenerator,
        renderer: PdfRenderer,
        email_sender: EmailSender,
        messaging_sender: MessagingSender,
    ):
        self._store = store
        self._generator = generator
        self._renderer = renderer
        self._email = email_sender
        self._messaging = messaging_sender

    def run(self, job: ScheduleJob) -> ReportRunResult:
        logger.info("Executing scheduled report %s (%s)", job.schedule_id, job.schedule_type.value)
        result = ReportRunResult(schedule_id=job.schedule_id)
        start = perf_counter()
        metadata = {
            "schedule_type": job.schedule_type.value,
            "generate_pdf": job.flags.generate_pdf,
            "send_email": job.flags.send_email,
            "send_whatsapp": job.flags.send_whatsapp,
        }
        try:
            with trace("reports.run", metadata=metadata, schedule_id=job.schedule_id) as span:
                try:
                    plan_text = self._generator.generate(job.plan_request)
                    if job.flags.generate_pdf:
                        file_name = build_report_file_name(job.report_name, job.schedule_id)
                        result.pdf_path = self._renderer.render(plan_text, file_name)
                except FitCoachError as exc:
                    result.error = str(exc)
                    logger.error("Scheduled report %s failed: %s", job.schedule_id, exc)
                    log_metric("reports.run.failed", 1, metadata={"stage": type(exc).__name__})
                    self._notify_failure(job, exc)
                    return result

                if job.flags.send_email and job.targets.email:
                    result.email_sent = self._deliver_email(job, result.pdf_path)
                if job.flags.send_whatsapp and job.targets.whatsapp_number:
                    result.whatsapp_sent = self._deliver_whatsapp(job, result.pdf_path)

                if span:
                    span.update(
                        metadata={
                            **metadata,
                            "pdf_path": result.pdf_path,
                            "email_sent": result.email_sent,
                            "whatsapp_sent": result.whatsapp_sent,
                        }
                    )

            duration_ms = (perf_counter() - start) * 1000
            log_metric("reports.run.success", 1, metadata={"schedule_type": job.schedule_type.value})
            log_metric("reports.run.duration_ms", duration_ms, metadata={"schedule_type": job.schedule_type.value})
            logger.info("Scheduled report %s executed in %.0fms", job.schedule_id, duration_ms)
            return result
        finally:
            if job.schedule_type is ScheduleType.ONE_TIME:
                self._store.remove(job.schedule_id)
                logger.info("One-time schedule removed: %s", job.schedule_id)

    def _deliver_email(self, job: ScheduleJob, pdf_path: Optional[str]) -> bool:
        subject, body = build_scheduled_report_email(job.display_name)
        try:
            self._email.send_with_attachment(job.targets.email, subject, body, pdf_path)
        except DeliveryFailure as exc:
            logger.error("Email delivery failed for %s: %s", job.schedule_id, exc)
            log_metric("reports.delivery.failed", 1, metadata={"channel": "email"})
            return False
        except Exception:
            logger.exception("Unexpected email delivery error for %s", job.schedule_id)
            log_metric("reports.delivery.failed", 1, metadata={"channel": "email"})
            return False
        logger.info("Email sent to %s for %s", job.targets.email, job.schedule_id)
        return True

    def _deliver_whatsapp(self, job: ScheduleJob, pdf_path: Optional[str]) -> bool:
        to = job.targets.whatsapp_number
        try:
            sent = self._messaging.send_text(to, build_scheduled_report_message(job.display_name))
            if pdf_path:
                sent = self._messaging.send_document(to, pdf_path, build_scheduled_report_caption(job.display_name))
        except Exception:
            logger.exception("Unexpected WhatsApp delivery error for %s", job.schedule_id)
            sent = False

        if sent:
            logger.info("WhatsApp message sent to %s for %s", to, job.schedule_id)
        else:
            logger.warning("Failed to send WhatsApp message to %s for %s", to, job.schedule_id)
            log_metric("reports.delivery.failed", 1, metadata={"channel": "whatsapp"})
        return sent

    def _notify_failure(self, job: ScheduleJob, error: Exception) -> None:
        if not job.targets.email:
            return
        subject, body = build_failure_email(job.schedule_id, str(error))
        try:
            self._email.send_plain(job.targets.email, subject, body)
        except Exception:
            logger.exception("Failed to send error notification email for %s", job.schedule_id)
