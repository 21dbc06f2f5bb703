"""Tests for the scheduled report pipeline."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import pytest

from fitcoach.core.errors import GenerationFailure, RenderFailure
from fitcoach.services.report_executor import ReportExecutor
from fitcoach.services.schedule_models import DeliveryFlags, DeliveryTargets, ScheduleJob, ScheduleType
from fitcoach.services.schedule_store import ScheduleStore

from tests.fakes import (
    FakeGenerator,
    FakeRenderer,
    RecordingEmailSender,
    RecordingMessagingSender,
    make_plan_request,
)


def _job(
    schedule_type: ScheduleType = ScheduleType.RECURRING,
    *,
    report_name: Optional[str] = "Weekly Report",
    email: Optional[str] = "athlete@example.com",
    whatsapp: Optional[str] = "98765 43210",
    flags: DeliveryFlags = DeliveryFlags(generate_pdf=True, send_email=True, send_whatsapp=True),
) -> ScheduleJob:
    return ScheduleJob(
        schedule_id=str(uuid4()),
        schedule_type=schedule_type,
        plan_request=make_plan_request(),
        run_at=datetime.now(timezone.utc) if schedule_type is ScheduleType.ONE_TIME else None,
        cron_expression="0 0 9 * * MON" if schedule_type is ScheduleType.RECURRING else None,
        targets=DeliveryTargets(email=email, whatsapp_number=whatsapp),
        flags=flags,
        report_name=report_name,
    )


@pytest.fixture()
def store() -> ScheduleStore:
    return ScheduleStore()


def _executor(store, generator=None, renderer=None, email=None, messaging=None) -> ReportExecutor:
    return ReportExecutor(
        store=store,
        generator=generator or FakeGenerator(),
        renderer=renderer or FakeRenderer(),
        email_sender=email or RecordingEmailSender(),
        messaging_sender=messaging or RecordingMessagingSender(),
    )


def test_full_pipeline_delivers_on_both_channels(store) -> None:
    generator, renderer = FakeGenerator(), FakeRenderer()
    email, messaging = RecordingEmailSender(), RecordingMessagingSender()
    job = _job()

    result = _executor(store, generator, renderer, email, messaging).run(job)

    assert result.succeeded
    assert generator.calls == [job.plan_request]
    assert renderer.names[0].startswith("Weekly_Report_")
    assert result.pdf_path == f"/reports/{renderer.names[0]}.pdf"
    assert result.email_sent is True
    to, subject, _, attachment = email.attachments[0]
    assert to == "athlete@example.com"
    assert subject == "Scheduled Fitness Report: Weekly Report"
    assert attachment == result.pdf_path
    assert result.whatsapp_sent is True
    assert "*Scheduled Fitness Report*" in messaging.texts[0][1]
    assert messaging.documents == [("98765 43210", result.pdf_path, "📅 Scheduled Report: Weekly Report")]


def test_email_failure_does_not_block_whatsapp(store) -> None:
    email = RecordingEmailSender(fail_attachment=True)
    messaging = RecordingMessagingSender()

    result = _executor(store, email=email, messaging=messaging).run(_job())

    assert result.email_sent is False
    assert result.whatsapp_sent is True
    assert len(messaging.documents) == 1
    assert email.plain == []


def test_whatsapp_false_result_is_reported_not_raised(store) -> None:
    result = _executor(store, messaging=RecordingMessagingSender(result=False)).run(_job())

    assert result.whatsapp_sent is False
    assert result.email_sent is True
    assert result.succeeded


def test_generation_failure_sends_failure_email_and_returns(store) -> None:
    email, messaging, renderer = RecordingEmailSender(), RecordingMessagingSender(), FakeRenderer()
    generator = FakeGenerator(error=GenerationFailure("Plan generation failed: connection refused"))
    job = _job()

    result = _executor(store, generator, renderer, email, messaging).run(job)

    assert result.error == "Plan generation failed: connection refused"
    assert renderer.names == []
    assert email.attachments == []
    assert messaging.texts == []
    assert email.plain == [
        (
            "athlete@example.com",
            "Scheduled Report Failed",
            f"Your scheduled fitness report ({job.schedule_id}) failed to generate. "
            "Error: Plan generation failed: connection refused",
        )
    ]


def test_render_failure_is_contained(store) -> None:
    email = RecordingEmailSender()

    result = _executor(store, renderer=FakeRenderer(error=RenderFailure("disk full")), email=email).run(_job())

    assert result.error == "disk full"
    assert email.attachments == []
    assert email.plain[0][1] == "Scheduled Report Failed"


def test_failure_email_errors_are_swallowed(store) -> None:
    email = RecordingEmailSender(fail_plain=True)
    generator = FakeGenerator(error=GenerationFailure("timeout"))

    result = _executor(store, generator=generator, email=email).run(_job())

    assert result.error == "timeout"


def test_failure_without_email_target_sends_nothing(store) -> None:
    email = RecordingEmailSender()
    generator = FakeGenerator(error=GenerationFailure("timeout"))

    _executor(store, generator=generator, email=email).run(_job(email=None))

    assert email.plain == []


def test_one_time_job_is_removed_after_success(store) -> None:
    job = _job(ScheduleType.ONE_TIME)
    store.register(job)

    _executor(store).run(job)

    assert store.get(job.schedule_id) is None


def test_one_time_job_is_removed_after_failure(store) -> None:
    job = _job(ScheduleType.ONE_TIME)
    store.register(job)

    _executor(store, generator=FakeGenerator(error=GenerationFailure("boom"))).run(job)

    assert store.get(job.schedule_id) is None


def test_recurring_job_stays_registered(store) -> None:
    job = _job(ScheduleType.RECURRING)
    store.register(job)

    _executor(store).run(job)

    assert store.get(job.schedule_id) == job


def test_unexpected_error_propagates_but_one_time_job_is_still_removed(store) -> None:
    job = _job(ScheduleType.ONE_TIME)
    store.register(job)

    with pytest.raises(KeyError):
        _executor(store, generator=FakeGenerator(error=KeyError("bug"))).run(job)

    assert store.get(job.schedule_id) is None


def test_default_report_name_and_file_name(store) -> None:
    email, renderer = RecordingEmailSender(), FakeRenderer()
    job = _job(report_name=None)

    _executor(store, renderer=renderer, email=email).run(job)

    assert renderer.names[0].startswith(f"scheduled_report_{job.schedule_id[:8]}_")
    assert email.attachments[0][1] == f"Scheduled Fitness Report: Fitness Plan {job.schedule_id}"


def test_flags_control_pdf_and_channels(store) -> None:
    renderer, email, messaging = FakeRenderer(), RecordingEmailSender(), RecordingMessagingSender()
    job = _job(flags=DeliveryFlags(generate_pdf=False, send_email=True, send_whatsapp=True))

    result = _executor(store, renderer=renderer, email=email, messaging=messaging).run(job)

    assert result.pdf_path is None
    assert renderer.names == []
    assert email.attachments[0][3] is None
    assert len(messaging.texts) == 1
    assert messaging.documents == []
    assert result.whatsapp_sent is True


def test_channels_skipped_without_targets(store) -> None:
    email, messaging = RecordingEmailSender(), RecordingMessagingSender()

    result = _executor(store, email=email, messaging=messaging).run(_job(email=None, whatsapp=None))

    assert result.email_sent is False
    assert result.whatsapp_sent is False
    assert email.attachments == []
    assert messaging.texts == []
