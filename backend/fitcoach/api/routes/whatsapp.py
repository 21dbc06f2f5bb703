"""WhatsApp channel status and manual sends."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from fitcoach.api.routes.plans import get_pdf_renderer
from fitcoach.api.schemas.whatsapp import (
    SendFitnessPlanRequest,
    WhatsAppSendResponse,
    WhatsAppStatusResponse,
    WhatsAppTestMessage,
)
from fitcoach.observability.metrics import log_metric
from fitcoach.services.notifications.factory import get_whatsapp_sender
from fitcoach.services.notifications.messages import WHATSAPP_TEST_MESSAGE
from fitcoach.services.notifications.whatsapp import WhatsAppSender
from fitcoach.services.pdf_renderer import PdfRenderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])

_NOT_ENABLED = {"success": False, "error": "WhatsApp is not enabled or configured"}


@router.get("/status", response_model=WhatsAppStatusResponse)
def whatsapp_status(sender: WhatsAppSender = Depends(get_whatsapp_sender)) -> WhatsAppStatusResponse:
    enabled = sender.is_enabled()
    return WhatsAppStatusResponse(
        enabled=enabled,
        status="CONFIGURED" if enabled else "NOT_CONFIGURED",
        message="WhatsApp is configured and ready"
        if enabled
        else "WhatsApp is not configured. Check the WHATSAPP_* settings",
    )


@router.post("/test-message", response_model=WhatsAppSendResponse)
def send_test_message(payload: WhatsAppTestMessage, sender: WhatsAppSender = Depends(get_whatsapp_sender)):
    if not sender.is_enabled():
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_NOT_ENABLED)

    sent = sender.send_text(payload.phone_number, payload.message or WHATSAPP_TEST_MESSAGE)
    return WhatsAppSendResponse(
        success=sent,
        phone_number=payload.phone_number,
        message="Message sent successfully" if sent else "Failed to send message",
    )


@router.post("/send-fitness-plan", response_model=WhatsAppSendResponse)
def send_fitness_plan(
    payload: SendFitnessPlanRequest,
    sender: WhatsAppSender = Depends(get_whatsapp_sender),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
):
    """Send a generated plan PDF; only files inside the report directory can be sent."""
    if not sender.is_enabled():
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_NOT_ENABLED)

    pdf_path = renderer.resolve_report_path(payload.pdf_path)
    if pdf_path is None or not pdf_path.is_file():
        logger.warning("Rejected WhatsApp plan send for pdfPath=%s", payload.pdf_path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "pdfPath must point to a generated report"},
        )

    sent = sender.send_fitness_plan(payload.phone_number, payload.report_name, str(pdf_path))
    if not sent:
        log_metric("reports.delivery.failed", 1, metadata={"channel": "whatsapp", "source": "manual"})
    return WhatsAppSendResponse(
        success=sent,
        phone_number=payload.phone_number,
        report_name=payload.report_name,
        message="Fitness plan sent successfully" if sent else "Failed to send fitness plan",
    )
