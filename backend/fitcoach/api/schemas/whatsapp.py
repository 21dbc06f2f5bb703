"""Schemas for the WhatsApp delivery routes."""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from fitcoach.api.schemas.base import CamelModel


class WhatsAppStatusResponse(CamelModel):
    enabled: bool
    status: str
    message: str


class SendFitnessPlanRequest(CamelModel):
    phone_number: str = Field(..., min_length=1)
    report_name: str = Field(..., min_length=1)
    pdf_path: str = Field(..., min_length=1, description="A PDF previously written by the plan endpoints")


class WhatsAppTestMessage(CamelModel):
    phone_number: str = Field(..., min_length=1)
    message: Optional[str] = None


class WhatsAppSendResponse(CamelModel):
    success: bool
    phone_number: str
    report_name: Optional[str] = None
    message: str
