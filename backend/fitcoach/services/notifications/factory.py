"""Delivery provider factories."""
from __future__ import annotations

from functools import lru_cache

from fitcoach.core.config import settings
from fitcoach.services.notifications.base import EmailSender, MessagingSender
from fitcoach.services.notifications.noop import NoopEmailSender, NoopMessagingSender
from fitcoach.services.notifications.smtp import SmtpEmailSender
from fitcoach.services.notifications.whatsapp import WhatsAppSender


@lru_cache
def get_email_sender() -> EmailSender:
    provider = settings.email_provider.lower()
    if provider == "smtp":
        return SmtpEmailSender()
    return NoopEmailSender()


@lru_cache
def get_messaging_sender() -> MessagingSender:
    if settings.whatsapp_enabled:
        return WhatsAppSender()
    return NoopMessagingSender()


@lru_cache
def get_whatsapp_sender() -> WhatsAppSender:
    """The WhatsApp channel itself, for routes that report on or use it directly."""
    return WhatsAppSender()
