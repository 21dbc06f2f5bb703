"""Delivery channel interfaces."""
from __future__ import annotations

from typing import Optional


class EmailSender:
    """Base interface for email providers. Implementations raise DeliveryFailure."""

    def send_with_attachment(
        self,
        to: str,
        subject: str,
        body: str,
        attachment_path: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def send_plain(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class MessagingSender:
    """Base interface for chat-messaging providers; failures are reported as ``False``."""

    def send_text(self, to: str, message: str) -> bool:
        raise NotImplementedError

    def send_document(self, to: str, path: str, caption: Optional[str] = None) -> bool:
        raise NotImplementedError
