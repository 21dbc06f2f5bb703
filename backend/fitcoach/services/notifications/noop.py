"""No-op delivery providers (log only)."""
from __future__ import annotations

import logging
from typing import Optional

from fitcoach.services.notifications.base import EmailSender, MessagingSender


logger = logging.getLogger(__name__)


class NoopEmailSender(EmailSender):
    def send_with_attachment(
        self,
        to: str,
        subject: str,
        body: str,
        attachment_path: Optional[str] = None,
    ) -> None:
        logger.info("Email queued (noop) to=%s subject=%s attachment=%s", to, subject, attachment_path)

    def send_plain(self, to: str, subject: str, body: str) -> None:
        logger.info("Email queued (noop) to=%s subject=%s", to, subject)


class NoopMessagingSender(MessagingSender):
    def send_text(self, to: str, message: str) -> bool:
        logger.info("Message queued (noop) to=%s chars=%s", to, len(message))
        return True

    def send_document(self, to: str, path: str, caption: Optional[str] = None) -> bool:
        logger.info("Document queued (noop) to=%s path=%s", to, path)
        return True
