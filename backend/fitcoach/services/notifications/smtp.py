"""SMTP email provider."""
from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from fitcoach.core.config import settings
from fitcoach.core.errors import DeliveryFailure
from fitcoach.services.notifications.base import EmailSender


logger = logging.getLogger(__name__)


class SmtpEmailSender(EmailSender):
    """Sends HTML mail through the configured SMTP relay, with STARTTLS and login when configured."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        sender: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.user = user if user is not None else settings.smtp_user
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.email_from
        self.timeout = timeout

    def send_with_attachment(
        self,
        to: str,
        subject: str,
        body: str,
        attachment_path: Optional[str] = None,
    ) -> None:
        message = self._build_message(to, subject, body, html=True)
        if attachment_path:
            attachment = Path(attachment_path)
            if attachment.is_file():
                message.add_attachment(
                    attachment.read_bytes(),
                    maintype="application",
                    subtype="pdf",
                    filename=attachment.name,
                )
                logger.debug("Attached %s", attachment.name)
            else:
                logger.warning("Attachment not found, sending without it: %s", attachment_path)
        self._send(message)

    def send_plain(self, to: str, subject: str, body: str) -> None:
        self._send(self._build_message(to, subject, body, html=False))

    def _build_message(self, to: str, subject: str, body: str, *, html: bool) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        if html:
            message.set_content(body, subtype="html")
        else:
            message.set_content(body)
        return message

    def _send(self, message: EmailMessage) -> None:
        logger.info("Sending email to=%s via %s:%s", message["To"], self.host, self.port)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryFailure(f"Failed to send email to {message['To']}: {exc}") from exc
        logger.info("Email sent to=%s", message["To"])
