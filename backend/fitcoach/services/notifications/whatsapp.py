"""WhatsApp Cloud API provider."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from fitcoach.core.config import settings
from fitcoach.services.notifications.base import MessagingSender
from fitcoach.services.notifications.messages import build_fitness_plan_caption, build_fitness_plan_message


logger = logging.getLogger(__name__)

_NON_DIGIT_RE = re.compile(r"\D")


def normalize_phone_number(phone: str, country_code: Optional[str] = None) -> str:
    """Strip everything but digits; a bare 10-digit number gets the default country code."""
    code = country_code if country_code is not None else settings.whatsapp_default_country_code
    digits = _NON_DIGIT_RE.sub("", phone or "")
    if len(digits) == 10 and not digits.startswith(code):
        digits = f"{code}{digits}"
    return digits


class WhatsAppSender(MessagingSender):
    def __init__(
        self,
        api_url: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        access_token: Optional[str] = None,
        enabled: Optional[bool] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_url = (api_url or settings.whatsapp_api_url).rstrip("/")
        self.phone_number_id = phone_number_id or settings.whatsapp_phone_number_id
        self.access_token = access_token or settings.whatsapp_access_token
        self.enabled = settings.whatsapp_enabled if enabled is None else enabled
        self._http = http_client or httpx.Client(timeout=30.0)

    def is_enabled(self) -> bool:
        if not self.enabled:
            logger.debug("WhatsApp delivery is disabled")
            return False
        if not self.phone_number_id or not self.access_token:
            logger.warning("WhatsApp credentials not configured")
            return False
        return True

    def send_text(self, to: str, message: str) -> bool:
        if not self.is_enabled():
            return False
        payload = self._envelope(to, "text")
        payload["text"] = {"body": message}
        return self._post_message(payload, kind="text", to=to)

    def send_document(self, to: str, path: str, caption: Optional[str] = None) -> bool:
        if not self.is_enabled():
            return False
        media_id = self._upload_media(path)
        if not media_id:
            return False
        document: Dict[str, Any] = {"id": media_id, "filename": Path(path).name}
        if caption:
            document["caption"] = caption
        payload = self._envelope(to, "document")
        payload["document"] = document
        return self._post_message(payload, kind="document", to=to)

    def send_fitness_plan(self, to: str, report_name: str, pdf_path: str) -> bool:
        """Announce the plan, then send the PDF; the result is the document delivery."""
        if not self.send_text(to, build_fitness_plan_message(report_name)):
            logger.warning("Initial WhatsApp text to %s failed; still sending the PDF", to)
        return self.send_document(to, pdf_path, build_fitness_plan_caption(report_name))

    def _envelope(self, to: str, message_type: str) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": normalize_phone_number(to),
            "type": message_type,
        }

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def _post_message(self, payload: Dict[str, Any], *, kind: str, to: str) -> bool:
        url = f"{self.api_url}/{self.phone_number_id}/messages"
        try:
            response = self._http.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as exc:
            logger.error("WhatsApp %s to %s failed: %s", kind, to, exc)
            return False
        logger.info("WhatsApp %s sent to %s", kind, to)
        return True

    def _upload_media(self, path: str) -> Optional[str]:
        file_path = Path(path)
        if not file_path.is_file():
            logger.error("Media file not found: %s", path)
            return None
        url = f"{self.api_url}/{self.phone_number_id}/media"
        try:
            with file_path.open("rb") as handle:
                response = self._http.post(
                    url,
                    data={"messaging_product": "whatsapp", "type": "application/pdf"},
                    files={"file": (file_path.name, handle, "application/pdf")},
                    headers=self._headers(),
                )
            response.raise_for_status()
            media_id = response.json().get("id")
        except (httpx.HTTPStatusError, httpx.RequestError, ValueError) as exc:
            logger.error("WhatsApp media upload failed for %s: %s", path, exc)
            return None
        if not media_id:
            logger.error("WhatsApp media upload returned no id for %s", path)
            return None
        logger.debug("Uploaded media %s as %s", file_path.name, media_id)
        return media_id
