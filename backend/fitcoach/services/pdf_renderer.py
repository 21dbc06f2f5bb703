"""Render plan text into a PDF document with reportlab."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from fitcoach.core.config import settings
from fitcoach.core.errors import RenderFailure


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_HEADING_RE = re.compile(r"^\s*(?:#{1,6}\s+|={2,}\s*)(?P<text>.+?)\s*=*\s*$")
_CAPS_HEADING_RE = re.compile(r"^\s*(?:\d+[.)]\s*)?(?P<text>[A-Z][A-Z0-9 &/'()\-]{2,}):?\s*$")
_BULLET_RE = re.compile(r"^\s*(?:[•\-*]|\d+[.)])\s+(?P<text>.+)$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_UNSAFE_NAME_RE = re.compile(r"[^\w.-]+")


def safe_file_stem(name: str) -> str:
    """Reduce ``name`` to one path component of word characters, dots and dashes; may return ''."""
    return _UNSAFE_NAME_RE.sub("_", name.strip()).strip("._-")


def build_report_file_name(report_name: Optional[str], schedule_id: str, now: Optional[datetime] = None) -> str:
    """``<report name>_<timestamp>`` or ``scheduled_report_<id prefix>_<timestamp>``."""
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    stem = safe_file_stem(report_name or "")
    if stem:
        return f"{stem}_{timestamp}"
    return f"scheduled_report_{schedule_id[:8]}_{timestamp}"


class PdfRenderer:
    """Writes A4 plan documents into ``output_dir``."""

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or settings.pdf_output_path)
        styles = getSampleStyleSheet()
        self._title_style = styles["Title"]
        self._heading_style = styles["Heading2"]
        self._body_style = styles["BodyText"]
        self._meta_style = ParagraphStyle("meta", parent=styles["Italic"], fontSize=9, textColor="#6c757d")
        self._bullet_style = ParagraphStyle("bullet", parent=styles["BodyText"], leftIndent=6 * mm, bulletIndent=2 * mm)

    def render(self, text: str, suggested_name: Optional[str] = None) -> str:
        """Render ``text`` and return the absolute path of the written file; raises RenderFailure."""
        file_name = self._file_name(suggested_name)
        path = self.resolve_report_path(file_name)
        if path is None:
            raise RenderFailure(f"Refusing to write outside {self.output_dir}: {file_name}")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            document = SimpleDocTemplate(
                str(path),
                pagesize=A4,
                leftMargin=18 * mm,
                rightMargin=18 * mm,
                topMargin=18 * mm,
                bottomMargin=18 * mm,
                title="Fitness Plan",
            )
            document.build(self._flowables(text))
        except Exception as exc:
            logger.exception("PDF rendering failed for %s", file_name)
            raise RenderFailure(f"Failed to generate PDF: {exc}") from exc

        logger.info("PDF generated: %s", path)
        return str(path)

    def resolve_report_path(self, path: str) -> Optional[Path]:
        """Absolute path of ``path`` inside ``output_dir``, or None when it points anywhere else."""
        root = self.output_dir.resolve()
        candidate = (root / path).resolve()
        if root not in candidate.parents:
            return None
        return candidate

    def _file_name(self, suggested_name: Optional[str]) -> str:
        stem = safe_file_stem(Path(suggested_name).name) if suggested_name else ""
        if stem.lower().endswith(".pdf"):
            stem = stem[:-4]
        if not stem:
            stem = f"fitness_plan_{datetime.now().strftime(TIMESTAMP_FORMAT)}"
        return f"{stem}.pdf"

    def _flowables(self, text: str) -> List[Flowable]:
        generated = datetime.now().strftime("%B %d, %Y %H:%M")
        flowables: List[Flowable] = [
            Paragraph("FITNESS PLAN", self._title_style),
            Paragraph(f"Generated on {generated}", self._meta_style),
            Spacer(1, 6 * mm),
        ]
        for line in (text or "").splitlines():
            if not line.strip():
                flowables.append(Spacer(1, 2 * mm))
                continue
            heading = _HEADING_RE.match(line) or _CAPS_HEADING_RE.match(line)
            if heading:
                flowables.append(Paragraph(_inline_markup(heading.group("text")), self._heading_style))
                continue
            bullet = _BULLET_RE.match(line)
            if bullet:
                flowables.append(Paragraph(_inline_markup(bullet.group("text")), self._bullet_style, bulletText="•"))
                continue
            flowables.append(Paragraph(_inline_markup(line.strip()), self._body_style))
        return flowables


def _inline_markup(value: str) -> str:
    return _BOLD_RE.sub(r"<b>\1</b>", escape(value))
