from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from backend.applykit.core.errors import RenderError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
PAGE_MARGIN = 56

TITLE_STYLE = ParagraphStyle(
    "DocumentTitle",
    fontName="Helvetica-Bold",
    fontSize=18,
    leading=22,
    alignment=TA_CENTER,
)

BODY_STYLE = ParagraphStyle(
    "DocumentBody",
    fontName="Helvetica",
    fontSize=11,
    leading=15,  # 11pt text + 4pt line gap
    alignment=TA_LEFT,
)

TITLE_GAP = BODY_STYLE.leading * 1.2


@dataclass
class GeneratedFile:
    filename: str
    content_type: str
    data: bytes


def make_file_name(base_name: str, suffix: str) -> str:
    """'Jane O'Brien!!' + 'resume' -> 'jane-o-brien-resume.pdf'."""
    normalized = re.sub(r"[^a-z0-9]+", "-", (base_name or "").lower()).strip("-")
    return f"{normalized or 'candidate'}-{suffix}.pdf"


class DocumentService:
    """
    Renders the generated resume and cover letter as PDFs.

    Stateless: one instance can serve concurrent renders from worker threads.
    """

    def resume_pdf(self, full_name: str, resume_text: str) -> GeneratedFile:
        return self.render_pdf(
            title=f"{full_name} - Tailored Resume",
            body=resume_text,
            filename=make_file_name(full_name, "resume"),
        )

    def cover_letter_pdf(self, full_name: str, cover_letter_text: str) -> GeneratedFile:
        return self.render_pdf(
            title=f"{full_name} - Cover Letter",
            body=cover_letter_text,
            filename=make_file_name(full_name, "cover-letter"),
        )

    def render_pdf(self, title: str, body: str, filename: str) -> GeneratedFile:
        buf = BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=LETTER,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=title,
        )

        try:
            elements = [Paragraph(escape(title), TITLE_STYLE), Spacer(1, TITLE_GAP)]
            elements.extend(self._body_flowables(body))
            doc.build(elements)
        except Exception as e:
            logger.error(f"PDF rendering failed for {filename}: {e}")
            raise RenderError(f"Failed to render {filename}: {e}") from e

        return GeneratedFile(filename=filename, content_type=PDF_CONTENT_TYPE, data=buf.getvalue())

    # -----------------------
    # helpers
    # -----------------------
    def _body_flowables(self, body: str) -> list:
        out: list = []
        for line in body.replace("\r\n", "\n").split("\n"):
            if line.strip():
                out.append(Paragraph(escape(line), BODY_STYLE))
            else:
                # blank line keeps its height
                out.append(Spacer(1, BODY_STYLE.leading))
        return out
