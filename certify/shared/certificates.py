from __future__ import annotations

import logging
import os
import re
from io import BytesIO

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

logger = logging.getLogger("certify.cert")

SAFE_FALLBACK_FONT = "Helvetica"

NAME_FONT_SIZE_MAX = 28
NAME_FONT_SIZE_MIN = 20
NAME_MAX_WIDTH_RATIO = 0.7
NAME_Y_RATIO = 0.57

TEAM_FONT_SIZE = 15
TEAM_Y_RATIO = 0.51
TEAM_X_OFFSET = -74

TEXT_RGB = (0, 0, 0)


class CertificateTemplateError(Exception):
    """Raised when the certificate template cannot be used."""


def format_name(name: str) -> str:
    """Capitalise each space-separated word: ``jANE  doe`` -> ``Jane  Doe``."""
    words = (name or "").strip().split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def certificate_filename(name: str) -> str:
    return re.sub(r"\s+", "_", (name or "").strip()) + "_Certificate.pdf"


def register_certificate_font(font_path: str | None) -> str:
    """Register the TTF at ``font_path`` with reportlab and return its name."""
    if not font_path or not os.path.isfile(font_path):
        logger.warning(
            "[CERT] font missing path=%s; using %s", font_path, SAFE_FALLBACK_FONT
        )
        return SAFE_FALLBACK_FONT
    font_name = "Certificate-" + os.path.splitext(os.path.basename(font_path))[0]
    if font_name in pdfmetrics.getRegisteredFontNames():
        return font_name
    try:
        pdfmetrics.registerFont(TTFont(font_name, font_path))
    except (TTFError, OSError) as exc:
        logger.warning(
            "[CERT] font unusable path=%s reason=%s; using %s",
            font_path,
            exc,
            SAFE_FALLBACK_FONT,
        )
        return SAFE_FALLBACK_FONT
    return font_name


def fit_font_size(
    text: str,
    font_name: str,
    max_width: float,
    start: int = NAME_FONT_SIZE_MAX,
    minimum: int = NAME_FONT_SIZE_MIN,
) -> int:
    size = start
    while size > minimum and pdfmetrics.stringWidth(text, font_name, size) > max_width:
        size -= 1
    return size


def centered_x(
    text: str, font_name: str, size: float, page_width: float, x_offset: float = 0
) -> float:
    text_width = pdfmetrics.stringWidth(text, font_name, size)
    return (page_width - text_width) / 2 + x_offset


def _draw_centered(
    c: canvas.Canvas,
    text: str,
    font_name: str,
    size: float,
    page_width: float,
    y: float,
    x_offset: float = 0,
) -> None:
    c.setFont(font_name, size)
    c.drawString(centered_x(text, font_name, size, page_width, x_offset), y, text)


def _load_template(template_path: str) -> PdfReader:
    if not template_path or not os.path.isfile(template_path):
        raise CertificateTemplateError(
            f"Certificate template not found: {template_path}"
        )
    try:
        reader = PdfReader(template_path)
        if not reader.pages:
            raise CertificateTemplateError(
                f"Certificate template has no pages: {template_path}"
            )
    except PdfReadError as exc:
        raise CertificateTemplateError(
            f"Certificate template unreadable: {template_path}"
        ) from exc
    return reader


def render_certificate_pdf(
    name: str,
    team_name: str,
    *,
    template_path: str,
    font_path: str | None = None,
) -> bytes:
    """Stamp participant and team names onto the template's first page."""
    template = _load_template(template_path)
    base_page = template.pages[0]
    width = float(base_page.mediabox.width)
    height = float(base_page.mediabox.height)

    font_name = register_certificate_font(font_path)
    display_name = format_name(name)
    name_size = fit_font_size(display_name, font_name, width * NAME_MAX_WIDTH_RATIO)

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height))
    c.setFillColorRGB(*TEXT_RGB)
    _draw_centered(c, display_name, font_name, name_size, width, height * NAME_Y_RATIO)
    _draw_centered(
        c,
        team_name,
        font_name,
        TEAM_FONT_SIZE,
        width,
        height * TEAM_Y_RATIO,
        x_offset=TEAM_X_OFFSET,
    )
    c.showPage()
    c.save()
    buffer.seek(0)

    overlay = PdfReader(buffer)
    base_page.merge_page(overlay.pages[0])

    writer = PdfWriter()
    writer.add_page(base_page)
    for page in template.pages[1:]:
        writer.add_page(page)
    out_buffer = BytesIO()
    writer.write(out_buffer)
    logger.debug(
        "[CERT] rendered font=%s name_size=%s page=%.0fx%.0f",
        font_name,
        name_size,
        width,
        height,
    )
    return out_buffer.getvalue()
