"""
PDF templates: draw profile values at configured field positions.
Field coordinates use a bottom-left origin, so y is flipped for PyMuPDF.
"""
import logging
import re
from typing import List, Optional

import fitz

from ..exceptions import TemplateStructureError
from ..schemas.profile import ParsedLinkedIn
from ..schemas.template import PDFTemplateField
from .docx.placeholders import get_field_value

logger = logging.getLogger(__name__)

FONT_NAME = "helv"
DEFAULT_FONT_SIZE = 11
LINE_HEIGHT = 1.2
HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def hex_to_rgb(value: Optional[str]):
    """'#1a2b3c' -> (r, g, b) floats in 0..1; black when unparseable."""
    match = HEX_COLOR.match(value or "")
    if not match:
        return (0.0, 0.0, 0.0)
    return tuple(int(part, 16) / 255 for part in match.groups())


def split_text_into_lines(text: str, font_size: float, max_width: float) -> List[str]:
    lines = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if fitz.get_text_length(candidate, fontname=FONT_NAME, fontsize=font_size) > max_width and current:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def _open(pdf_bytes: bytes):
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise TemplateStructureError("Invalid PDF file", details=str(e))


def draw_text_field(page, field: PDFTemplateField, value: str) -> None:
    if not value:
        return

    font_size = field.font_size or DEFAULT_FONT_SIZE
    color = hex_to_rgb(field.font_color)
    baseline = page.rect.height - field.y

    if field.is_multi_line and field.width:
        lines = split_text_into_lines(value, font_size, field.width)
        max_lines = field.max_lines or len(lines)
        for i, line in enumerate(lines[:max_lines]):
            page.insert_text(
                (field.x, baseline + i * font_size * LINE_HEIGHT),
                line, fontname=FONT_NAME, fontsize=font_size, color=color,
            )
        return

    if field.width and field.height:
        rect = fitz.Rect(field.x, baseline - font_size, field.x + field.width,
                         baseline - font_size + field.height)
        # A negative result means the text did not fit and nothing was written
        if page.insert_textbox(rect, value, fontname=FONT_NAME, fontsize=font_size, color=color) >= 0:
            return

    page.insert_text((field.x, baseline), value, fontname=FONT_NAME, fontsize=font_size, color=color)


def fill_pdf_template(pdf_bytes: bytes, fields: List[PDFTemplateField], profile: ParsedLinkedIn,
                      custom_values: Optional[dict] = None) -> bytes:
    doc = _open(pdf_bytes)
    try:
        for field in fields:
            if field.page < 0 or field.page >= doc.page_count:
                logger.warning(f'Field "{field.name}" references invalid page {field.page}')
                continue
            value = get_field_value(field.mapping, profile, custom_values)
            if value:
                draw_text_field(doc[field.page], field, value)
        return doc.tobytes()
    finally:
        doc.close()


def get_pdf_page_count(pdf_bytes: bytes) -> int:
    doc = _open(pdf_bytes)
    try:
        return doc.page_count
    finally:
        doc.close()


def detect_form_fields(pdf_bytes: bytes) -> List[dict]:
    """AcroForm widgets as {name, type, value, page}."""
    doc = _open(pdf_bytes)
    detected = []
    try:
        for page in doc:
            for widget in page.widgets() or []:
                if widget.field_type == fitz.PDF_WIDGET_TYPE_TEXT:
                    kind = "text"
                elif widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
                    kind = "checkbox"
                elif widget.field_type in (fitz.PDF_WIDGET_TYPE_COMBOBOX, fitz.PDF_WIDGET_TYPE_LISTBOX):
                    kind = "dropdown"
                else:
                    kind = "other"
                detected.append({
                    "name": widget.field_name,
                    "type": kind,
                    "value": widget.field_value or None,
                    "page": page.number,
                })
    finally:
        doc.close()
    return detected
