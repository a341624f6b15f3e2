"""
DOCX template engine: segment extraction, entry-block duplication, segment
filling and placeholder replacement.
"""
from .extractor import Extraction, Segment, SectionInfo, extract_segments
from .filler import apply_filled_segments, remove_empty_bullet_paragraphs
from .pipeline import FillResult, fill_docx_template, fill_docx_with_ai
from .placeholders import analyze_docx_template, estimate_docx_page_count, fill_docx_placeholders
from .slots import apply_duplication, detect_slots, plan_duplication

__all__ = [
    "Extraction", "Segment", "SectionInfo", "extract_segments",
    "apply_filled_segments", "remove_empty_bullet_paragraphs",
    "FillResult", "fill_docx_template", "fill_docx_with_ai",
    "analyze_docx_template", "estimate_docx_page_count", "fill_docx_placeholders",
    "apply_duplication", "detect_slots", "plan_duplication",
]
