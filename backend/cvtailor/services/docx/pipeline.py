"""
Two-phase DOCX fill pipeline: detect -> duplicate -> re-extract -> fill.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ...exceptions import CVTailorError, ProviderError
from ...schemas.cv import FitAnalysis
from ...schemas.profile import JobVacancy, ParsedLinkedIn
from ...schemas.template import DocxPlaceholder
from ..ai_providers import AICredentials
from .ai_fill import fill_segments_with_ai
from .extractor import Extraction, extract_segments
from .filler import apply_filled_segments, remove_empty_bullet_paragraphs
from .ooxml import DOCUMENT_PART, DocxPackage
from .placeholders import fill_docx_auto, fill_docx_placeholders, get_field_value
from .rules import EDUCATION, WORK_EXPERIENCE, load_rules
from .slots import apply_duplication, count_target_entries, detect_slots, plan_duplication

logger = logging.getLogger(__name__)

AI_REQUIRED_MESSAGE = "AI mode is required for template filling. Please configure your AI API key."
AI_FAILED_MESSAGE = "Failed to fill template with AI. Please check your API key and try again."


@dataclass
class FillResult:
    content: bytes
    filled_fields: int = 0
    warnings: List[str] = field(default_factory=list)
    mode: str = "none"


def prepare_entry_blocks(root, profile: ParsedLinkedIn, rules=None):
    """
    Give every work experience and education entry its own block, then
    re-extract. Returns (extraction, warnings).
    """
    rules = rules or load_rules()
    warnings: List[str] = []
    extraction = extract_segments(root, rules)

    for section in (WORK_EXPERIENCE, EDUCATION):
        target = count_target_entries(section, profile)
        if target <= 0:
            continue
        detection = detect_slots(extraction, section, rules)
        plan = plan_duplication(detection, target)
        if plan.warning:
            warnings.append(plan.warning)
        if apply_duplication(plan):
            extraction = extract_segments(root, rules)

    return extraction, warnings


def _fillable(extraction: Extraction):
    return [
        s for s in extraction.segments
        if not s.is_whitespace and not s.is_bullet_placeholder
    ]


async def fill_docx_with_ai(
    template_bytes: bytes,
    profile: ParsedLinkedIn,
    credentials: Optional[AICredentials],
    job: Optional[JobVacancy] = None,
    language: str = "nl",
    description_format: str = "bullets",
    custom_instructions: Optional[str] = None,
    custom_values: Optional[dict] = None,
    fit_analysis: Optional[FitAnalysis] = None,
) -> FillResult:
    """Fill a DOCX without placeholders by letting the model address its segments."""
    if credentials is None:
        raise ProviderError(400, AI_REQUIRED_MESSAGE)

    rules = load_rules()
    package = DocxPackage.from_bytes(template_bytes)
    root = package.read_xml(DOCUMENT_PART)

    extraction, warnings = prepare_entry_blocks(root, profile, rules)
    filled_fields = 0

    try:
        plan = await fill_segments_with_ai(
            _fillable(extraction), extraction.sections, profile, credentials,
            job=job, language=language, description_format=description_format,
            custom_instructions=custom_instructions, custom_values=custom_values,
            fit_analysis=fit_analysis,
        )
        filled = plan.filled_segments
        apply_filled_segments(extraction, filled, rules)
        remove_empty_bullet_paragraphs(root, rules)
        package.write_xml(DOCUMENT_PART, root)
        filled_fields += len(filled)
        warnings.extend(plan.warnings)

        for part in package.header_footer_parts():
            part_root = package.read_xml(part)
            part_extraction = extract_segments(part_root, rules)
            part_segments = _fillable(part_extraction)
            changed = 0
            if part_segments:
                part_plan = await fill_segments_with_ai(
                    part_segments, part_extraction.sections, profile, credentials,
                    job=job, language=language, description_format=description_format,
                    custom_instructions=custom_instructions, custom_values=custom_values,
                    fit_analysis=fit_analysis,
                )
                changed += apply_filled_segments(part_extraction, part_plan.filled_segments, rules)
                filled_fields += len(part_plan.filled_segments)
                warnings.extend(part_plan.warnings)
            changed += remove_empty_bullet_paragraphs(part_root, rules)
            if changed:
                package.write_xml(part, part_root)
    except CVTailorError:
        raise
    except Exception as e:
        logger.exception("AI template fill failed")
        raise CVTailorError(AI_FAILED_MESSAGE, details=str(e))

    logger.info(f"AI fill wrote {filled_fields} segment(s) with {len(warnings)} warning(s)")
    return FillResult(
        content=package.to_bytes(),
        filled_fields=filled_fields,
        warnings=warnings,
        mode="ai" if filled_fields > 0 else "none",
    )


async def fill_docx_template(
    template_bytes: bytes,
    placeholders: List[DocxPlaceholder],
    profile: ParsedLinkedIn,
    credentials: Optional[AICredentials] = None,
    job: Optional[JobVacancy] = None,
    language: str = "nl",
    description_format: str = "bullets",
    custom_instructions: Optional[str] = None,
    custom_values: Optional[dict] = None,
    fit_analysis: Optional[FitAnalysis] = None,
) -> FillResult:
    """
    Placeholder templates are filled directly (stored placeholders first,
    freshly detected ones otherwise); anything else goes through the AI
    segment pipeline.
    """
    if placeholders:
        content = fill_docx_placeholders(template_bytes, placeholders, profile, custom_values)
        filled = sum(1 for p in placeholders if get_field_value(p.mapping, profile, custom_values))
        return FillResult(content=content, filled_fields=filled, mode="placeholder")

    content, detected, filled = fill_docx_auto(template_bytes, profile, custom_values)
    if detected:
        return FillResult(content=content, filled_fields=filled, mode="placeholder")

    return await fill_docx_with_ai(
        template_bytes, profile, credentials, job=job, language=language,
        description_format=description_format, custom_instructions=custom_instructions,
        custom_values=custom_values, fit_analysis=fit_analysis,
    )
