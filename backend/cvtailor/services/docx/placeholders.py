"""
Placeholder templates: detect {{name}} / [NAME] / {name} / "Label: ____"
markers in a DOCX and replace them with profile values.
"""
import logging
import math
import re
from typing import Dict, List, Optional, Tuple

from docx.oxml.ns import qn

from ...schemas.profile import ParsedLinkedIn
from ...schemas.template import (
    CustomMapping,
    DocxPlaceholder,
    EducationMapping,
    ExperienceMapping,
    LanguageMapping,
    PersonalMapping,
    SkillMapping,
)
from . import ooxml
from .ooxml import DOCUMENT_PART, DocxPackage
from .rules import DocxRules, load_rules

logger = logging.getLogger(__name__)

INDEXED_NAME = re.compile(r"^(.+?)[\s_]*(\d+)$|^(.+?)\[(\d+)\]$")
LABEL_PLACEHOLDER = re.compile(r"^(.+?):\s*([_\.]+|\s{10,})$")
CHARS_PER_PAGE = 3000
CURRENT = "Heden"


# ============================================================================
# Field name parsing
# ============================================================================

def _match_entry_field(name: str, table: Dict[str, List[str]]) -> Optional[Tuple[str, bool]]:
    """(field, exact) for the first synonym equal to or contained in name."""
    for field_name, synonyms in table.items():
        for synonym in synonyms:
            if name == synonym or synonym in name:
                return field_name, name == synonym
    return None


def parse_field_name(field_name: str, rules: Optional[DocxRules] = None):
    """
    Map a placeholder name to a profile field.

    Returns (mapping, confidence) or None when nothing matches.
    """
    rules = rules or load_rules()
    normalized = re.sub(r"[_\s]+", " ", field_name.lower().strip())

    indexed = INDEXED_NAME.match(normalized)
    if indexed:
        base = (indexed.group(1) or indexed.group(3)).strip()
        index = max(0, int(indexed.group(2) or indexed.group(4)) - 1)

        found = _match_entry_field(base, rules.experience_field_patterns)
        if found:
            return ExperienceMapping(index=index, field=found[0]), "high" if found[1] else "medium"

        found = _match_entry_field(base, rules.education_field_patterns)
        if found:
            return EducationMapping(index=index, field=found[0]), "high" if found[1] else "medium"

        if base in rules.skill_names:
            return SkillMapping(index=index), "high"

        if base in rules.language_names:
            return LanguageMapping(index=index, field="language"), "high"

    for personal_field, synonyms in rules.field_name_mappings.items():
        if normalized in synonyms:
            return PersonalMapping(field=personal_field), "high"

    for personal_field, synonyms in rules.field_name_mappings.items():
        for synonym in synonyms:
            if synonym in normalized or normalized in synonym:
                return PersonalMapping(field=personal_field), "medium"

    found = _match_entry_field(normalized, rules.experience_field_patterns)
    if found:
        return ExperienceMapping(index=0, field=found[0]), "medium" if found[1] else "low"

    found = _match_entry_field(normalized, rules.education_field_patterns)
    if found:
        return EducationMapping(index=0, field=found[0]), "medium" if found[1] else "low"

    return None


# ============================================================================
# Detection
# ============================================================================

def detect_placeholders(text: str, rules: Optional[DocxRules] = None) -> List[DocxPlaceholder]:
    """
    Find placeholders line by line; the same original text is reported once
    and a match nested in an earlier one ({name} inside {{name}}) is skipped.
    """
    rules = rules or load_rules()
    placeholders: List[DocxPlaceholder] = []
    seen = set()
    lines = text.split("\n")
    covered: Dict[int, List[Tuple[int, int]]] = {}

    scans = [
        ("explicit", pattern) for pattern in rules.placeholder_patterns["explicit"].values()
    ] + [
        ("label-with-space", pattern)
        for pattern in rules.placeholder_patterns["label_with_space"].values()
    ]

    for placeholder_type, pattern in scans:
        for line_number, line in enumerate(lines):
            spans = covered.setdefault(line_number, [])
            for match in pattern.finditer(line):
                start, end = match.span()
                if any(s <= start and end <= e for s, e in spans):
                    continue
                spans.append((start, end))

                original = match.group(0)
                if original in seen:
                    continue
                seen.add(original)

                parsed = parse_field_name(match.group(1), rules)
                if parsed:
                    mapping, confidence = parsed
                else:
                    mapping, confidence = CustomMapping(value=""), "low"
                placeholders.append(DocxPlaceholder(
                    id=f"placeholder_{len(placeholders)}",
                    original_text=original,
                    placeholder_type=placeholder_type,
                    mapping=mapping,
                    confidence=confidence,
                ))
    return placeholders


def extract_docx_text(docx_bytes: bytes) -> str:
    """Plain text of the document body, one line per paragraph."""
    package = DocxPackage.from_bytes(docx_bytes)
    root = package.read_xml(DOCUMENT_PART)
    return "\n".join(ooxml.paragraph_plain_text(p) for p in root.iter(qn("w:p")))


def analyze_docx_template(docx_bytes: bytes) -> Tuple[str, List[DocxPlaceholder]]:
    text = extract_docx_text(docx_bytes)
    return text, detect_placeholders(text)


def estimate_docx_page_count(docx_bytes: bytes) -> int:
    text = extract_docx_text(docx_bytes)
    return max(1, math.ceil(len(text) / CHARS_PER_PAGE))


# ============================================================================
# Values
# ============================================================================

def format_period(start: Optional[str], end: Optional[str], is_current: bool = False) -> str:
    start = start or ""
    end = CURRENT if is_current else (end or "")
    if start and end:
        return f"{start} - {end}"
    if start:
        return f"{start} - {CURRENT}"
    return end


def _at(items: list, index: int):
    return items[index] if 0 <= index < len(items) else None


def get_field_value(mapping, profile: ParsedLinkedIn, custom_values: Optional[dict] = None) -> str:
    """Resolve a mapping against the profile; missing entries give ''."""
    custom_values = custom_values or {}
    kind = mapping.type

    if kind == "personal":
        full_name = (profile.full_name or "").strip()
        if mapping.field == "fullName":
            return profile.full_name or ""
        if mapping.field == "firstName":
            parts = full_name.split()
            return parts[0] if parts else ""
        if mapping.field == "lastName":
            return " ".join(full_name.split()[1:])
        if mapping.field == "city":
            location = profile.location or ""
            return location.split(",")[0].strip() or location
        if mapping.field == "email":
            return profile.email or ""
        if mapping.field == "phone":
            return profile.phone or ""
        if mapping.field in ("birthDate", "nationality"):
            return custom_values.get(mapping.field) or ""
        return ""

    if kind == "experience":
        exp = _at(profile.experience, mapping.index)
        if exp is None:
            return ""
        if mapping.field == "period":
            return format_period(exp.start_date, exp.end_date, exp.is_current_role)
        return getattr(exp, mapping.field, None) or ""

    if kind == "education":
        edu = _at(profile.education, mapping.index)
        if edu is None:
            return ""
        if mapping.field == "period":
            return format_period(edu.start_year, edu.end_year)
        if mapping.field == "fieldOfStudy":
            return edu.field_of_study or ""
        return getattr(edu, mapping.field, None) or ""

    if kind == "skill":
        skill = _at(profile.skills, mapping.index)
        return skill.name if skill else ""

    if kind == "language":
        language = _at(profile.languages, mapping.index)
        if language is None:
            return ""
        if mapping.field == "proficiency":
            return language.proficiency or ""
        return language.language or ""

    if kind == "certification":
        certification = _at(profile.certifications, mapping.index)
        return certification.name if certification else ""

    if kind == "custom":
        return mapping.value or ""

    return ""


# ============================================================================
# Replacement
# ============================================================================

def _replace_in_paragraph(paragraph, needle: str, replacement: str) -> int:
    """
    Replace every occurrence of needle in the paragraph text, also when it
    is split over several runs: the replacement lands in the first run.
    """
    count = 0
    search_from = 0
    while True:
        texts = ooxml.text_elements(paragraph)
        full = "".join(t.text or "" for t in texts)
        position = full.find(needle, search_from)
        if position < 0:
            return count

        end = position + len(needle)
        offset = 0
        placed = False
        for t in texts:
            content = t.text or ""
            t_start, t_end = offset, offset + len(content)
            offset = t_end
            if t_end <= position or t_start >= end:
                continue
            before = content[:max(0, position - t_start)]
            after = content[max(0, end - t_start):] if end < t_end else ""
            if not placed:
                ooxml.set_text(t, before + replacement + after)
                placed = True
            else:
                ooxml.set_text(t, before + after)

        count += 1
        search_from = position + len(replacement)


def _replacement_for(placeholder: DocxPlaceholder, value: str) -> Optional[str]:
    if placeholder.placeholder_type == "explicit":
        return value
    match = LABEL_PLACEHOLDER.match(placeholder.original_text)
    if not match:
        return None
    return f"{match.group(1)}: {value}"


def replace_placeholders(root, placeholders: List[DocxPlaceholder], profile: ParsedLinkedIn,
                         custom_values: Optional[dict] = None) -> int:
    replaced = 0
    paragraphs = list(root.iter(qn("w:p")))
    for placeholder in placeholders:
        value = get_field_value(placeholder.mapping, profile, custom_values)
        replacement = _replacement_for(placeholder, value)
        if replacement is None:
            continue
        for paragraph in paragraphs:
            replaced += _replace_in_paragraph(paragraph, placeholder.original_text, replacement)
    return replaced


def fill_docx_placeholders(docx_bytes: bytes, placeholders: List[DocxPlaceholder],
                           profile: ParsedLinkedIn, custom_values: Optional[dict] = None) -> bytes:
    """Replace placeholders in the document body, headers and footers."""
    package = DocxPackage.from_bytes(docx_bytes)
    for part in [DOCUMENT_PART] + package.header_footer_parts():
        root = package.read_xml(part)
        count = replace_placeholders(root, placeholders, profile, custom_values)
        if count:
            package.write_xml(part, root)
            logger.debug(f"Replaced {count} placeholder occurrence(s) in {part}")
    return package.to_bytes()


def fill_docx_auto(docx_bytes: bytes, profile: ParsedLinkedIn,
                   custom_values: Optional[dict] = None) -> Tuple[bytes, List[DocxPlaceholder], int]:
    """Detect placeholders, fill the mapped ones and count non-empty values."""
    _, placeholders = analyze_docx_template(docx_bytes)
    usable = [
        p for p in placeholders
        if p.mapping.type != "custom" or p.mapping.value
    ]
    filled = fill_docx_placeholders(docx_bytes, usable, profile, custom_values)
    filled_count = sum(1 for p in usable if get_field_value(p.mapping, profile, custom_values))
    return filled, placeholders, filled_count
