"""
Segment filler: writes replacement text into an extracted part.

Label paragraphs ("Naam:", "Functie:") are rebuilt as "label: value" or as a
tab-aligned label/value row; everything else is replaced run by run.
"""
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from docx.oxml.ns import qn

from . import ooxml
from .extractor import Extraction, Segment
from .rules import (
    EDUCATION,
    PERSONAL_INFO,
    SPECIAL_NOTES,
    WORK_EXPERIENCE,
    DocxRules,
    load_rules,
)

logger = logging.getLogger(__name__)

# Twentieths of a point
DEFAULT_TAB_STOP = 2800
ENTRY_VALUE_INDENT = 2880
PERIOD_SPACING_BEFORE = 240

LABEL_SECTIONS = (PERSONAL_INFO, SPECIAL_NOTES)
ENTRY_SECTIONS = (WORK_EXPERIENCE, EDUCATION)


@dataclass
class _ParagraphGroup:
    paragraph: object
    indices: List[int] = field(default_factory=list)
    has_label: bool = False
    combined_label: Optional[str] = None


def _value_lines(value: str, rules: DocxRules) -> List[str]:
    lines = []
    for line in value.split("\n"):
        stripped = line.strip()
        if stripped and not rules.bullet_placeholder.match(stripped):
            lines.append(stripped)
    return lines


def _rebuild(paragraph, new_runs: List, ppr=None) -> None:
    """Drop all content of a paragraph except its attributes, then add ppr and runs."""
    old_ppr = ooxml.get_ppr(paragraph)
    for child in list(paragraph):
        paragraph.remove(child)
    if ppr is None:
        ppr = old_ppr
    if ppr is not None:
        paragraph.append(ppr)
    for run in new_runs:
        paragraph.append(run)


def _tab_aligned_runs(label: str, value: str, rpr) -> List:
    return [ooxml.make_run(label, rpr), ooxml.make_tab_run(rpr), ooxml.make_run(value, rpr)]


def _tab_aligned_ppr(paragraph, tab_pos: int):
    """Copy of the paragraph's w:pPr with a single tab stop and a hanging indent at tab_pos."""
    source = ooxml.get_ppr(paragraph)
    ppr = deepcopy(source) if source is not None else ooxml.style_only_ppr(paragraph)
    ooxml.set_ppr_child(ppr, ooxml.make_tabs(tab_pos))
    ooxml.set_ppr_child(ppr, ooxml.make_ind(tab_pos, tab_pos))
    return ppr


def _add_spacing_before(ppr) -> None:
    spacing = ppr.find(qn("w:spacing"))
    if spacing is not None:
        spacing.set(qn("w:before"), str(PERIOD_SPACING_BEFORE))
    else:
        ooxml.set_ppr_child(ppr, ooxml.make_spacing_before(PERIOD_SPACING_BEFORE))


def _continuation_paragraphs(paragraph, lines: List[str], rpr, tab_pos: int) -> List:
    """One indented paragraph per extra value line, sharing the paragraph style."""
    return [
        ooxml.make_paragraph(
            ooxml.style_only_ppr(paragraph, ooxml.make_ind(tab_pos)),
            [ooxml.make_run(line, rpr)],
        )
        for line in lines[1:]
    ]


def _write_tab_row(paragraph, label: str, value: str, rpr, tab_pos: int,
                   rules: DocxRules, spaced: bool = False) -> None:
    lines = _value_lines(value, rules)
    first_line = (lines[0] if lines else value).strip()
    ppr = _tab_aligned_ppr(paragraph, tab_pos)
    if spaced:
        _add_spacing_before(ppr)
    extra = _continuation_paragraphs(paragraph, lines, rpr, tab_pos) if len(lines) > 1 else []
    _rebuild(paragraph, _tab_aligned_runs(label, first_line, rpr), ppr)
    anchor = paragraph
    for continuation in extra:
        anchor.addnext(continuation)
        anchor = continuation


def _write_indented_text(paragraph, text: str, rpr) -> None:
    ppr = ooxml.style_only_ppr(paragraph, ooxml.make_ind(ENTRY_VALUE_INDENT))
    _rebuild(paragraph, [ooxml.make_run(text, rpr)], ppr)


def _entry_tab_pos(paragraph) -> int:
    existing = ooxml.tab_stop_position(paragraph)
    if existing is not None and existing != DEFAULT_TAB_STOP:
        return existing
    return ENTRY_VALUE_INDENT


def _replace_in_place(segments: Dict[int, Segment], indices: List[int],
                      filled: Dict[int, str]) -> None:
    for index in indices:
        value = filled.get(index)
        if value is not None:
            ooxml.set_text(segments[index].element, value)


def apply_filled_segments(extraction: Extraction, filled: Dict[int, str],
                          rules: Optional[DocxRules] = None) -> int:
    """
    Write `filled` (segment index -> text) into the part the extraction was
    taken from. Returns the number of paragraphs rewritten or removed.

    Template bullet paragraphs that received no text are removed.
    """
    rules = rules or load_rules()
    by_index = {s.index: s for s in extraction.segments}
    by_paragraph: Dict[int, List[Segment]] = {}
    for segment in extraction.segments:
        by_paragraph.setdefault(id(segment.paragraph), []).append(segment)

    groups: Dict[int, _ParagraphGroup] = {}
    for index in sorted(filled):
        segment = by_index.get(index)
        if segment is None:
            continue
        key = id(segment.paragraph)
        group = groups.get(key)
        if group is None:
            group = groups[key] = _ParagraphGroup(paragraph=segment.paragraph)
        group.indices.append(index)
        if rules.label.match(segment.text):
            group.has_label = True

    # A label split over several runs ("Naam" + ":") is only recognised on the whole paragraph
    for key, group in groups.items():
        if group.has_label or by_index[group.indices[0]].section not in LABEL_SECTIONS:
            continue
        combined = "".join(s.text for s in by_paragraph[key])
        match = rules.label.match(combined)
        if match:
            group.has_label = True
            group.combined_label = match.group(1)

    changed = 0
    for key, group in groups.items():
        section = by_index[group.indices[0]].section
        if group.has_label:
            changed += _fill_label_paragraph(group, section, by_index, filled, rules)
        else:
            changed += _fill_plain_paragraph(group, section, by_index, by_paragraph[key], filled, rules)

    # Empty template bullets that nothing was written into
    for key, members in by_paragraph.items():
        if key in groups:
            continue
        if any(s.is_bullet_placeholder for s in members) and all(
            s.is_bullet_placeholder or s.is_whitespace for s in members
        ):
            ooxml.remove_paragraph(members[0].paragraph)
            changed += 1

    return changed


def _fill_label_paragraph(group: _ParagraphGroup, section: str, by_index: Dict[int, Segment],
                          filled: Dict[int, str], rules: DocxRules) -> int:
    label = None
    source = None
    for index in group.indices:
        match = rules.label.match(by_index[index].text)
        if match:
            label, source = match.group(1), index
            break
    if label is None:
        if not group.combined_label:
            return 0
        label, source = group.combined_label, group.indices[0]

    value = filled.get(source)
    if value is None:
        return 0

    paragraph = group.paragraph
    rpr = ooxml.run_rpr(ooxml.run_of(by_index[group.indices[0]].element))

    if section in LABEL_SECTIONS:
        _rebuild(paragraph, [ooxml.make_run(f"{label}: {value}", rpr)])
        return 1

    tab_pos = ooxml.tab_stop_position(paragraph) or DEFAULT_TAB_STOP
    if "\t" in value:
        label_part, _, rest = value.partition("\t")
        label, value = label_part.strip(), rest.strip()
    _write_tab_row(paragraph, label, value, rpr, tab_pos, rules)
    return 1


def _fill_plain_paragraph(group: _ParagraphGroup, section: str, by_index: Dict[int, Segment],
                          members: List[Segment], filled: Dict[int, str], rules: DocxRules) -> int:
    paragraph = group.paragraph
    is_entry = section in ENTRY_SECTIONS
    first_tab = ooxml.first_run_tab(paragraph)
    period = rules.period_pattern(WORK_EXPERIENCE)

    def current(segment: Segment) -> str:
        value = filled.get(segment.index)
        return value if value is not None else segment.text

    if is_entry and first_tab is not None and len(members) >= 2:
        label_side = [s for s in members if ooxml.precedes(s.element, first_tab, paragraph)]
        value_side = [s for s in members if s not in label_side]
        if label_side and value_side:
            original_label = "".join(s.text for s in label_side).strip()
            label = "".join(current(s) for s in label_side)
            value = "".join(
                current(s) for s in value_side
                if not (s.is_bullet_placeholder or s.is_whitespace)
            )
            value = value.lstrip()
            if value.startswith(":"):
                value = value[1:]
            value = value.strip()

            if "\t" in label:
                parts = label.split("\t")
                label = parts[0].strip()
                if len(parts) > 1 and parts[1].strip():
                    value = parts[1].strip()
            if "\t" in value:
                value = " ".join(value.split("\t")).strip()

            rpr = ooxml.run_rpr(ooxml.run_of(members[0].element))
            spaced = bool(period.search(label) or period.search(original_label))
            _write_tab_row(paragraph, label, value, rpr, _entry_tab_pos(paragraph), rules, spaced)
            return 1

    if is_entry and first_tab is None:
        texts = [(s, current(s)) for s in members]
        non_blank = [(s, text) for s, text in texts if text.strip()]
        combined = "".join(text for _, text in non_blank).strip()
        if not combined:
            _replace_in_place(by_index, group.indices, filled)
            return 1

        format_segment = non_blank[0][0]
        rpr = ooxml.run_rpr(ooxml.run_of(format_segment.element))
        if "\t" in combined:
            parts = combined.split("\t")
            label_part = parts[0].strip()
            value_part = " ".join(parts[1:]).strip()
            if label_part and value_part:
                ppr = _tab_aligned_ppr(paragraph, _entry_tab_pos(paragraph))
                if period.search(label_part):
                    _add_spacing_before(ppr)
                _rebuild(paragraph, _tab_aligned_runs(label_part, value_part, rpr), ppr)
            else:
                _write_indented_text(paragraph, (label_part or value_part).replace("\t", " "), rpr)
        else:
            _write_indented_text(paragraph, combined, rpr)
        return 1

    _replace_in_place(by_index, group.indices, filled)
    if is_entry and first_tab is not None:
        ppr = ooxml.ensure_ppr(paragraph)
        if ppr.find(qn("w:ind")) is None:
            ooxml.set_ppr_child(ppr, ooxml.make_ind(ENTRY_VALUE_INDENT))
    return 1


def remove_empty_bullet_paragraphs(root, rules: Optional[DocxRules] = None) -> int:
    """Remove paragraphs whose whole text is a lone dash or bullet character."""
    rules = rules or load_rules()
    removed = 0
    for paragraph in list(root.iter(qn("w:p"))):
        texts = ooxml.text_elements(paragraph)
        if not texts:
            continue
        combined = "".join(t.text or "" for t in texts)
        if rules.empty_bullet_paragraph.match(combined):
            ooxml.remove_paragraph(paragraph)
            removed += 1
    if removed:
        logger.debug(f"Removed {removed} empty bullet paragraph(s)")
    return removed
