"""
Segment extraction: every <w:t> of a part becomes a numbered Segment tagged
with the CV section its paragraph belongs to.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from docx.oxml.ns import qn

from .ooxml import enclosing_paragraph
from .rules import UNKNOWN, DocxRules, load_rules


@dataclass
class Segment:
    index: int
    text: str
    element: object
    paragraph: object
    paragraph_index: int
    section: str = UNKNOWN
    is_header: bool = False
    is_whitespace: bool = False
    is_bullet_placeholder: bool = False


@dataclass
class SectionInfo:
    type: str
    start_index: int
    end_index: int


@dataclass
class Extraction:
    segments: List[Segment] = field(default_factory=list)
    sections: List[SectionInfo] = field(default_factory=list)

    def paragraphs(self) -> List[List[Segment]]:
        """Segments grouped by paragraph, in document order."""
        grouped: Dict[int, List[Segment]] = {}
        for segment in self.segments:
            grouped.setdefault(segment.paragraph_index, []).append(segment)
        return [grouped[key] for key in sorted(grouped)]

    def section_of(self, index: int) -> Optional[str]:
        for section in self.sections:
            if section.start_index <= index <= section.end_index:
                return section.type
        return None

    def has_heading(self, section_type: str) -> bool:
        return any(s.is_header and s.section == section_type for s in self.segments)


def extract_segments(root, rules: Optional[DocxRules] = None) -> Extraction:
    """
    Number every text element of a parsed part and detect CV sections.

    A paragraph whose combined text matches a section heading closes the
    previous section range and opens a new one; segments before the first
    heading form an 'unknown' range. Ranges cover [0, len(segments)) exactly.
    """
    rules = rules or load_rules()
    extraction = Extraction()

    paragraph_order: Dict[int, int] = {}
    for t in root.iter(qn("w:t")):
        paragraph = enclosing_paragraph(t)
        if paragraph is None:
            continue
        key = id(paragraph)
        if key not in paragraph_order:
            paragraph_order[key] = len(paragraph_order)
        text = t.text or ""
        extraction.segments.append(Segment(
            index=len(extraction.segments),
            text=text,
            element=t,
            paragraph=paragraph,
            paragraph_index=paragraph_order[key],
            is_whitespace=not text.strip(),
        ))

    if not extraction.segments:
        return extraction

    current = UNKNOWN
    range_start = 0
    for group in extraction.paragraphs():
        combined = "".join(s.text for s in group)
        heading = rules.detect_section(combined)
        if heading:
            first = group[0].index
            if first > range_start:
                extraction.sections.append(SectionInfo(current, range_start, first - 1))
            current = heading
            range_start = first
            for segment in group:
                segment.section = heading
                segment.is_header = True
            continue

        is_bullet = bool(rules.bullet_placeholder.match(combined))
        for segment in group:
            segment.section = current
            segment.is_bullet_placeholder = is_bullet

    extraction.sections.append(
        SectionInfo(current, range_start, len(extraction.segments) - 1)
    )
    return extraction
