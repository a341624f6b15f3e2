"""
Repeating-block (slot) detection and duplication for work experience and
education sections.
"""
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import List, Optional

from docx.oxml import OxmlElement

from .extractor import Extraction, Segment
from .rules import EDUCATION, WORK_EXPERIENCE, DocxRules, load_rules

logger = logging.getLogger(__name__)


@dataclass
class Slot:
    """One entry block (one job, one degree): its paragraphs in document order."""
    paragraphs: List[object] = field(default_factory=list)
    segment_indices: List[int] = field(default_factory=list)


@dataclass
class SlotDetection:
    section: str
    slots: List[Slot] = field(default_factory=list)
    heading_present: bool = False


@dataclass
class DuplicationPlan:
    section: str
    slot: Optional[Slot]
    copies: int = 0
    warning: Optional[str] = None


def detect_slots(extraction: Extraction, section: str,
                 rules: Optional[DocxRules] = None) -> SlotDetection:
    """
    Find the entry blocks of a section.

    Every paragraph whose text carries a period starts a new slot (work
    experience needs a year range, education accepts a single year); the
    paragraphs that follow belong to it until the next period. Paragraphs
    before the first period are not part of any slot.
    """
    rules = rules or load_rules()
    pattern = rules.period_pattern(section)
    detection = SlotDetection(section=section, heading_present=extraction.has_heading(section))

    grouped: List[List[Segment]] = []
    for group in extraction.paragraphs():
        members = [s for s in group if s.section == section and not s.is_header]
        if members:
            grouped.append(members)

    current: Optional[Slot] = None
    for members in grouped:
        combined = "".join(s.text for s in members)
        if pattern.search(combined):
            current = Slot()
            detection.slots.append(current)
        if current is None:
            continue
        current.paragraphs.append(members[0].paragraph)
        current.segment_indices.extend(s.index for s in members)

    return detection


def plan_duplication(detection: SlotDetection, target: int) -> DuplicationPlan:
    """Decide how many copies of the last slot are needed to hold `target` entries."""
    found = len(detection.slots)
    if found == 0:
        warning = None
        if target > 0:
            label = "work experience" if detection.section == WORK_EXPERIENCE else "education"
            warning = (
                f"No {label} blocks with a period were found in the template; "
                f"{target} {label} entr{'y' if target == 1 else 'ies'} could not be given their own block."
            )
            logger.warning(warning)
        return DuplicationPlan(section=detection.section, slot=None, warning=warning)

    copies = target - found if target > found else 0
    return DuplicationPlan(section=detection.section, slot=detection.slots[-1], copies=copies)


def _slot_span(slot: Slot) -> List[object]:
    """Sibling elements from the slot's first to its last paragraph, inclusive."""
    first, last = slot.paragraphs[0], slot.paragraphs[-1]
    if first.getparent() is not last.getparent():
        # Slot crosses a container boundary (e.g. a table cell); copy its paragraphs only
        return list(slot.paragraphs)
    span = [first]
    element = first
    while element is not last:
        element = element.getnext()
        if element is None:
            break
        span.append(element)
    return span


def apply_duplication(plan: DuplicationPlan) -> int:
    """
    Insert `copies` clones of the planned slot right after it, each preceded
    by an empty spacer paragraph. Returns the number of paragraphs added.
    """
    if plan.slot is None or plan.copies <= 0:
        return 0

    span = _slot_span(plan.slot)
    anchor = span[-1]
    added = 0
    for _ in range(plan.copies):
        spacer = OxmlElement("w:p")
        anchor.addnext(spacer)
        anchor = spacer
        added += 1
        for element in span:
            clone = deepcopy(element)
            anchor.addnext(clone)
            anchor = clone
            added += 1

    logger.info(f"Duplicated {plan.section} block {plan.copies}x ({len(span)} elements each)")
    return added


def count_target_entries(section: str, profile) -> int:
    if section == WORK_EXPERIENCE:
        return len(profile.experience)
    if section == EDUCATION:
        return len(profile.education)
    return 0
