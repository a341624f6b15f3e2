"""
Declarative pattern tables for DOCX template analysis.

The tables live in rules.yaml next to this module and are compiled once.
"""
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Pattern

import yaml

RULES_PATH = Path(__file__).with_name("rules.yaml")

WORK_EXPERIENCE = "work_experience"
EDUCATION = "education"
PERSONAL_INFO = "personal_info"
SPECIAL_NOTES = "special_notes"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class DocxRules:
    max_heading_length: int
    section_patterns: Dict[str, List[Pattern]]
    period_patterns: Dict[str, Pattern]
    bullet_placeholder: Pattern
    empty_bullet_paragraph: Pattern
    label: Pattern
    special_notes_rejections: List[Pattern]
    placeholder_patterns: Dict[str, Dict[str, Pattern]]
    field_name_mappings: Dict[str, List[str]]
    experience_field_patterns: Dict[str, List[str]]
    education_field_patterns: Dict[str, List[str]]
    skill_names: List[str]
    language_names: List[str]

    def detect_section(self, text: str) -> Optional[str]:
        """Return the section a heading paragraph opens, or None for body text."""
        stripped = text.strip()
        if not stripped or len(stripped) > self.max_heading_length:
            return None
        for section, patterns in self.section_patterns.items():
            if any(p.search(stripped) for p in patterns):
                return section
        return None

    def period_pattern(self, section: str) -> Pattern:
        return self.period_patterns[section]


def _ci(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _lower_table(table: dict) -> Dict[str, List[str]]:
    return {key: [str(v).lower() for v in values] for key, values in table.items()}


def _compile(raw: dict) -> DocxRules:
    return DocxRules(
        max_heading_length=int(raw.get("max_heading_length", 50)),
        section_patterns={
            section: [_ci(p) for p in patterns]
            for section, patterns in raw["section_patterns"].items()
        },
        period_patterns={k: _ci(v) for k, v in raw["period_patterns"].items()},
        bullet_placeholder=re.compile(raw["bullet_placeholder"]),
        empty_bullet_paragraph=re.compile(raw["empty_bullet_paragraph"]),
        label=re.compile(raw["label"]),
        special_notes_rejections=[_ci(p) for p in raw["special_notes_rejections"]],
        placeholder_patterns={
            kind: {name: re.compile(p) for name, p in patterns.items()}
            for kind, patterns in raw["placeholder_patterns"].items()
        },
        field_name_mappings=_lower_table(raw["field_name_mappings"]),
        experience_field_patterns=_lower_table(raw["experience_field_patterns"]),
        education_field_patterns=_lower_table(raw["education_field_patterns"]),
        skill_names=[s.lower() for s in raw["skill_names"]],
        language_names=[s.lower() for s in raw["language_names"]],
    )


@lru_cache()
def load_rules(path: Optional[str] = None) -> DocxRules:
    """Load and compile the rule tables (cached per path)."""
    source = Path(path) if path else RULES_PATH
    with open(source, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return _compile(raw)
