"""
Template schemas: placeholder mappings, PDF field positions and template records
"""
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from pydantic import Field

from .base import CamelModel
from .cv import FitAnalysis
from .profile import JobVacancy, ParsedLinkedIn


# ============================================================================
# Profile field mappings (discriminated on "type")
# ============================================================================

PersonalField = Literal[
    "fullName", "firstName", "lastName", "email", "phone", "city", "birthDate", "nationality",
]
ExperienceField = Literal["company", "title", "period", "description", "location"]
EducationField = Literal["school", "degree", "fieldOfStudy", "period"]
LanguageField = Literal["language", "proficiency"]
Confidence = Literal["low", "medium", "high"]


class PersonalMapping(CamelModel):
    type: Literal["personal"] = "personal"
    field: PersonalField


class ExperienceMapping(CamelModel):
    type: Literal["experience"] = "experience"
    index: int = Field(ge=0)
    field: ExperienceField


class EducationMapping(CamelModel):
    type: Literal["education"] = "education"
    index: int = Field(ge=0)
    field: EducationField


class SkillMapping(CamelModel):
    type: Literal["skill"] = "skill"
    index: int = Field(ge=0)


class LanguageMapping(CamelModel):
    type: Literal["language"] = "language"
    index: int = Field(ge=0)
    field: LanguageField = "language"


class CertificationMapping(CamelModel):
    type: Literal["certification"] = "certification"
    index: int = Field(ge=0)


class CustomMapping(CamelModel):
    type: Literal["custom"] = "custom"
    value: str = ""


ProfileFieldMapping = Annotated[
    Union[
        PersonalMapping,
        ExperienceMapping,
        EducationMapping,
        SkillMapping,
        LanguageMapping,
        CertificationMapping,
        CustomMapping,
    ],
    Field(discriminator="type"),
]


class DocxPlaceholder(CamelModel):
    id: str
    original_text: str
    placeholder_type: Literal["explicit", "label-with-space"]
    mapping: ProfileFieldMapping
    confidence: Confidence = "low"


class PDFTemplateField(CamelModel):
    """A positioned text field on a PDF page. y is measured from the bottom edge."""
    id: str
    name: str = ""
    page: int = 0
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    font_size: float = 11
    font_color: Optional[str] = None
    is_multi_line: bool = False
    max_lines: Optional[int] = None
    mapping: ProfileFieldMapping


# ============================================================================
# Template records
# ============================================================================

class TemplateResponse(CamelModel):
    id: str
    name: str
    file_name: str
    file_type: Literal["docx", "pdf"]
    storage_url: str
    page_count: Optional[int] = None
    fields: List[PDFTemplateField] = Field(default_factory=list)
    placeholders: List[DocxPlaceholder] = Field(default_factory=list)
    auto_analyzed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TemplateFieldsUpdate(CamelModel):
    fields: List[PDFTemplateField] = Field(default_factory=list)


class FillRequest(CamelModel):
    profile_data: Optional[ParsedLinkedIn] = None
    custom_values: dict = Field(default_factory=dict)
    job_vacancy: Optional[JobVacancy] = None
    fit_analysis: Optional[FitAnalysis] = None
    language: Literal["nl", "en"] = "nl"
    description_format: Literal["bullets", "paragraph"] = "bullets"
    custom_instructions: Optional[str] = None
    output_format: Literal["docx", "pdf"] = "docx"
