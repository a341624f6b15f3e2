"""
Profile schemas: parsed LinkedIn data, job vacancies and saved profiles
"""
from typing import List, Optional
from datetime import datetime
from pydantic import Field

from .base import CamelModel


# ============================================================================
# Parsed LinkedIn profile
# ============================================================================

class Experience(CamelModel):
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None
    description: Optional[str] = None
    is_current_role: bool = False


class Education(CamelModel):
    school: str = ""
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_year: Optional[str] = None
    end_year: Optional[str] = None


class Skill(CamelModel):
    name: str


class Language(CamelModel):
    language: str
    proficiency: Optional[str] = None


class Certification(CamelModel):
    name: str
    issuer: Optional[str] = None
    issue_date: Optional[str] = None


class ParsedLinkedIn(CamelModel):
    """Structured professional profile. Only full_name is required."""
    full_name: str
    headline: Optional[str] = None
    about: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)


class JobVacancy(CamelModel):
    title: str
    company: Optional[str] = None
    description: str = ""
    requirements: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    industry: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    raw_text: Optional[str] = None


# ============================================================================
# Saved profile requests / responses
# ============================================================================

class ProfileCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    parsed_data: ParsedLinkedIn
    avatar_url: Optional[str] = None
    is_default: bool = False


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    parsed_data: Optional[ParsedLinkedIn] = None
    avatar_url: Optional[str] = None
    is_default: Optional[bool] = None


class ProfileSummary(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    headline: Optional[str] = None
    experience_count: int = 0
    avatar_url: Optional[str] = None
    is_default: bool = False
    updated_at: Optional[datetime] = None


class ProfileResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    parsed_data: ParsedLinkedIn
    avatar_url: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Enrichment / LinkedIn export
# ============================================================================

class EnrichRequest(CamelModel):
    enrichment_text: str = ""
    language: str = "nl"


class EnrichmentResult(CamelModel):
    """Additions proposed by the model when enriching a profile."""
    headline: Optional[str] = None
    about: Optional[str] = None
    new_experience: List[Experience] = Field(default_factory=list)
    new_education: List[Education] = Field(default_factory=list)
    new_skills: List[Skill] = Field(default_factory=list)
    new_certifications: List[Certification] = Field(default_factory=list)
    changes_summary: str = ""


class LinkedInExportRequest(CamelModel):
    language: str = "nl"


class ExperienceDescription(CamelModel):
    original_title: str = ""
    original_company: str = ""
    optimized_title: str = ""
    description: str = ""
    skills: List[str] = Field(default_factory=list)


class EducationDescription(CamelModel):
    original_school: str = ""
    description: str = ""


class LinkedInExport(CamelModel):
    headline: str = ""
    about: str = ""
    experience_descriptions: List[ExperienceDescription] = Field(default_factory=list)
    education_descriptions: List[EducationDescription] = Field(default_factory=list)
    top_skills: List[str] = Field(default_factory=list)
    profile_tips: List[str] = Field(default_factory=list)
