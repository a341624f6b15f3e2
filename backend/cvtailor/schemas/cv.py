from typing import List, Literal, Optional
from pydantic import Field, field_validator

from .base import CamelModel
from .profile import ParsedLinkedIn, JobVacancy
from .design_tokens import CVDesignTokens, CVStyleConfig


class GeneratedExperience(CamelModel):
    title: str
    company: str
    location: Optional[str] = None
    period: str = ""
    highlights: List[str] = Field(default_factory=list)
    relevance_score: Optional[float] = None


class GeneratedEducation(CamelModel):
    degree: str = ""
    institution: str = ""
    year: str = ""
    details: Optional[str] = None


class GeneratedSkills(CamelModel):
    technical: List[str] = Field(default_factory=list)
    soft: List[str] = Field(default_factory=list)


class GeneratedLanguage(CamelModel):
    language: str
    level: str = ""


class GeneratedCVContent(CamelModel):
    """Structured CV content returned by the model."""
    headline: str = ""
    summary: str
    experience: List[GeneratedExperience] = Field(default_factory=list)
    education: List[GeneratedEducation] = Field(default_factory=list)
    skills: GeneratedSkills = Field(default_factory=GeneratedSkills)
    languages: List[GeneratedLanguage] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class TokenUsage(CamelModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0


class GenerateCVRequest(CamelModel):
    linked_in_data: Optional[ParsedLinkedIn] = None
    job_vacancy: Optional[JobVacancy] = None
    style_config: Optional[CVStyleConfig] = None
    design_tokens: Optional[CVDesignTokens] = None
    avatar_url: Optional[str] = None
    language: Literal["nl", "en"] = "nl"


class GenerateCVResponse(CamelModel):
    success: bool = True
    cv_id: str
    content: GeneratedCVContent
    usage: TokenUsage


# ============================================================================
# Job vacancy parsing
# ============================================================================

class ParseJobRequest(CamelModel):
    raw_text: str = ""


# ============================================================================
# Fit analysis
# ============================================================================

FitVerdict = Literal["excellent", "good", "moderate", "challenging", "unlikely"]
FitCategory = Literal["experience", "skills", "education", "industry", "certification"]


class FitWarning(CamelModel):
    severity: Literal["info", "warning", "critical"]
    category: FitCategory
    message: str
    detail: str = ""


class FitStrength(CamelModel):
    category: Literal["experience", "skills", "education", "industry", "certification", "general"]
    message: str
    detail: str = ""


class SkillMatch(CamelModel):
    matched: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    bonus: List[str] = Field(default_factory=list)
    match_percentage: float = 0


class ExperienceMatch(CamelModel):
    candidate_years: float = 0
    required_years: float = 0
    gap: float = 0
    level_match: bool = False


class FitAnalysis(CamelModel):
    """How well a profile matches a vacancy, as judged by the model."""
    overall_score: float
    verdict: FitVerdict
    verdict_explanation: str = ""
    warnings: List[FitWarning] = Field(default_factory=list)
    strengths: List[FitStrength] = Field(default_factory=list)
    skill_match: SkillMatch = Field(default_factory=SkillMatch)
    experience_match: ExperienceMatch = Field(default_factory=ExperienceMatch)
    advice: str = ""

    @field_validator("overall_score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        return max(0.0, min(100.0, value))


class FitAnalysisRequest(CamelModel):
    linked_in_data: Optional[ParsedLinkedIn] = None
    job_vacancy: Optional[JobVacancy] = None


# ============================================================================
# Motivation letter
# ============================================================================

class MotivationLetterSections(CamelModel):
    opening: str
    why_company: str
    why_me: str
    motivation: str
    closing: str


class GeneratedMotivationLetter(MotivationLetterSections):
    full_text: str


class MotivationRequest(CamelModel):
    personal_motivation: Optional[str] = None
    language: Literal["nl", "en"] = "nl"
