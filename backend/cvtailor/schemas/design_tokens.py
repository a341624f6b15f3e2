"""
Design token schemas and the legacy CV style configuration they convert to.
"""
from typing import List, Literal, Optional
from pydantic import Field

from .base import CamelModel


ThemeBase = Literal["professional", "modern", "creative", "minimal", "bold"]
FontPairing = Literal[
    "inter-inter",
    "playfair-inter",
    "montserrat-open-sans",
    "raleway-lato",
    "poppins-nunito",
    "roboto-roboto",
    "lato-lato",
    "merriweather-source-sans",
    "oswald-source-sans",
    "dm-serif-dm-sans",
    "space-grotesk-work-sans",
    "libre-baskerville-source-sans",
]
TypeScale = Literal["small", "medium", "large"]
SpacingScale = Literal["compact", "comfortable", "spacious"]
HeaderVariant = Literal["simple", "accented", "banner", "split"]
SectionStyle = Literal["clean", "underlined", "boxed", "timeline", "accent-left", "card"]
SkillsDisplay = Literal["tags", "list", "compact"]
BorderRadiusScale = Literal["none", "small", "medium", "large", "pill"]
DecorationLevel = Literal["none", "minimal", "moderate", "abundant"]

DEFAULT_SECTION_ORDER = ["summary", "experience", "education", "skills", "languages", "certifications"]


class ColorSet(CamelModel):
    primary: str
    secondary: str
    accent: str
    text: str
    muted: str


class CVDesignTokens(CamelModel):
    style_name: str = "Custom"
    style_rationale: str = ""
    industry_fit: str = "general"
    theme_base: ThemeBase = "professional"
    colors: ColorSet
    font_pairing: FontPairing = "inter-inter"
    scale: TypeScale = "medium"
    spacing: SpacingScale = "comfortable"
    header_variant: HeaderVariant = "simple"
    section_style: SectionStyle = "clean"
    skills_display: SkillsDisplay = "tags"
    experience_description_format: Literal["bullets", "paragraph"] = "bullets"
    contact_layout: Literal["single-row", "double-row", "single-column", "double-column"] = "single-row"
    header_gradient: Literal["none", "subtle", "radial"] = "none"
    show_photo: bool = False
    use_icons: bool = False
    rounded_corners: bool = True
    header_full_bleed: bool = False
    section_order: List[str] = Field(default_factory=lambda: list(DEFAULT_SECTION_ORDER))
    decorations: DecorationLevel = "none"
    border_radius: Optional[BorderRadiusScale] = None
    name_style: Optional[Literal["normal", "uppercase", "extra-bold"]] = None
    skill_tag_style: Optional[Literal["filled", "outlined", "pill"]] = None


# ============================================================================
# Legacy style config
# ============================================================================

class StyleTypography(CamelModel):
    heading_font: str
    body_font: str
    name_size_pt: float
    heading_size_pt: float
    body_size_pt: float
    line_height: float


class StyleLayout(CamelModel):
    style: str = "single-column"
    header_style: str = "left-aligned"
    section_order: List[str] = Field(default_factory=lambda: list(DEFAULT_SECTION_ORDER))
    section_divider: str = "line"
    skill_display: str = "tags"
    spacing: Literal["compact", "normal", "spacious"] = "normal"
    show_photo: bool = False


class StyleDecorations(CamelModel):
    intensity: Literal["subtle", "moderate", "bold"] = "moderate"
    use_borders: bool = False
    use_backgrounds: bool = False
    icon_style: Literal["none", "minimal", "filled"] = "none"
    corner_style: Literal["sharp", "rounded", "pill"] = "rounded"
    item_style: Optional[str] = None
    header_accent: Optional[str] = None


class StyleHeader(CamelModel):
    header_alignment: str = "left"
    name_weight: str = "bold"
    show_headline: bool = True
    headline_style: str = "muted"
    contact_in_header: bool = True
    contact_style: str = "inline"


class StyleSkills(CamelModel):
    skill_display: str = "tags"
    skill_tag_variant: str = "filled"
    skill_columns: str = "auto"


class CVStyleConfig(CamelModel):
    style_name: str = "Custom"
    style_rationale: str = ""
    colors: ColorSet
    typography: StyleTypography
    layout: StyleLayout
    decorations: StyleDecorations
    industry_fit: str = "general"
    formality_level: Literal["casual", "professional", "formal"] = "professional"
    header: Optional[StyleHeader] = None
    skills: Optional[StyleSkills] = None


class StyleRequest(CamelModel):
    tokens: Optional[CVDesignTokens] = None
    style_config: Optional[CVStyleConfig] = None
