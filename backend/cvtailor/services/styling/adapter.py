"""
Conversion between design tokens and the legacy CV style configuration.
"""
from ...schemas.design_tokens import (
    ColorSet,
    CVDesignTokens,
    CVStyleConfig,
    StyleDecorations,
    StyleHeader,
    StyleLayout,
    StyleSkills,
    StyleTypography,
)
from .themes import TYPE_SCALES

FONT_PAIRING_TO_LEGACY = {
    "inter-inter": ("inter", "inter"),
    "playfair-inter": ("playfair", "inter"),
    "montserrat-open-sans": ("montserrat", "open-sans"),
    "raleway-lato": ("raleway", "lato"),
    "poppins-nunito": ("poppins", "nunito"),
    "roboto-roboto": ("roboto", "roboto"),
    "lato-lato": ("lato", "lato"),
    "merriweather-source-sans": ("merriweather", "source-sans"),
    # Closest legacy equivalents
    "oswald-source-sans": ("montserrat", "source-sans"),
    "dm-serif-dm-sans": ("playfair", "inter"),
    "space-grotesk-work-sans": ("inter", "inter"),
    "libre-baskerville-source-sans": ("merriweather", "source-sans"),
}

HEADING_FONT_FALLBACK = {
    "playfair": "playfair-inter",
    "montserrat": "montserrat-open-sans",
    "raleway": "raleway-lato",
    "poppins": "poppins-nunito",
    "roboto": "roboto-roboto",
    "lato": "lato-lato",
    "merriweather": "merriweather-source-sans",
}

HEADER_VARIANT_TO_LEGACY = {
    "simple": "left-aligned",
    "accented": "left-aligned",
    "banner": "banner",
    "split": "split",
}

SECTION_STYLE_TO_LEGACY = {
    "clean": "line",
    "underlined": "accent-bar",
    "boxed": "none",
    "timeline": "line",
    "accent-left": "accent-bar",
    "card": "none",
}

SKILLS_DISPLAY_TO_LEGACY = {"tags": "tags", "list": "list", "compact": "compact"}

SPACING_TO_LEGACY = {"compact": "compact", "comfortable": "normal", "spacious": "spacious"}

CASUAL_THEMES = ("modern", "creative", "bold")


# ============================================================================
# Tokens -> legacy
# ============================================================================

def _corner_style(tokens: CVDesignTokens) -> str:
    if tokens.border_radius:
        if tokens.border_radius == "none":
            return "sharp"
        return "pill" if tokens.border_radius == "pill" else "rounded"
    return "rounded" if tokens.rounded_corners else "sharp"


def _intensity(theme_base: str) -> str:
    if theme_base == "bold":
        return "bold"
    if theme_base == "minimal":
        return "subtle"
    return "moderate"


def tokens_to_style_config(tokens: CVDesignTokens) -> CVStyleConfig:
    heading_font, body_font = FONT_PAIRING_TO_LEGACY[tokens.font_pairing]
    type_scale = TYPE_SCALES[tokens.scale]
    skill_display = SKILLS_DISPLAY_TO_LEGACY.get(tokens.skills_display, "tags")

    return CVStyleConfig(
        style_name=tokens.style_name,
        style_rationale=tokens.style_rationale,
        industry_fit=tokens.industry_fit,
        formality_level="casual" if tokens.theme_base in CASUAL_THEMES else "professional",
        colors=ColorSet(**tokens.colors.model_dump()),
        typography=StyleTypography(
            heading_font=heading_font,
            body_font=body_font,
            name_size_pt=type_scale["name"],
            heading_size_pt=type_scale["heading"],
            body_size_pt=type_scale["body"],
            line_height=type_scale["line_height"],
        ),
        layout=StyleLayout(
            style="single-column",
            header_style=HEADER_VARIANT_TO_LEGACY.get(tokens.header_variant, "left-aligned"),
            section_order=list(tokens.section_order),
            section_divider=SECTION_STYLE_TO_LEGACY.get(tokens.section_style, "line"),
            skill_display=skill_display,
            spacing=SPACING_TO_LEGACY.get(tokens.spacing, "normal"),
            show_photo=tokens.show_photo,
        ),
        decorations=StyleDecorations(
            intensity=_intensity(tokens.theme_base),
            use_borders=tokens.section_style in ("boxed", "card"),
            use_backgrounds=tokens.section_style == "boxed",
            icon_style="minimal" if tokens.use_icons else "none",
            corner_style=_corner_style(tokens),
            item_style="timeline" if tokens.section_style == "timeline" else "card-subtle",
            header_accent="side-bar" if tokens.header_variant == "accented" else "none",
        ),
        header=StyleHeader(
            header_alignment="left",
            name_weight="extrabold" if tokens.name_style == "extra-bold" else "bold",
            contact_style="stacked" if tokens.header_variant == "split" else "inline",
        ),
        skills=StyleSkills(
            skill_display=skill_display,
            skill_tag_variant="filled" if tokens.skill_tag_style in (None, "pill") else tokens.skill_tag_style,
        ),
    )


# ============================================================================
# Legacy -> tokens
# ============================================================================

def determine_font_pairing(heading: str, body: str) -> str:
    for pairing, fonts in FONT_PAIRING_TO_LEGACY.items():
        if fonts == (heading, body):
            return pairing
    return HEADING_FONT_FALLBACK.get(heading, "inter-inter")


def determine_theme_base(config: CVStyleConfig) -> str:
    decorations = config.decorations
    if decorations.intensity == "bold":
        return "bold"
    if config.layout.header_style == "banner":
        return "creative"
    if config.formality_level == "casual":
        return "modern"
    if decorations.icon_style == "none" and decorations.intensity == "subtle" and not decorations.use_backgrounds:
        return "minimal"
    return "professional"


def determine_header_variant(config: CVStyleConfig) -> str:
    if config.layout.header_style in ("banner", "split"):
        return config.layout.header_style
    if config.decorations.header_accent == "side-bar":
        return "accented"
    return "simple"


def determine_section_style(config: CVStyleConfig) -> str:
    if config.decorations.item_style == "timeline":
        return "timeline"
    if config.decorations.use_backgrounds:
        return "boxed"
    if config.layout.section_divider == "accent-bar":
        return "underlined"
    return "clean"


def determine_scale(name_size_pt: float) -> str:
    if name_size_pt <= 24:
        return "small"
    if name_size_pt >= 30:
        return "large"
    return "medium"


def determine_decorations(config: CVStyleConfig, theme_base: str) -> str:
    if theme_base == "bold":
        return "abundant"
    if theme_base == "creative":
        return "moderate"
    if theme_base == "modern":
        return "minimal"
    if config.decorations.intensity == "bold":
        return "moderate"
    if config.decorations.intensity == "moderate":
        return "minimal"
    return "none"


def determine_contact_layout(config: CVStyleConfig) -> str:
    if config.header is not None and config.header.contact_style == "stacked":
        return "single-column"
    if config.layout.header_style == "split":
        return "single-column"
    return "single-row"


def determine_header_gradient(theme_base: str, header_variant: str) -> str:
    if header_variant != "banner":
        return "none"
    if theme_base == "bold":
        return "radial"
    if theme_base == "creative":
        return "subtle"
    return "none"


def style_config_to_tokens(config: CVStyleConfig) -> CVDesignTokens:
    theme_base = determine_theme_base(config)
    header_variant = determine_header_variant(config)
    skill_display = config.layout.skill_display

    return CVDesignTokens(
        style_name=config.style_name,
        style_rationale=config.style_rationale,
        industry_fit=config.industry_fit,
        theme_base=theme_base,
        colors=ColorSet(**config.colors.model_dump()),
        font_pairing=determine_font_pairing(config.typography.heading_font, config.typography.body_font),
        scale=determine_scale(config.typography.name_size_pt),
        spacing={"compact": "compact", "spacious": "spacious"}.get(config.layout.spacing, "comfortable"),
        header_variant=header_variant,
        section_style=determine_section_style(config),
        skills_display=skill_display if skill_display in ("tags", "list") else "compact",
        experience_description_format="bullets",
        contact_layout=determine_contact_layout(config),
        header_gradient=determine_header_gradient(theme_base, header_variant),
        show_photo=config.layout.show_photo,
        use_icons=config.decorations.icon_style != "none",
        rounded_corners=config.decorations.corner_style in ("rounded", "pill"),
        header_full_bleed=header_variant == "banner" and theme_base != "professional",
        section_order=list(config.layout.section_order),
        decorations=determine_decorations(config, theme_base),
    )
