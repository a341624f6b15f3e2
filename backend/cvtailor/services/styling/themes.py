"""
Design token tables (fonts, type and spacing scales, theme defaults) and the
CSS custom-property blocks generated from them.
"""
from typing import Dict, List, Optional

from ...schemas.design_tokens import ColorSet, CVDesignTokens


def _google(family: str, weights: str = "") -> str:
    query = f"{family}:wght@{weights}" if weights else family
    return f"https://fonts.googleapis.com/css2?family={query}&display=swap"


# ============================================================================
# Font pairings
# ============================================================================

FONT_PAIRINGS: Dict[str, dict] = {
    "inter-inter": {
        "heading": {"family": "'Inter', sans-serif", "google_url": _google("Inter", "400;500;600;700"), "weights": [400, 500, 600, 700]},
        "body": {"family": "'Inter', sans-serif", "google_url": "", "weights": [400, 500]},
    },
    "playfair-inter": {
        "heading": {"family": "'Playfair Display', serif", "google_url": _google("Playfair+Display", "400;600;700"), "weights": [400, 600, 700]},
        "body": {"family": "'Inter', sans-serif", "google_url": _google("Inter", "400;500"), "weights": [400, 500]},
    },
    "montserrat-open-sans": {
        "heading": {"family": "'Montserrat', sans-serif", "google_url": _google("Montserrat", "500;600;700"), "weights": [500, 600, 700]},
        "body": {"family": "'Open Sans', sans-serif", "google_url": _google("Open+Sans", "400;600"), "weights": [400, 600]},
    },
    "raleway-lato": {
        "heading": {"family": "'Raleway', sans-serif", "google_url": _google("Raleway", "500;600;700"), "weights": [500, 600, 700]},
        "body": {"family": "'Lato', sans-serif", "google_url": _google("Lato", "400;700"), "weights": [400, 700]},
    },
    "poppins-nunito": {
        "heading": {"family": "'Poppins', sans-serif", "google_url": _google("Poppins", "500;600;700"), "weights": [500, 600, 700]},
        "body": {"family": "'Nunito', sans-serif", "google_url": _google("Nunito", "400;600"), "weights": [400, 600]},
    },
    "roboto-roboto": {
        "heading": {"family": "'Roboto', sans-serif", "google_url": _google("Roboto", "400;500;700"), "weights": [400, 500, 700]},
        "body": {"family": "'Roboto', sans-serif", "google_url": "", "weights": [400, 500]},
    },
    "lato-lato": {
        "heading": {"family": "'Lato', sans-serif", "google_url": _google("Lato", "400;700;900"), "weights": [400, 700, 900]},
        "body": {"family": "'Lato', sans-serif", "google_url": "", "weights": [400, 700]},
    },
    "merriweather-source-sans": {
        "heading": {"family": "'Merriweather', serif", "google_url": _google("Merriweather", "400;700"), "weights": [400, 700]},
        "body": {"family": "'Source Sans 3', sans-serif", "google_url": _google("Source+Sans+3", "400;600"), "weights": [400, 600]},
    },
    "oswald-source-sans": {
        "heading": {"family": "'Oswald', sans-serif", "google_url": _google("Oswald", "400;500;600;700"), "weights": [400, 500, 600, 700]},
        "body": {"family": "'Source Sans 3', sans-serif", "google_url": _google("Source+Sans+3", "400;600"), "weights": [400, 600]},
    },
    "dm-serif-dm-sans": {
        "heading": {"family": "'DM Serif Display', serif", "google_url": _google("DM+Serif+Display"), "weights": [400]},
        "body": {"family": "'DM Sans', sans-serif", "google_url": _google("DM+Sans", "400;500;700"), "weights": [400, 500, 700]},
    },
    "space-grotesk-work-sans": {
        "heading": {"family": "'Space Grotesk', sans-serif", "google_url": _google("Space+Grotesk", "400;500;600;700"), "weights": [400, 500, 600, 700]},
        "body": {"family": "'Work Sans', sans-serif", "google_url": _google("Work+Sans", "400;500;600"), "weights": [400, 500, 600]},
    },
    "libre-baskerville-source-sans": {
        "heading": {"family": "'Libre Baskerville', serif", "google_url": _google("Libre+Baskerville", "400;700"), "weights": [400, 700]},
        "body": {"family": "'Source Sans 3', sans-serif", "google_url": _google("Source+Sans+3", "400;600"), "weights": [400, 600]},
    },
}

# Sizes in points
TYPE_SCALES = {
    "small": {"name": 24, "heading": 11, "subheading": 10, "body": 9, "small": 8, "line_height": 1.4},
    "medium": {"name": 28, "heading": 13, "subheading": 11, "body": 10, "small": 9, "line_height": 1.5},
    "large": {"name": 32, "heading": 14, "subheading": 12, "body": 11, "small": 10, "line_height": 1.6},
}

SPACING_SCALES = {
    "compact": {"section": "16px", "item": "10px", "element": "4px", "page_margin": "15mm"},
    "comfortable": {"section": "20px", "item": "12px", "element": "6px", "page_margin": "20mm"},
    "spacious": {"section": "28px", "item": "16px", "element": "8px", "page_margin": "25mm"},
}

BORDER_RADIUS_SCALES = {
    "none": {"radius": "0", "radius_large": "0"},
    "small": {"radius": "4px", "radius_large": "8px"},
    "medium": {"radius": "8px", "radius_large": "12px"},
    "large": {"radius": "12px", "radius_large": "16px"},
    "pill": {"radius": "999px", "radius_large": "999px"},
}

THEME_DEFAULTS = {
    "professional": {
        "font_pairing": "inter-inter",
        "header_variant": "simple",
        "section_style": "underlined",
        "skills_display": "tags",
        "use_icons": False,
        "rounded_corners": True,
        "suggested_colors": {
            "primary": "#1a365d", "secondary": "#f7fafc", "accent": "#2b6cb0",
            "text": "#2d3748", "muted": "#718096",
        },
    },
    "modern": {
        "font_pairing": "montserrat-open-sans",
        "header_variant": "accented",
        "section_style": "clean",
        "skills_display": "tags",
        "use_icons": True,
        "rounded_corners": True,
        "suggested_colors": {
            "primary": "#111827", "secondary": "#f3f4f6", "accent": "#6366f1",
            "text": "#374151", "muted": "#6b7280",
        },
    },
    "creative": {
        "font_pairing": "poppins-nunito",
        "header_variant": "banner",
        "section_style": "boxed",
        "skills_display": "tags",
        "use_icons": True,
        "rounded_corners": True,
        "suggested_colors": {
            "primary": "#7c3aed", "secondary": "#faf5ff", "accent": "#ec4899",
            "text": "#1f2937", "muted": "#6b7280",
        },
    },
    "minimal": {
        "font_pairing": "lato-lato",
        "header_variant": "simple",
        "section_style": "clean",
        "skills_display": "compact",
        "use_icons": False,
        "rounded_corners": False,
        "suggested_colors": {
            "primary": "#000000", "secondary": "#ffffff", "accent": "#000000",
            "text": "#333333", "muted": "#888888",
        },
    },
    "bold": {
        "font_pairing": "raleway-lato",
        "header_variant": "banner",
        "section_style": "timeline",
        "skills_display": "list",
        "use_icons": True,
        "rounded_corners": True,
        "suggested_colors": {
            "primary": "#dc2626", "secondary": "#fef2f2", "accent": "#f97316",
            "text": "#1f2937", "muted": "#6b7280",
        },
    },
}


# ============================================================================
# CSS helpers
# ============================================================================

def get_font_urls(pairing: str) -> List[str]:
    config = FONT_PAIRINGS[pairing]
    urls = []
    if config["heading"]["google_url"]:
        urls.append(config["heading"]["google_url"])
    body_url = config["body"]["google_url"]
    if body_url and body_url != config["heading"]["google_url"]:
        urls.append(body_url)
    return urls


def get_font_pairing_css(pairing: str) -> str:
    config = FONT_PAIRINGS[pairing]
    return (
        f"--font-heading: {config['heading']['family']};\n"
        f"--font-body: {config['body']['family']};\n"
    )


def get_type_scale_css(scale: str) -> str:
    config = TYPE_SCALES[scale]
    return (
        f"--size-name: {config['name']}pt;\n"
        f"--size-heading: {config['heading']}pt;\n"
        f"--size-subheading: {config['subheading']}pt;\n"
        f"--size-body: {config['body']}pt;\n"
        f"--size-small: {config['small']}pt;\n"
        f"--line-height: {config['line_height']};\n"
    )


def get_spacing_scale_css(scale: str) -> str:
    config = SPACING_SCALES[scale]
    return (
        f"--space-section: {config['section']};\n"
        f"--space-item: {config['item']};\n"
        f"--space-element: {config['element']};\n"
        f"--space-page: {config['page_margin']};\n"
    )


def adjust_color_brightness(hex_color: str, percent: float) -> str:
    """Shift each RGB channel by percent of 255, clamped to 0..255."""
    clean = hex_color.replace("#", "")
    channels = [int(clean[i:i + 2], 16) for i in (0, 2, 4)]

    def adjust(value: int) -> int:
        return max(0, min(255, round(value + (255 * percent) / 100)))

    return "#" + "".join(f"{adjust(c):02x}" for c in channels)


def get_colors_css(colors: ColorSet) -> str:
    border = adjust_color_brightness(colors.secondary, -10)
    return (
        f"--color-primary: {colors.primary};\n"
        f"--color-secondary: {colors.secondary};\n"
        f"--color-accent: {colors.accent};\n"
        f"--color-text: {colors.text};\n"
        f"--color-muted: {colors.muted};\n"
        f"--color-border: {border};\n"
        f"--color-white: #ffffff;\n"
    )


def get_border_radius_css(rounded: bool, scale: Optional[str] = None) -> str:
    if scale:
        config = BORDER_RADIUS_SCALES[scale]
        return f"--radius: {config['radius']}; --radius-large: {config['radius_large']};"
    if rounded:
        return "--radius: 4px; --radius-large: 8px;"
    return "--radius: 0; --radius-large: 0;"


def tokens_to_css(tokens: CVDesignTokens) -> str:
    """The :root custom-property block for a token set."""
    body = "".join([
        get_font_pairing_css(tokens.font_pairing),
        get_type_scale_css(tokens.scale),
        get_spacing_scale_css(tokens.spacing),
        get_colors_css(tokens.colors),
        get_border_radius_css(tokens.rounded_corners, tokens.border_radius),
        "\n",
    ])
    lines = "".join(f"  {line}\n" for line in body.splitlines() if line)
    return f":root {{\n{lines}}}\n"


def theme_tokens(theme_base: str) -> CVDesignTokens:
    """Token set built purely from a theme's defaults."""
    defaults = THEME_DEFAULTS[theme_base]
    return CVDesignTokens(
        style_name=theme_base.capitalize(),
        theme_base=theme_base,
        colors=ColorSet(**defaults["suggested_colors"]),
        font_pairing=defaults["font_pairing"],
        header_variant=defaults["header_variant"],
        section_style=defaults["section_style"],
        skills_display=defaults["skills_display"],
        use_icons=defaults["use_icons"],
        rounded_corners=defaults["rounded_corners"],
    )
