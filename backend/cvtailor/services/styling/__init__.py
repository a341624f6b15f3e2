from .adapter import style_config_to_tokens, tokens_to_style_config
from .themes import THEME_DEFAULTS, get_font_urls, theme_tokens, tokens_to_css

__all__ = [
    "style_config_to_tokens", "tokens_to_style_config",
    "THEME_DEFAULTS", "get_font_urls", "theme_tokens", "tokens_to_css",
]
