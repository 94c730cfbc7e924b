"""
Badge color themes.
"""

from dataclasses import dataclass
from typing import Dict

from ..fetchers.errors import BadRequestError


@dataclass(frozen=True)
class Theme:
    """Palette used by the stats and donate badges."""

    name: str
    background: str
    card_bg: str
    border: str
    primary_text: str
    secondary_text: str
    accent_text: str
    button_bg: str
    button_text: str
    glow: bool = False


THEMES: Dict[str, Theme] = {
    "light": Theme(
        name="light",
        background="#ffffff",
        card_bg="#f8fafc",
        border="#e2e8f0",
        primary_text="#1e293b",
        secondary_text="#64748b",
        accent_text="#059669",
        button_bg="#3b82f6",
        button_text="#ffffff",
    ),
    "dark": Theme(
        name="dark",
        background="#0f172a",
        card_bg="#1e293b",
        border="#334155",
        primary_text="#f1f5f9",
        secondary_text="#cbd5e1",
        accent_text="#10b981",
        button_bg="#6366f1",
        button_text="#ffffff",
    ),
    "neon": Theme(
        name="neon",
        background="#0a0a0a",
        card_bg="#111111",
        border="#00ff88",
        primary_text="#00ff88",
        secondary_text="#88ff88",
        accent_text="#ff0088",
        button_bg="#ff0088",
        button_text="#000000",
        glow=True,
    ),
}


def get_theme(name: str) -> Theme:
    """
    Look up a theme by name.

    Raises:
        BadRequestError: If the name is not a known theme
    """
    theme = THEMES.get(name)
    if theme is None:
        valid = ", ".join(THEMES)
        raise BadRequestError(f"Invalid style. Must be one of: {valid}")
    return theme
