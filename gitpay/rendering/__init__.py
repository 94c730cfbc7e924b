"""
SVG badges and the HTML donation page.
"""

from .badges import render_dashboard, render_donate_badge, render_stats_badge
from .pages import render_donation_page
from .themes import THEMES, Theme, get_theme

__all__ = [
    "render_dashboard",
    "render_donate_badge",
    "render_stats_badge",
    "render_donation_page",
    "THEMES",
    "Theme",
    "get_theme",
]
