"""
Mode selection for the dashboard: which analysis view fills the main area.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ToolMode(str, Enum):
    AUDIT = "AUDIT"
    KEYWORD = "KEYWORD"
    PRODUCT = "PRODUCT"
    COLLECTION = "COLLECTION"
    ROADMAP = "ROADMAP"
    MONITOR = "MONITOR"
    BLOG = "BLOG"
    SITEMAP = "SITEMAP"


DEFAULT_MODE = ToolMode.MONITOR

# Sidebar order
NAVIGATION = [
    (ToolMode.MONITOR, "Project Overview"),
    (ToolMode.AUDIT, "Site Auditor"),
    (ToolMode.ROADMAP, "Ranking Roadmap"),
    (ToolMode.SITEMAP, "Sitemap Intel"),
    (ToolMode.PRODUCT, "Product Optimizer"),
    (ToolMode.COLLECTION, "Category Analysis"),
    (ToolMode.KEYWORD, "Keyword Explorer"),
    (ToolMode.BLOG, "Blog Audit"),
]


def mode_title(mode: ToolMode) -> str:
    return dict(NAVIGATION)[mode]


def parse_mode(value: Optional[str]) -> ToolMode:
    """Map a query-string value to a mode; anything unknown falls back to the default."""
    try:
        return ToolMode((value or "").upper())
    except ValueError:
        return DEFAULT_MODE


class ViewRouter:
    """Registry of one view callable per mode."""

    def __init__(self):
        self.views: Dict[ToolMode, Callable] = {}

    def register(self, mode: ToolMode, view: Callable):
        self.views[mode] = view

    def resolve(self, mode: ToolMode) -> Callable:
        if mode in self.views:
            return self.views[mode]
        logger.warning("No view registered for %s, showing %s", mode.value, DEFAULT_MODE.value)
        return self.views[DEFAULT_MODE]
