"""
Config helpers for dashboard view scraping.
"""

from app.scraping.config.loader import get_scraping_settings, load_view_configs
from app.scraping.config.models import (
    ExtractionConfig,
    ExtractionStrategyConfig,
    ScrapingSettings,
    ViewCatalog,
    ViewConfig,
)

__all__ = [
    "ExtractionConfig",
    "ExtractionStrategyConfig",
    "ScrapingSettings",
    "ViewCatalog",
    "ViewConfig",
    "get_scraping_settings",
    "load_view_configs",
]
