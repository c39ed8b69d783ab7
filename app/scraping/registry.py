"""
View scraper class registry and factory.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping

from app.scraping.base import ViewScraperBase
from app.scraping.config.models import ScrapingSettings, ViewConfig
from app.scraping.extractor import Extractor
from app.scraping.locator import ResilientLocator
from app.scraping.navigation import NavigationProtocol
from app.scraping.scrapers import KeywordInsightsScraper, PopularHashtagsScraper, PopularMusicScraper


class ScraperRegistry:
    """
    Scraper registry supporting built-ins and dynamic import paths.
    """

    def __init__(self, registrations: Mapping[str, type[ViewScraperBase]] | None = None) -> None:
        builtins: dict[str, type[ViewScraperBase]] = {
            "keyword": KeywordInsightsScraper,
            "hashtag": PopularHashtagsScraper,
            "music": PopularMusicScraper,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, scraper_type: str, scraper_class: type[ViewScraperBase]) -> None:
        self._registrations[scraper_type.strip().lower()] = scraper_class

    def create_scraper(
        self,
        *,
        view: ViewConfig,
        settings: ScrapingSettings,
        navigation: NavigationProtocol,
        locator: ResilientLocator,
        extractor: Extractor,
    ) -> ViewScraperBase:
        scraper_class = self._resolve_scraper_class(view)
        return scraper_class(
            view=view,
            settings=settings,
            navigation=navigation,
            locator=locator,
            extractor=extractor,
        )

    def _resolve_scraper_class(self, view: ViewConfig) -> type[ViewScraperBase]:
        if view.scraper_class:
            return self._load_dynamic_class(view.scraper_class)

        resolved = self._registrations.get(view.scraper_type)
        if resolved is None:
            allowed = ", ".join(sorted(self._registrations.keys()))
            raise ValueError(
                f"Unknown scraper_type='{view.scraper_type}' for view='{view.name}'. "
                f"Allowed types: {allowed}."
            )
        return resolved

    @staticmethod
    def _load_dynamic_class(path: str) -> type[ViewScraperBase]:
        if ":" not in path:
            raise ValueError(f"Invalid scraper_class '{path}'. Use 'module.path:ClassName'.")

        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve scraper class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, ViewScraperBase):
            raise ValueError(f"Class '{path}' must inherit from ViewScraperBase.")
        return loaded
