"""
Base scraper abstraction for dashboard views.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from app.domain.insights import ExtractionRequest
from app.scraping.config.models import ScrapingSettings, ViewConfig
from app.scraping.errors import ControlNotFound
from app.scraping.extractor import ExtractionPlan, Extractor
from app.scraping.locator import ResilientLocator
from app.scraping.logging_utils import log_event
from app.scraping.navigation import NavigationProtocol
from app.scraping.parsing import RawRow
from app.scraping.types import ViewScrapeResult

logger = logging.getLogger(__name__)

_SCROLL_HEIGHT_JS = "() => document.body.scrollHeight"
_SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
_LEADING_INT = re.compile(r"\d+")


class ViewScraperBase(ABC):
    """
    Drives one dashboard view: open it, apply the request's filters,
    extract rows and convert them into typed records.
    """

    def __init__(
        self,
        *,
        view: ViewConfig,
        settings: ScrapingSettings,
        navigation: NavigationProtocol,
        locator: ResilientLocator,
        extractor: Extractor,
    ) -> None:
        self.view = view
        self.settings = settings
        self.navigation = navigation
        self.locator = locator
        self.extractor = extractor
        self.plan = ExtractionPlan.from_config(view.extraction)

    async def scrape(self, page: Page, request: ExtractionRequest) -> ViewScrapeResult:
        """
        Scrape the configured view for one request.
        """

        await self.navigation.open(page, self.view.url, readiness=self.view.readiness, label=self.view.name)
        await self.prepare(page, request)
        extraction = await self.extractor.extract(page, self.plan, label=self.view.name)
        result = self.build_result(list(extraction.rows))
        result = ViewScrapeResult(
            view=self.view.name,
            insights=result.insights,
            cards=result.cards,
            raw_rows=len(extraction.rows),
            used_fallback=extraction.used_fallback,
        )
        log_event(
            logger,
            logging.INFO,
            "view_scraped",
            view=self.view.name,
            raw_rows=result.raw_rows,
            insights=len(result.insights),
            cards=len(result.cards),
            used_fallback=result.used_fallback,
        )
        return result

    @abstractmethod
    async def prepare(self, page: Page, request: ExtractionRequest) -> None:
        """
        Apply filters and load content before extraction.
        """

    @abstractmethod
    def build_result(self, rows: list[RawRow]) -> ViewScrapeResult:
        """
        Convert raw rows into typed records.
        """

    async def select_period(self, page: Page, days: int) -> None:
        option_label = f"Last {days} Days"
        await self.locator.select_option(
            page,
            self.view.candidates("period_trigger", days=days),
            self.view.candidates("period_option", days=days),
            option_label=option_label,
            trigger_hints=self.view.hints("period_trigger", days=days),
            option_hints=self.view.hints("period_option", days=days),
            label="period",
        )
        await page.wait_for_timeout(self.settings.listing_wait_ms)

    async def optional_step(self, step: Awaitable[None], *, control: str) -> bool:
        """
        Run a filter step whose control may be missing; the view default
        then stays in effect.
        """

        try:
            await step
        except ControlNotFound as exc:
            log_event(
                logger,
                logging.WARNING,
                "optional_control_skipped",
                view=self.view.name,
                control=control,
                error=str(exc),
            )
            return False
        return True

    async def expand_listing(self, page: Page) -> None:
        """
        Click "See More" while it stays usable, then scroll until the page
        stops growing. Both loops are bounded by settings.
        """

        clicks = 0
        candidates = self.view.candidates("see_more")
        while candidates and clicks < self.settings.listing_max_clicks:
            button = await self.locator.query_usable(page, candidates)
            if button is None:
                break
            try:
                await button.click(timeout=self.settings.locator_timeout_ms)
            except PlaywrightError as exc:
                log_event(logger, logging.INFO, "listing_click_stopped", view=self.view.name, error=str(exc))
                break
            clicks += 1
            await page.wait_for_timeout(self.settings.listing_wait_ms)

        scrolls = 0
        for _ in range(self.settings.listing_max_scrolls):
            previous_height = await page.evaluate(_SCROLL_HEIGHT_JS)
            await page.evaluate(_SCROLL_TO_BOTTOM_JS)
            await page.wait_for_timeout(self.settings.listing_wait_ms)
            scrolls += 1
            if await page.evaluate(_SCROLL_HEIGHT_JS) == previous_height:
                break

        log_event(logger, logging.INFO, "listing_expanded", view=self.view.name, clicks=clicks, scrolls=scrolls)

    @staticmethod
    def parse_rank(raw: str, position: int) -> int:
        """Explicit rank from the page, else the 1-based row position."""

        match = _LEADING_INT.search(raw or "")
        if match is not None and int(match.group(0)) > 0:
            return int(match.group(0))
        return position
