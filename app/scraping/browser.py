"""
Playwright browser factory for scraping sessions.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from app.scraping.config.models import ScrapingSettings
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

_VIEWPORT = {"width": 1440, "height": 900}


@dataclass
class BrowserSession:
    """
    Handle for one isolated browser context and its page.
    """

    page: Page
    context: BrowserContext | None = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


class BrowserSessionFactory:
    """
    Lazily launches one shared Chromium process and opens a fresh
    context per session.
    """

    def __init__(self, *, settings: ScrapingSettings) -> None:
        self._settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_lock = asyncio.Lock()

    async def create(self) -> BrowserSession:
        browser = await self._ensure_browser()
        context = await browser.new_context(
            user_agent=self._settings.user_agent,
            locale=self._settings.locale,
            viewport=_VIEWPORT,
        )
        try:
            context.set_default_timeout(self._settings.locator_timeout_ms)
            context.set_default_navigation_timeout(self._settings.navigation_timeout_ms)
            page = await context.new_page()
        except BaseException:
            # Also reached when a creation timeout cancels new_page().
            await asyncio.shield(context.close())
            raise
        return BrowserSession(page=page, context=context)

    async def dispose(self, session: BrowserSession) -> None:
        if session.context is not None:
            await session.context.close()
        else:
            await session.page.close()

    async def shutdown(self) -> None:
        """
        Close the shared browser and stop the Playwright driver.
        """

        async with self._launch_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        log_event(logger, logging.INFO, "browser_shutdown")

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._settings.headless,
                slow_mo=self._settings.slow_mo_ms,
                timeout=self._settings.navigation_timeout_ms,
            )
            log_event(
                logger,
                logging.INFO,
                "browser_launched",
                headless=self._settings.headless,
                slow_mo_ms=self._settings.slow_mo_ms,
            )
            return self._browser
