"""
Navigation and readiness protocol for dashboard views.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.challenge import ChallengeDetector
from app.scraping.config.models import ScrapingSettings
from app.scraping.diagnostics import SnapshotWriter
from app.scraping.errors import ChallengeDetected, NetworkTimeout
from app.scraping.logging_utils import log_event
from app.scraping.retry import RetryPolicy

logger = logging.getLogger(__name__)


class NavigationProtocol:
    """
    Opens a view, waits for it to become ready and rejects challenge pages.

    Readiness modes:
    - `settle`: wait for network idle, fall back to the grace delay if it
      never fires.
    - `grace`: wait the fixed grace delay only.
    - `settle_then_grace`: wait for network idle (bounded), then the grace delay.
    """

    def __init__(
        self,
        *,
        settings: ScrapingSettings,
        detector: ChallengeDetector,
        snapshots: SnapshotWriter,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._detector = detector
        self._snapshots = snapshots
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.navigation_max_attempts,
            backoff_initial_seconds=settings.backoff_initial_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            retry_on=(NetworkTimeout,),
        )

    async def open(self, page: Page, url: str, *, readiness: str = "settle", label: str = "page") -> None:
        await self._retry_policy.run(lambda: self._goto(page, url), label=f"navigate:{label}")
        await self.wait_until_ready(page, readiness)
        await self.ensure_no_challenge(page, label=label)
        log_event(logger, logging.INFO, "navigation_ready", view=label, url=url, readiness=readiness)

    async def wait_until_ready(self, page: Page, readiness: str) -> None:
        if readiness in {"settle", "settle_then_grace"}:
            settled = await self._wait_for_settle(page)
            if readiness == "settle" and settled:
                return
        if self._settings.readiness_grace_ms > 0:
            await page.wait_for_timeout(self._settings.readiness_grace_ms)

    async def ensure_no_challenge(self, page: Page, *, label: str) -> None:
        indicators = await self._detector.scan(page)
        if not indicators:
            return

        snapshot_paths = await self._snapshots.capture(page, label=f"challenge_{label}")
        log_event(
            logger,
            logging.ERROR,
            "challenge_detected",
            view=label,
            indicators=indicators,
            snapshot_paths=snapshot_paths,
        )
        raise ChallengeDetected(
            f"Anti-bot challenge shown on view '{label}'.",
            indicators=indicators,
            snapshot_paths=snapshot_paths,
        )

    async def _goto(self, page: Page, url: str) -> None:
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self._settings.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as exc:
            raise NetworkTimeout(f"Navigation to {url} timed out.", detail=str(exc)) from exc

    async def _wait_for_settle(self, page: Page) -> bool:
        if self._settings.settle_timeout_ms <= 0:
            return False
        try:
            await page.wait_for_load_state("networkidle", timeout=self._settings.settle_timeout_ms)
        except PlaywrightTimeoutError:
            log_event(
                logger,
                logging.INFO,
                "readiness_settle_timeout",
                settle_timeout_ms=self._settings.settle_timeout_ms,
            )
            return False
        return True
