"""
Debug snapshots of pages that could not be scraped.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from app.scraping.errors import NetworkTimeout
from app.scraping.logging_utils import log_event
from app.scraping.retry import with_timeout

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """
    Writes the rendered HTML and a full-page screenshot for offline review.

    Snapshots are best effort: a failed write is logged and skipped.
    A writer without a directory is disabled.
    """

    def __init__(self, *, directory: str | None, timeout_seconds: float = 15.0) -> None:
        self.directory = Path(directory) if directory else None
        self.timeout_seconds = timeout_seconds

    async def capture(self, page: Page, *, label: str) -> list[str]:
        if self.directory is None:
            return []

        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        stem = f"{stamp}_{re.sub(r'[^A-Za-z0-9_-]+', '_', label)}"
        written: list[str] = []
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            html = await with_timeout(page.content(), seconds=self.timeout_seconds, label="snapshot_html")
            html_path = self.directory / f"{stem}.html"
            html_path.write_text(html, encoding="utf-8")
            written.append(str(html_path))

            screenshot_path = self.directory / f"{stem}.png"
            await with_timeout(
                page.screenshot(path=str(screenshot_path), full_page=True),
                seconds=self.timeout_seconds,
                label="snapshot_screenshot",
            )
            written.append(str(screenshot_path))
        except (OSError, PlaywrightError, NetworkTimeout) as exc:
            log_event(logger, logging.WARNING, "snapshot_failed", label=label, error=str(exc))

        if written:
            log_event(logger, logging.INFO, "snapshot_written", label=label, paths=written)
        return written
