"""
Anti-bot challenge detection for rendered pages.
"""

from __future__ import annotations

from collections.abc import Sequence

from bs4 import BeautifulSoup
from playwright.async_api import Page

from app.scraping.parsing import node_text
from app.scraping.retry import with_timeout


class ChallengeDetector:
    """
    Looks for human-verification widgets by selector and by visible phrase.

    Embedded captcha frames and containers are matched with CSS marker
    selectors; interstitial pages without a widget are caught by phrases
    in the rendered text.
    """

    def __init__(
        self,
        *,
        markers: Sequence[str],
        phrases: Sequence[str],
        timeout_seconds: float = 10.0,
    ) -> None:
        self.markers = list(markers)
        self.phrases = [phrase.lower() for phrase in phrases]
        self.timeout_seconds = timeout_seconds

    async def scan(self, page: Page) -> list[str]:
        """
        Return indicator strings for every marker or phrase found on the page.
        """

        html = await with_timeout(page.content(), seconds=self.timeout_seconds, label="challenge_scan")
        return self.scan_markup(html)

    def scan_markup(self, html: str) -> list[str]:
        soup = BeautifulSoup(html, "html.parser")
        indicators = [f"marker:{selector}" for selector in self.markers if soup.select_one(selector)]

        body = soup.body or soup
        text = node_text(body).lower()
        indicators.extend(f"phrase:{phrase}" for phrase in self.phrases if phrase in text)
        return indicators
