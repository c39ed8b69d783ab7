"""
Popular hashtags card scraper.
"""

from __future__ import annotations

from playwright.async_api import Page

from app.domain.insights import CardRecord, ExtractionRequest
from app.scraping.base import ViewScraperBase
from app.scraping.parsing import RawRow
from app.scraping.types import ViewScrapeResult
from scoring.normalizer import MetricNormalizer


class PopularHashtagsScraper(ViewScraperBase):
    """
    Loads the full hashtag listing and reads name and post count per card.
    """

    normalizer = MetricNormalizer()

    async def prepare(self, page: Page, request: ExtractionRequest) -> None:
        await self.expand_listing(page)

    def build_result(self, rows: list[RawRow]) -> ViewScrapeResult:
        cards: list[CardRecord] = []
        for position, row in enumerate(rows, start=1):
            name = row.get("name", "").strip().lstrip("#").strip()
            if not name:
                continue
            cards.append(
                CardRecord(
                    rank=self.parse_rank(row.get("rank", ""), position),
                    name=name,
                    posts=self.normalizer.parse_magnitude(row.get("posts", "")),
                )
            )
        return ViewScrapeResult(view=self.view.name, cards=tuple(cards))
