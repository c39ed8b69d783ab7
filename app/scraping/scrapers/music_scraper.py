"""
Popular music card scraper.
"""

from __future__ import annotations

from playwright.async_api import Page

from app.domain.insights import CardRecord, ExtractionRequest
from app.scraping.base import ViewScraperBase
from app.scraping.parsing import RawRow
from app.scraping.types import ViewScrapeResult


class PopularMusicScraper(ViewScraperBase):
    """
    Filters popular tracks by region and period, then reads title and
    artist per card. Cards missing either are dropped.
    """

    async def prepare(self, page: Page, request: ExtractionRequest) -> None:
        if request.region:
            await self.locator.type_and_choose(
                page,
                self.view.candidates("region_input"),
                request.region,
                trigger_candidates=self.view.candidates("region_trigger"),
                text_hints=self.view.hints("region_input"),
                label="region",
            )
            await page.wait_for_timeout(self.settings.listing_wait_ms)

        if request.period_days:
            await self.optional_step(self.select_period(page, request.period_days), control="period")

        await self.expand_listing(page)

    def build_result(self, rows: list[RawRow]) -> ViewScrapeResult:
        cards = [
            CardRecord(
                rank=self.parse_rank(row.get("rank", ""), position),
                name=row["name"].strip(),
                artist=row["artist"].strip(),
            )
            for position, row in enumerate(rows, start=1)
            if row.get("name", "").strip() and row.get("artist", "").strip()
        ]
        return ViewScrapeResult(view=self.view.name, cards=tuple(cards))
