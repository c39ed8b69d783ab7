"""
Keyword insights table scraper.
"""

from __future__ import annotations

from playwright.async_api import Page

from app.domain.insights import ExtractionRequest, InsightRecord
from app.scraping.base import ViewScraperBase
from app.scraping.parsing import RawRow
from app.scraping.types import ViewScrapeResult


class KeywordInsightsScraper(ViewScraperBase):
    """
    Searches the keyword insights table, optionally for one period.

    Without a keyword the view's default listing is extracted.
    """

    async def prepare(self, page: Page, request: ExtractionRequest) -> None:
        if request.period_days:
            await self.optional_step(self.select_period(page, request.period_days), control="period")

        if not request.keyword:
            return
        await self.locator.fill(
            page,
            self.view.candidates("search_input"),
            request.keyword,
            text_hints=self.view.hints("search_input"),
            label="search_input",
        )
        await self.locator.click(
            page,
            self.view.candidates("search_submit"),
            text_hints=self.view.hints("search_submit"),
            label="search_submit",
        )

    def build_result(self, rows: list[RawRow]) -> ViewScrapeResult:
        records: list[InsightRecord] = []
        for position, row in enumerate(rows, start=1):
            label = row.get("keyword", "").strip()
            if not label:
                continue
            records.append(
                InsightRecord(
                    rank=self.parse_rank(row.get("rank", ""), position),
                    label=label,
                    popularity=row.get("popularity", ""),
                    popularity_change_percent=row.get("popularity_change", ""),
                    ctr=row.get("ctr", ""),
                    cvr=row.get("cvr", ""),
                    cpa=row.get("cpa", ""),
                )
            )
        return ViewScrapeResult(view=self.view.name, insights=tuple(records))
