"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.insights import CardRecord, InsightRecord
from app.scraping.parsing import RawRow


@dataclass(frozen=True)
class ExtractionResult:
    """
    Raw rows read from one page plus which strategy produced them.
    """

    rows: tuple[RawRow, ...] = ()
    strategy: str | None = None
    used_fallback: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class ViewScrapeResult:
    """
    Typed records produced by one view scraper run.
    """

    view: str
    insights: tuple[InsightRecord, ...] = ()
    cards: tuple[CardRecord, ...] = ()
    raw_rows: int = 0
    used_fallback: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.insights and not self.cards
