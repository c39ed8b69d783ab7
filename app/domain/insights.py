"""
app/domain/insights.py

Domain models for scraped insight records and pipeline runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.failure_codes import FALLBACK_FAILURES


@dataclass(frozen=True)
class InsightRecord:
    """
    One row of tabular keyword insight data.

    Raw metric fields keep the page's locale formatting. `content_gap_score`
    stays None until the record has been scored.
    """

    rank: int
    label: str
    popularity: str = ""
    popularity_change_percent: str = ""
    ctr: str = ""
    cvr: str = ""
    cpa: str = ""
    content_gap_score: float | None = None

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ValueError("InsightRecord.label must be non-empty.")
        if self.rank < 1:
            raise ValueError(f"InsightRecord.rank must be positive, got {self.rank}.")


@dataclass(frozen=True)
class CardRecord:
    """
    One card-style insight entry (hashtag or music track).
    """

    rank: int
    name: str
    posts: int = 0
    artist: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("CardRecord.name must be non-empty.")


@dataclass(frozen=True)
class ExtractionRequest:
    """
    Value object describing one pipeline invocation.
    """

    view: str
    keyword: str | None = None
    period_days: int | None = None
    region: str | None = None
    min_growth_threshold: float | None = None
    limit: int | None = None


@dataclass(frozen=True)
class PipelineOutcome:
    """
    Result of one pipeline run, successful or not.
    """

    request: ExtractionRequest
    insights: tuple[InsightRecord, ...] = ()
    cards: tuple[CardRecord, ...] = ()
    failure_code: str | None = None
    message: str = ""
    snapshot_paths: tuple[str, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.failure_code is None

    @property
    def needs_fallback(self) -> bool:
        return self.failure_code in FALLBACK_FAILURES

    @property
    def labels(self) -> tuple[str, ...]:
        if self.insights:
            return tuple(record.label for record in self.insights)
        return tuple(card.name for card in self.cards)
