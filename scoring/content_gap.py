"""
scoring/content_gap.py

Content Gap Score model for keyword insight records.
"""

from collections.abc import Iterable
from dataclasses import replace

from app.domain.insights import InsightRecord
from scoring.base import BaseScoringModel
from scoring.normalizer import EPSILON, MetricNormalizer


class ContentGapScorer(BaseScoringModel):
    """Ranks keywords by growth weighted with cost per click-through.

    score = popularity_change * (cpa / ctr), rounded to two decimals.

    A rising keyword whose clicks are cheap relative to conversions is a
    topic advertisers have not saturated yet. CTR and CPA fall back to
    ``EPSILON`` when missing or zero; popularity change falls back to 0.
    """

    SCORE_PRECISION: int = 2

    def __init__(self, normalizer: MetricNormalizer | None = None) -> None:
        self._normalizer = normalizer or MetricNormalizer()

    def score(self, record: InsightRecord) -> float:
        n = self._normalizer
        change = n.normalize(record.popularity_change_percent, fallback=0.0)
        ctr = n.normalize(record.ctr, fallback=EPSILON)
        cpa = n.normalize(record.cpa, fallback=EPSILON)
        return round(change * (cpa / ctr), self.SCORE_PRECISION)

    def rank(self, records: Iterable[InsightRecord]) -> tuple[InsightRecord, ...]:
        """Score copies of ``records`` and sort them by score, highest first.

        ``sorted`` is stable, so equal scores keep extraction order.
        """
        scored = [replace(record, content_gap_score=self.score(record)) for record in records]
        return tuple(sorted(scored, key=lambda item: item.content_gap_score, reverse=True))

    def filter_trending(
        self,
        records: Iterable[InsightRecord],
        min_growth_threshold: float,
    ) -> tuple[InsightRecord, ...]:
        """Keep records whose popularity change reaches the threshold."""
        return tuple(
            record
            for record in records
            if self._normalizer.normalize(record.popularity_change_percent) >= min_growth_threshold
        )
