"""
scoring/base.py

Abstract base interface for insight ranking models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from app.domain.insights import InsightRecord


class BaseScoringModel(ABC):
    """Abstract base class for insight scoring models.

    Implementations compute one float per record and rank a sequence of
    records by that value without mutating the input sequence.
    """

    @abstractmethod
    def score(self, record: InsightRecord) -> float:
        """Compute a ranking score for one record.

        Args:
            record: An extracted insight record with raw metric strings.

        Returns:
            A float score. Higher ranks first.
        """
        raise NotImplementedError("Subclasses must implement score()")

    @abstractmethod
    def rank(self, records: Iterable[InsightRecord]) -> tuple[InsightRecord, ...]:
        """Return scored copies of the records sorted best first."""
        raise NotImplementedError("Subclasses must implement rank()")
