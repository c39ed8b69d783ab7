"""
Insight scoring exports.
"""

from scoring.content_gap import ContentGapScorer
from scoring.normalizer import EPSILON, MetricNormalizer

__all__ = ["ContentGapScorer", "EPSILON", "MetricNormalizer"]
