"""
app/services package marker.
"""

from app.services.insight_service import InsightService, get_insight_service

__all__ = [
    "InsightService",
    "get_insight_service",
]
