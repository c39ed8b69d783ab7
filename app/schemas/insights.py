"""
app/schemas/insights.py

Request and response schemas for insight and chat endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.insights import InsightRecord


class KeywordInsightsRequest(BaseModel):
    """
    API request model for a direct keyword insights search.
    """

    keyword: str = Field(..., min_length=1, max_length=64)
    period_days: int | None = Field(default=None, description="One of the configured period options")
    limit: int = Field(default=10, ge=1, le=50)
    min_growth_threshold: float | None = None


class InsightRecordResponse(BaseModel):
    rank: int = Field(..., ge=1)
    keyword: str
    popularity: str
    popularity_change: str
    ctr: str
    cvr: str
    cpa: str
    content_gap_score: float | None = None

    @classmethod
    def from_record(cls, record: InsightRecord) -> "InsightRecordResponse":
        return cls(
            rank=record.rank,
            keyword=record.label,
            popularity=record.popularity,
            popularity_change=record.popularity_change_percent,
            ctr=record.ctr,
            cvr=record.cvr,
            cpa=record.cpa,
            content_gap_score=record.content_gap_score,
        )


class KeywordInsightsResponse(BaseModel):
    """
    API response model for ranked keyword insights.
    """

    keyword: str
    period_days: int | None = None
    records: list[InsightRecordResponse] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
