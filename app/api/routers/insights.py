"""
app/api/routers/insights.py

Direct keyword insights search endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_conversation_config, get_service
from app.config import ConversationSettings
from app.failure_codes import (
    CAPACITY_EXCEEDED,
    CHALLENGE_DETECTED,
    CONTROL_NOT_FOUND,
    NETWORK_TIMEOUT,
    NO_DATA_FOUND,
)
from app.schemas.insights import InsightRecordResponse, KeywordInsightsRequest, KeywordInsightsResponse
from app.services.insight_service import InsightService

router = APIRouter(tags=["insights"])

FAILURE_STATUS_CODES = {
    CAPACITY_EXCEEDED: status.HTTP_503_SERVICE_UNAVAILABLE,
    CHALLENGE_DETECTED: status.HTTP_502_BAD_GATEWAY,
    NETWORK_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    NO_DATA_FOUND: status.HTTP_404_NOT_FOUND,
    CONTROL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


@router.post("/insights/keywords", response_model=KeywordInsightsResponse)
async def keyword_insights(
    payload: KeywordInsightsRequest,
    service: InsightService = Depends(get_service),
    conversation: ConversationSettings = Depends(get_conversation_config),
) -> KeywordInsightsResponse:
    """
    Search one keyword and return records ranked by Content Gap Score.
    """

    if payload.period_days is not None and payload.period_days not in conversation.period_options:
        allowed = ", ".join(str(option) for option in sorted(conversation.period_options))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"period_days must be one of: {allowed}.",
        )

    outcome = await service.keyword_insights(
        keyword=payload.keyword,
        period_days=payload.period_days,
        limit=payload.limit,
        min_growth_threshold=payload.min_growth_threshold,
    )
    if not outcome.succeeded:
        raise HTTPException(
            status_code=FAILURE_STATUS_CODES.get(
                outcome.failure_code or "",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ),
            detail={"failure_code": outcome.failure_code, "message": outcome.message},
        )

    return KeywordInsightsResponse(
        keyword=payload.keyword,
        period_days=payload.period_days,
        records=[InsightRecordResponse.from_record(record) for record in outcome.insights],
    )
