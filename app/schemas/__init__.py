"""
app/schemas package marker.
"""

from app.schemas.insights import (
    ChatResponse,
    InsightRecordResponse,
    KeywordInsightsRequest,
    KeywordInsightsResponse,
)
from app.schemas.telegram import TelegramMessage, TelegramUpdate, WebhookAck

__all__ = [
    "ChatResponse",
    "InsightRecordResponse",
    "KeywordInsightsRequest",
    "KeywordInsightsResponse",
    "TelegramMessage",
    "TelegramUpdate",
    "WebhookAck",
]
