"""
app/domain package marker.
"""

from app.domain.conversation import Awaiting, ConversationState, Flow, OutboundMessage
from app.domain.insights import CardRecord, ExtractionRequest, InsightRecord, PipelineOutcome

__all__ = [
    "Awaiting",
    "CardRecord",
    "ConversationState",
    "ExtractionRequest",
    "Flow",
    "InsightRecord",
    "OutboundMessage",
    "PipelineOutcome",
]
