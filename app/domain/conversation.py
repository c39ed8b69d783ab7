"""
app/domain/conversation.py

Domain models for per-user conversation state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.domain.insights import InsightRecord


class Awaiting(str, Enum):
    """Which input the conversation expects next."""

    NONE = "none"
    PERIOD = "period"
    KEYWORD = "keyword"
    REGION = "region"
    SELECTION = "selection"


class Flow(str, Enum):
    """Use case a conversation is collecting inputs for."""

    NONE = "none"
    KEYWORDS = "keywords"
    TRACKS = "tracks"
    HASHTAGS = "hashtags"
    TRENDING = "trending"


@dataclass(frozen=True)
class ConversationState:
    """
    Ephemeral state of one user's conversation.

    Lives only for the process lifetime.
    """

    awaiting: Awaiting = Awaiting.NONE
    flow: Flow = Flow.NONE
    collected_inputs: dict[str, Any] = field(default_factory=dict)
    last_result_set: tuple[str, ...] = ()
    offered_records: tuple[InsightRecord, ...] = ()

    @classmethod
    def idle(cls) -> "ConversationState":
        return cls()

    def awaiting_input(self, awaiting: Awaiting, **inputs: Any) -> "ConversationState":
        """Return a copy waiting for `awaiting` with extra collected inputs."""

        return ConversationState(
            awaiting=awaiting,
            flow=self.flow,
            collected_inputs={**self.collected_inputs, **inputs},
            last_result_set=self.last_result_set,
            offered_records=self.offered_records,
        )


@dataclass(frozen=True)
class OutboundMessage:
    """
    One message to deliver back to the user.
    """

    text: str
    preformatted: bool = False
