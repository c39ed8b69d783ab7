"""
Keyed storage for per-user conversation state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.conversation import ConversationState


class ConversationStore(ABC):
    """
    Conversation state by user id.
    """

    @abstractmethod
    def get(self, user_id: str) -> ConversationState:
        """
        Return the user's state, or an idle state for unknown users.
        """

    @abstractmethod
    def set(self, user_id: str, state: ConversationState) -> None:
        """
        Replace the user's state.
        """

    @abstractmethod
    def delete(self, user_id: str) -> None:
        """
        Forget the user's state, returning them to idle.
        """


class InMemoryConversationStore(ConversationStore):
    """
    Process-lifetime store; state is lost on restart.
    """

    def __init__(self) -> None:
        self._states: dict[str, ConversationState] = {}

    def get(self, user_id: str) -> ConversationState:
        return self._states.get(user_id, ConversationState.idle())

    def set(self, user_id: str, state: ConversationState) -> None:
        self._states[user_id] = state

    def delete(self, user_id: str) -> None:
        self._states.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._states)
