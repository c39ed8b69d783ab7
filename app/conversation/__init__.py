"""
Per-user conversation flows over the insight pipeline.
"""

from app.conversation.errors import MalformedInput
from app.conversation.formatter import ResultFormatter
from app.conversation.machine import ConversationStateMachine
from app.conversation.store import ConversationStore, InMemoryConversationStore

__all__ = [
    "ConversationStateMachine",
    "ConversationStore",
    "InMemoryConversationStore",
    "MalformedInput",
    "ResultFormatter",
]
