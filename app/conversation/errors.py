"""
Conversation input validation errors.
"""

from __future__ import annotations


class MalformedInput(Exception):
    """Raised when a message does not fit the input the conversation awaits.

    Always handled inside the state machine by sending `reprompt` and
    keeping the current state.

    Attributes:
        reprompt: Text asking the user for the awaited input again.
    """

    def __init__(self, message: str, *, reprompt: str) -> None:
        self.reprompt = reprompt
        super().__init__(message)
