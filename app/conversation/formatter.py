"""
Text rendering for conversation replies.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import pandas as pd

from app.domain.conversation import OutboundMessage
from app.domain.insights import CardRecord, InsightRecord, PipelineOutcome
from app.failure_codes import CAPACITY_EXCEEDED, CHALLENGE_DETECTED, NETWORK_TIMEOUT

# Telegram rejects longer messages.
MAX_MESSAGE_CHARS = 4096
_TRUNCATION_SUFFIX = "\n..."

_FAILURE_TEXTS = {
    CAPACITY_EXCEEDED: "All browser sessions are busy right now. Please try again in a minute.",
    NETWORK_TIMEOUT: "The dashboard took too long to respond. Please try again later.",
    CHALLENGE_DETECTED: (
        "Sorry, the dashboard asked for a human verification, so I could not read it. "
        "Please try again later."
    ),
}
_DEFAULT_FAILURE_TEXT = "Sorry, something went wrong while collecting the data. Please try again."

_HELP_TEXT = """\
Hi! I look up TikTok Creative Center trends for you.

/keywords - rank keywords for a topic by Content Gap Score
/trending - keywords with the fastest growing popularity
/hashtags - popular hashtags right now
/tracks - popular music for a region
/cancel - stop the current request

Any other message is answered by the assistant."""


class ResultFormatter:
    """
    Renders prompts, ranked tables and lists within the message size limit.
    """

    def __init__(self, *, result_limit: int = 10, max_message_chars: int = MAX_MESSAGE_CHARS) -> None:
        self.result_limit = max(1, result_limit)
        self.max_message_chars = max_message_chars

    def help_text(self) -> str:
        return _HELP_TEXT

    def cancelled(self) -> str:
        return "Okay, the current request was cancelled."

    def period_prompt(self, options: Iterable[int]) -> str:
        return f"Choose a period in days: {self._options(options)}."

    def invalid_period(self, options: Iterable[int]) -> str:
        return f"Please send one of the periods: {self._options(options)}."

    def keyword_prompt(self) -> str:
        return "Send a keyword or topic to search for."

    def region_prompt(self) -> str:
        return "Send a region, for example: United States."

    def invalid_text(self, slot: str, max_length: int) -> str:
        return f"Please send a {slot} between 1 and {max_length} characters."

    def selection_prompt(self, labels: Sequence[str]) -> str:
        lines = [f"Reply with a number from 1 to {len(labels)} to get a detailed analysis:"]
        lines.extend(f"{index}. {label}" for index, label in enumerate(labels, start=1))
        return self.truncate("\n".join(lines))

    def invalid_selection(self, count: int) -> str:
        return f"Please reply with a number from 1 to {count}, or /cancel."

    def summary(self, outcome: PipelineOutcome) -> str:
        request = outcome.request
        parts = []
        if request.keyword:
            parts.append(f'"{request.keyword}"')
        if request.region:
            parts.append(request.region)
        if request.period_days:
            parts.append(f"last {request.period_days} days")
        scope = f" for {', '.join(parts)}" if parts else ""
        count = len(outcome.insights) or len(outcome.cards)
        return f"Found {count} result(s){scope}."

    def insights_table(self, records: Sequence[InsightRecord]) -> OutboundMessage:
        frame = pd.DataFrame(
            [
                {
                    "#": index,
                    "Keyword": record.label,
                    "Popularity": record.popularity,
                    "Change": record.popularity_change_percent,
                    "CTR": record.ctr,
                    "CVR": record.cvr,
                    "CPA": record.cpa,
                    "Score": "" if record.content_gap_score is None else f"{record.content_gap_score:.2f}",
                }
                for index, record in enumerate(records[: self.result_limit], start=1)
            ]
        )
        return OutboundMessage(text=self.truncate(frame.to_string(index=False)), preformatted=True)

    def hashtags(self, cards: Sequence[CardRecord]) -> str:
        lines = ["Popular hashtags:"]
        lines.extend(
            f"{card.rank}. #{card.name} ({card.posts:,} posts)" for card in cards[: self.result_limit]
        )
        return self.truncate("\n".join(lines))

    def tracks(self, cards: Sequence[CardRecord], region: str | None = None) -> str:
        title = f"Popular music in {region}:" if region else "Popular music:"
        lines = [title]
        lines.extend(
            f'{card.rank}. "{card.name}" by {card.artist}' for card in cards[: self.result_limit]
        )
        return self.truncate("\n".join(lines))

    def no_data_notice(self, topic: str) -> str:
        return f'No Creative Center data for "{topic}". Here is a generated idea instead:'

    def failure(self, failure_code: str | None) -> str:
        return _FAILURE_TEXTS.get(failure_code or "", _DEFAULT_FAILURE_TEXT)

    def completion_failed(self) -> str:
        return "Sorry, I could not generate an answer right now. Please try again later."

    def truncate(self, text: str) -> str:
        if len(text) <= self.max_message_chars:
            return text
        cut = text[: self.max_message_chars - len(_TRUNCATION_SUFFIX)]
        if "\n" in cut:
            cut = cut[: cut.rfind("\n")]
        return cut + _TRUNCATION_SUFFIX

    @staticmethod
    def _options(options: Iterable[int]) -> str:
        return ", ".join(str(option) for option in sorted(options))
