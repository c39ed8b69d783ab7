"""
Per-user conversation state machine for insight requests.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable

from app.config import ConversationSettings
from app.conversation.errors import MalformedInput
from app.conversation.formatter import ResultFormatter
from app.conversation.store import ConversationStore, InMemoryConversationStore
from app.domain.conversation import Awaiting, ConversationState, Flow, OutboundMessage
from app.domain.insights import ExtractionRequest, PipelineOutcome
from app.scraping.engine import InsightPipeline
from llm_synthesis.completion import CompletionService, CompletionUnavailableError
from llm_synthesis.prompt_builder import InsightPromptBuilder

logger = logging.getLogger(__name__)

KEYWORD_VIEW = "keyword_insights"
HASHTAG_VIEW = "popular_hashtags"
MUSIC_VIEW = "popular_music"

_NUMBER = re.compile(r"\d{1,6}")

Handler = Callable[[str, ConversationState, str], Awaitable[list[OutboundMessage]]]


class ConversationStateMachine:
    """
    Collects request inputs message by message and runs the pipeline once
    all inputs for a flow are present.

    Flows:
    - /keywords: PERIOD -> KEYWORD -> pipeline -> SELECTION or NONE
    - /tracks: REGION -> PERIOD -> pipeline -> NONE
    - /hashtags, /trending: pipeline right away

    Invalid input re-prompts and keeps the state. The state is reset before
    every pipeline run, so a failed run never leaves the user stranded.
    Messages of one user are handled one at a time.
    """

    def __init__(
        self,
        *,
        pipeline: InsightPipeline,
        completion: CompletionService,
        prompts: InsightPromptBuilder | None = None,
        store: ConversationStore | None = None,
        formatter: ResultFormatter | None = None,
        settings: ConversationSettings | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._completion = completion
        self._prompts = prompts or InsightPromptBuilder()
        self._store = store or InMemoryConversationStore()
        self._settings = settings or ConversationSettings()
        self._formatter = formatter or ResultFormatter(result_limit=self._settings.result_limit)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}
        self._handlers: dict[Awaiting, Handler] = {
            Awaiting.PERIOD: self._on_period,
            Awaiting.KEYWORD: self._on_keyword,
            Awaiting.REGION: self._on_region,
            Awaiting.SELECTION: self._on_selection,
        }

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def handle_inbound_text(self, user_id: str | int, text: str | None) -> list[OutboundMessage]:
        """
        Process one inbound message and return the replies for it.
        """

        key = str(user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_holders[key] = self._lock_holders.get(key, 0) + 1
        try:
            async with lock:
                return await self._handle(key, (text or "").strip())
        finally:
            # Drop the lock once no message of this user is queued on it.
            self._lock_holders[key] -= 1
            if not self._lock_holders[key]:
                del self._lock_holders[key]
                del self._locks[key]

    async def _handle(self, key: str, message: str) -> list[OutboundMessage]:
        if message.startswith("/"):
            return await self._handle_command(key, message)

        state = self._store.get(key)
        handler = self._handlers.get(state.awaiting)
        if handler is None:
            return await self._chat(message)
        try:
            return await handler(key, state, message)
        except MalformedInput as exc:
            logger.info("Re-prompting user=%s awaiting=%s: %s", key, state.awaiting.value, exc)
            return [OutboundMessage(exc.reprompt)]

    async def _handle_command(self, key: str, message: str) -> list[OutboundMessage]:
        command = message.split()[0].split("@", 1)[0].lower()
        self._store.delete(key)
        settings = self._settings

        if command == "/keywords":
            self._store.set(key, ConversationState(awaiting=Awaiting.PERIOD, flow=Flow.KEYWORDS))
            return [OutboundMessage(self._formatter.period_prompt(settings.period_options))]
        if command == "/tracks":
            self._store.set(key, ConversationState(awaiting=Awaiting.REGION, flow=Flow.TRACKS))
            return [OutboundMessage(self._formatter.region_prompt())]
        if command == "/hashtags":
            return await self._run(
                key,
                Flow.HASHTAGS,
                ExtractionRequest(view=HASHTAG_VIEW, limit=settings.result_limit),
            )
        if command == "/trending":
            return await self._run(
                key,
                Flow.TRENDING,
                ExtractionRequest(
                    view=KEYWORD_VIEW,
                    min_growth_threshold=settings.min_growth_threshold,
                    limit=settings.result_limit,
                ),
            )
        if command in {"/cancel", "/reset"}:
            return [OutboundMessage(self._formatter.cancelled())]
        return [OutboundMessage(self._formatter.help_text())]

    async def _on_period(self, key: str, state: ConversationState, message: str) -> list[OutboundMessage]:
        days = self._parse_period(message)
        if state.flow is Flow.TRACKS:
            return await self._run(
                key,
                Flow.TRACKS,
                ExtractionRequest(
                    view=MUSIC_VIEW,
                    region=state.collected_inputs.get("region"),
                    period_days=days,
                    limit=self._settings.result_limit,
                ),
            )
        self._store.set(key, state.awaiting_input(Awaiting.KEYWORD, period_days=days))
        return [OutboundMessage(self._formatter.keyword_prompt())]

    async def _on_keyword(self, key: str, state: ConversationState, message: str) -> list[OutboundMessage]:
        keyword = self._parse_text(message, slot="keyword")
        return await self._run(
            key,
            Flow.KEYWORDS,
            ExtractionRequest(
                view=KEYWORD_VIEW,
                keyword=keyword,
                period_days=state.collected_inputs.get("period_days"),
                limit=self._settings.result_limit,
            ),
        )

    async def _on_region(self, key: str, state: ConversationState, message: str) -> list[OutboundMessage]:
        region = self._parse_text(message, slot="region")
        self._store.set(key, state.awaiting_input(Awaiting.PERIOD, region=region))
        return [OutboundMessage(self._formatter.period_prompt(self._settings.period_options))]

    async def _on_selection(self, key: str, state: ConversationState, message: str) -> list[OutboundMessage]:
        count = len(state.offered_records)
        reprompt = self._formatter.invalid_selection(count)
        if not _NUMBER.fullmatch(message):
            raise MalformedInput(f"Selection {message!r} is not a number.", reprompt=reprompt)
        index = int(message)
        if not 1 <= index <= count:
            raise MalformedInput(f"Selection {index} is outside 1..{count}.", reprompt=reprompt)

        self._store.delete(key)
        record = state.offered_records[index - 1]
        topic = state.collected_inputs.get("keyword") or record.label
        try:
            analysis = await self._completion.complete(
                self._prompts.records_analysis(topic, [record]),
                system=self._prompts.analyst_system(),
            )
        except CompletionUnavailableError:
            return [OutboundMessage(self._formatter.completion_failed())]
        return [OutboundMessage(analysis)]

    async def _run(self, key: str, flow: Flow, request: ExtractionRequest) -> list[OutboundMessage]:
        self._store.delete(key)
        outcome = await self._pipeline.run(request)
        logger.info(
            "Pipeline finished user=%s view=%s failure_code=%s",
            key,
            request.view,
            outcome.failure_code,
        )

        if not outcome.succeeded:
            if outcome.needs_fallback:
                return await self._fallback(request)
            return [OutboundMessage(self._formatter.failure(outcome.failure_code))]

        if outcome.insights:
            return self._offer_insights(key, flow, outcome)

        summary = OutboundMessage(self._formatter.summary(outcome))
        if flow is Flow.TRACKS:
            return [summary, OutboundMessage(self._formatter.tracks(outcome.cards, request.region))]
        return [summary, OutboundMessage(self._formatter.hashtags(outcome.cards))]

    def _offer_insights(self, key: str, flow: Flow, outcome: PipelineOutcome) -> list[OutboundMessage]:
        request = outcome.request
        self._store.set(
            key,
            ConversationState(
                awaiting=Awaiting.SELECTION,
                flow=flow,
                collected_inputs={"keyword": request.keyword, "period_days": request.period_days},
                last_result_set=outcome.labels,
                offered_records=outcome.insights,
            ),
        )
        return [
            OutboundMessage(self._formatter.summary(outcome)),
            self._formatter.insights_table(outcome.insights),
            OutboundMessage(self._formatter.selection_prompt(outcome.labels)),
        ]

    async def _fallback(self, request: ExtractionRequest) -> list[OutboundMessage]:
        topic = self._fallback_topic(request)
        try:
            idea = await self._completion.complete(
                self._prompts.fallback_idea(topic),
                system=self._prompts.fallback_system(),
            )
        except CompletionUnavailableError:
            return [OutboundMessage(self._formatter.completion_failed())]
        return [OutboundMessage(self._formatter.no_data_notice(topic)), OutboundMessage(idea)]

    async def _chat(self, message: str) -> list[OutboundMessage]:
        if not message:
            return []
        if not self._settings.chat_enabled:
            return [OutboundMessage(self._formatter.help_text())]
        try:
            reply = await self._completion.complete(message)
        except CompletionUnavailableError:
            return [OutboundMessage(self._formatter.completion_failed())]
        return [OutboundMessage(reply)]

    def _parse_period(self, message: str) -> int:
        options = self._settings.period_options
        reprompt = self._formatter.invalid_period(options)
        if not _NUMBER.fullmatch(message):
            raise MalformedInput(f"Period {message!r} is not a number.", reprompt=reprompt)
        days = int(message)
        if days not in options:
            raise MalformedInput(f"Period {days} is not one of {sorted(options)}.", reprompt=reprompt)
        return days

    def _parse_text(self, message: str, *, slot: str) -> str:
        value = " ".join(message.split())
        max_length = self._settings.max_text_length
        if not value or len(value) > max_length:
            raise MalformedInput(
                f"{slot} has length {len(value)}.",
                reprompt=self._formatter.invalid_text(slot, max_length),
            )
        return value

    @staticmethod
    def _fallback_topic(request: ExtractionRequest) -> str:
        if request.keyword:
            return request.keyword
        if request.view == MUSIC_VIEW:
            return f"popular music in {request.region}" if request.region else "popular music"
        if request.view == HASHTAG_VIEW:
            return "popular hashtags"
        return "trending topics"
