"""
app/services/insight_service.py

Service wiring for the insight pipeline, completions and conversations.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.config import (
    ConversationSettings,
    LLMSettings,
    TelegramSettings,
    get_conversation_settings,
    get_llm_settings,
    get_telegram_settings,
)
from app.conversation import ConversationStateMachine, ResultFormatter
from app.conversation.machine import KEYWORD_VIEW
from app.domain.insights import ExtractionRequest, PipelineOutcome
from app.scraping.config import ScrapingSettings, get_scraping_settings
from app.scraping.engine import InsightPipeline
from app.transport.telegram import TelegramBotClient
from llm_synthesis import CompletionService, InsightPromptBuilder, build_adapter

logger = logging.getLogger(__name__)


class InsightService:
    """
    Owns the long-lived collaborators shared by the HTTP app, the polling
    runner and the CLI.
    """

    def __init__(
        self,
        *,
        scraping_settings: ScrapingSettings | None = None,
        conversation_settings: ConversationSettings | None = None,
        llm_settings: LLMSettings | None = None,
        telegram_settings: TelegramSettings | None = None,
    ) -> None:
        self._conversation_settings = conversation_settings or get_conversation_settings()
        llm = llm_settings or get_llm_settings()
        self._telegram_settings = telegram_settings or get_telegram_settings()

        self.pipeline = InsightPipeline(settings=scraping_settings or get_scraping_settings())
        self.completion = CompletionService(build_adapter(llm), timeout_seconds=llm.timeout_seconds)
        self.prompts = InsightPromptBuilder(response_language=llm.response_language)
        self.formatter = ResultFormatter(result_limit=self._conversation_settings.result_limit)
        self.machine = ConversationStateMachine(
            pipeline=self.pipeline,
            completion=self.completion,
            prompts=self.prompts,
            formatter=self.formatter,
            settings=self._conversation_settings,
        )
        self._telegram_client: TelegramBotClient | None = None

    @property
    def telegram_client(self) -> TelegramBotClient:
        if self._telegram_client is None:
            self._telegram_client = TelegramBotClient(settings=self._telegram_settings)
        return self._telegram_client

    async def keyword_insights(
        self,
        *,
        keyword: str,
        period_days: int | None = None,
        limit: int | None = None,
        min_growth_threshold: float | None = None,
    ) -> PipelineOutcome:
        """
        Run the keyword view directly, outside any conversation.
        """

        request = ExtractionRequest(
            view=KEYWORD_VIEW,
            keyword=keyword.strip(),
            period_days=period_days,
            min_growth_threshold=min_growth_threshold,
            limit=limit or self._conversation_settings.result_limit,
        )
        return await self.pipeline.run(request)

    async def analyze(self, outcome: PipelineOutcome, *, top_n: int = 5) -> str:
        """
        Analysis of the best records, or a generated idea when there are none.
        """

        topic = outcome.request.keyword or "trending topics"
        if outcome.insights:
            return await self.completion.complete(
                self.prompts.records_analysis(topic, outcome.insights[:top_n]),
                system=self.prompts.analyst_system(),
            )
        return await self.completion.complete(
            self.prompts.fallback_idea(topic),
            system=self.prompts.fallback_system(),
        )

    async def shutdown(self) -> None:
        await self.pipeline.shutdown()
        logger.info("Insight service shut down")


@lru_cache(maxsize=1)
def get_insight_service() -> InsightService:
    """
    Build and cache the insight service.
    """

    return InsightService()
