"""
tests/test_completion_service.py

Pytest unit tests for CompletionService, adapters and prompts.

Coverage
--------
- Mock adapter replies through the service
- Timeout, adapter error and empty reply mapped to CompletionUnavailableError
- Adapter selection from settings
- Prompt contents for analysis and generated ideas
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import pytest

from app.config import LLMSettings
from app.domain.insights import InsightRecord
from llm_synthesis import (
    BaseLLMAdapter,
    CompletionService,
    CompletionUnavailableError,
    InsightPromptBuilder,
    MockLLMAdapter,
    build_adapter,
)


class ScriptedAdapter(BaseLLMAdapter):
    def __init__(self, reply: str = "", *, delay: float = 0.0, error: Exception | None = None) -> None:
        self.reply = reply
        self.delay = delay
        self.error = error

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class TestCompletionService:
    def test_mock_adapter_reply(self) -> None:
        service = CompletionService(MockLLMAdapter())

        reply = asyncio.run(service.complete("\n  Tell me a joke\nsecond line"))

        assert reply == "[mock completion] Tell me a joke"

    def test_strips_reply(self) -> None:
        service = CompletionService(ScriptedAdapter("  text \n"))

        assert asyncio.run(service.complete("prompt")) == "text"

    @pytest.mark.parametrize(
        ("adapter", "reason"),
        [
            (ScriptedAdapter("late", delay=0.5), "timeout"),
            (ScriptedAdapter(error=RuntimeError("quota exceeded")), "adapter_error"),
            (ScriptedAdapter("   "), "empty"),
        ],
    )
    def test_unavailable(self, adapter: BaseLLMAdapter, reason: str) -> None:
        service = CompletionService(adapter, timeout_seconds=0.05)

        with pytest.raises(CompletionUnavailableError) as excinfo:
            asyncio.run(service.complete("prompt"))

        assert excinfo.value.reason == reason

    def test_build_mock_adapter(self) -> None:
        assert isinstance(build_adapter(LLMSettings(adapter="mock")), MockLLMAdapter)


class TestInsightPromptBuilder:
    def test_records_analysis(self) -> None:
        builder = InsightPromptBuilder(response_language="English")
        records = [
            InsightRecord(rank=1, label="yoga", ctr="1%", cpa="$4.00", content_gap_score=200.0),
            InsightRecord(rank=2, label="fitness"),
        ]

        prompt = builder.records_analysis("yoga", records)

        assert '"yoga"' in prompt
        assert "2 result(s)" in prompt
        assert "Content Gap Score: 200.00" in prompt
        assert "CVR: -" in prompt
        assert "Answer in English" in prompt

    def test_fallback_idea(self) -> None:
        prompt = InsightPromptBuilder().fallback_idea("pottery")

        assert 'no data for the request "pottery"' in prompt
        assert "Answer in Ukrainian." in prompt
