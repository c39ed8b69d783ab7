"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from app.config import ConversationSettings, TelegramSettings, get_conversation_settings, get_telegram_settings
from app.conversation import ConversationStateMachine
from app.services.insight_service import InsightService, get_insight_service
from app.transport.telegram import TelegramBotClient
from llm_synthesis import CompletionService


def get_service() -> InsightService:
    return get_insight_service()


def get_conversation_machine() -> ConversationStateMachine:
    return get_insight_service().machine


def get_completion_service() -> CompletionService:
    return get_insight_service().completion


def get_telegram_client() -> TelegramBotClient:
    return get_insight_service().telegram_client


def get_telegram_config() -> TelegramSettings:
    return get_telegram_settings()


def get_conversation_config() -> ConversationSettings:
    return get_conversation_settings()
