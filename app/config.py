"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = _PROJECT_ROOT / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_int_set_env(name: str, default: frozenset[int]) -> frozenset[int]:
    """
    Read a comma-separated set of positive integers, e.g. `7,30,120`.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    parsed: set[int] = set()
    for item in raw_value.split(","):
        try:
            number = int(item.strip())
        except ValueError:
            continue
        if number > 0:
            parsed.add(number)
    return frozenset(parsed) if parsed else default


@dataclass(frozen=True)
class ConversationSettings:
    """
    Runtime settings for the per-user conversation flows.
    """

    period_options: frozenset[int] = frozenset({7, 30, 120})
    default_period_days: int = 7
    result_limit: int = 10
    min_growth_threshold: float = 200.0
    max_text_length: int = 64
    chat_enabled: bool = True


@dataclass(frozen=True)
class LLMSettings:
    """
    Completion service settings.
    """

    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 1500
    temperature: float = 0.7
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 60.0
    response_language: str = "Ukrainian"


@dataclass(frozen=True)
class TelegramSettings:
    """
    Telegram Bot API transport settings.
    """

    enabled: bool = True
    bot_token: str | None = None
    api_base_url: str = "https://api.telegram.org"
    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    poll_timeout_seconds: int = 30


@lru_cache(maxsize=1)
def get_conversation_settings() -> ConversationSettings:
    """
    Return cached conversation settings from environment variables.
    """

    period_options = _get_int_set_env("BOT_PERIOD_OPTIONS", frozenset({7, 30, 120}))
    default_period = _get_int_env("BOT_DEFAULT_PERIOD_DAYS", min(period_options))
    if default_period not in period_options:
        default_period = min(period_options)
    return ConversationSettings(
        period_options=period_options,
        default_period_days=default_period,
        result_limit=max(1, _get_int_env("BOT_RESULT_LIMIT", 10)),
        min_growth_threshold=_get_float_env("BOT_MIN_GROWTH_THRESHOLD", 200.0),
        max_text_length=max(8, _get_int_env("BOT_MAX_TEXT_LENGTH", 64)),
        chat_enabled=_get_bool_env("BOT_CHAT_ENABLED", True),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached completion settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        max_tokens=max(64, _get_int_env("LLM_MAX_TOKENS", 1500)),
        temperature=min(2.0, max(0.0, _get_float_env("LLM_TEMPERATURE", 0.7))),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 60.0)),
        response_language=_get_str_env("LLM_RESPONSE_LANGUAGE", "Ukrainian"),
    )


@lru_cache(maxsize=1)
def get_telegram_settings() -> TelegramSettings:
    """
    Return cached Telegram transport settings from environment variables.
    """

    return TelegramSettings(
        enabled=_get_bool_env("TELEGRAM_ENABLED", True),
        bot_token=_get_optional_str_env("TELEGRAM_BOT_TOKEN") or _get_optional_str_env("TELEGRAM_TOKEN"),
        api_base_url=_get_str_env("TELEGRAM_API_BASE_URL", "https://api.telegram.org").rstrip("/"),
        timeout_seconds=max(1.0, _get_float_env("TELEGRAM_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("TELEGRAM_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("TELEGRAM_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("TELEGRAM_BACKOFF_MULTIPLIER", 2.0)),
        poll_timeout_seconds=max(0, _get_int_env("TELEGRAM_POLL_TIMEOUT_SECONDS", 30)),
    )
