from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - No empty-string values are accepted.
    - LLM API key check is skipped only when LLM_ADAPTER=mock.
    - TELEGRAM_BOT_TOKEN is required whenever TELEGRAM_ENABLED is not false.
    - SCRAPE_MAX_CONCURRENT_SESSIONS, when set, must be a positive integer.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- LLM API key ----------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in {"openai", "mock"}:
        errors.append(f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['mock', 'openai'].")
    elif adapter != "mock":
        llm_api_key = os.getenv("LLM_API_KEY", "").strip()
        openai_api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not llm_api_key and not openai_api_key:
            errors.append(
                "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY. "
                "Empty strings are not permitted."
            )

    # --- Telegram -------------------------------------------------------
    telegram_enabled_raw = os.getenv("TELEGRAM_ENABLED", "true").strip().lower()
    telegram_enabled = telegram_enabled_raw in {"1", "true", "yes", "on"}
    telegram_token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip() or os.getenv("TELEGRAM_TOKEN", "").strip()
    if telegram_enabled and not telegram_token:
        errors.append(
            "TELEGRAM_BOT_TOKEN is not set but TELEGRAM_ENABLED is true. "
            "Set TELEGRAM_BOT_TOKEN or disable the webhook with TELEGRAM_ENABLED=false."
        )

    # --- Session pool ---------------------------------------------------
    sessions_raw = os.getenv("SCRAPE_MAX_CONCURRENT_SESSIONS")
    if sessions_raw is not None:
        if not sessions_raw.strip().isdigit() or int(sessions_raw) < 1:
            errors.append(
                f"SCRAPE_MAX_CONCURRENT_SESSIONS='{sessions_raw}' is not valid. "
                "It must be a positive integer."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the insight service on boot; close the shared browser on exit."""
    from app.services.insight_service import get_insight_service

    service = get_insight_service()
    catalog = service.pipeline.catalog
    logging.getLogger(__name__).info(
        "Insight service ready with %d views and %d browser session slots",
        len(catalog.views),
        service.pipeline.pool.capacity,
    )
    try:
        yield
    finally:
        await service.shutdown()
        logging.getLogger(__name__).info("Browser shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="InsightScout API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import chat_router, insights_router, telegram_webhook_router

    application.include_router(telegram_webhook_router)
    application.include_router(chat_router)
    application.include_router(insights_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
