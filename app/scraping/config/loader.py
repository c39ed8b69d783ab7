"""
Environment + JSON config loader for dashboard view scraping.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from app.config import load_env_files
from app.scraping.config.models import (
    READINESS_MODES,
    STRATEGY_KINDS,
    ExtractionConfig,
    ExtractionStrategyConfig,
    ScrapingSettings,
    ViewCatalog,
    ViewConfig,
)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@lru_cache(maxsize=1)
def get_scraping_settings() -> ScrapingSettings:
    """
    Return cached scraper settings from environment variables.
    """

    load_env_files()
    config_path = _get_str_env("SCRAPE_VIEWS_CONFIG_PATH", "app/scraping/config/views.json")
    snapshot_dir = _get_str_env("SCRAPE_SNAPSHOT_DIR", "debug_snapshots")
    return ScrapingSettings(
        views_config_path=str(_resolve_config_path(config_path)),
        max_concurrent_sessions=max(1, _get_int_env("SCRAPE_MAX_CONCURRENT_SESSIONS", 2)),
        navigation_timeout_ms=max(1000, _get_int_env("SCRAPE_NAVIGATION_TIMEOUT_MS", 60000)),
        settle_timeout_ms=max(0, _get_int_env("SCRAPE_SETTLE_TIMEOUT_MS", 15000)),
        readiness_grace_ms=max(0, _get_int_env("SCRAPE_READINESS_GRACE_MS", 8000)),
        locator_timeout_ms=max(100, _get_int_env("SCRAPE_LOCATOR_TIMEOUT_MS", 5000)),
        extraction_timeout_ms=max(1000, _get_int_env("SCRAPE_EXTRACTION_TIMEOUT_MS", 20000)),
        pipeline_timeout_seconds=max(10.0, _get_float_env("SCRAPE_PIPELINE_TIMEOUT_SECONDS", 240.0)),
        navigation_max_attempts=min(2, max(1, _get_int_env("SCRAPE_NAVIGATION_MAX_ATTEMPTS", 2))),
        locator_max_attempts=max(1, _get_int_env("SCRAPE_LOCATOR_MAX_ATTEMPTS", 2)),
        backoff_initial_seconds=max(0.0, _get_float_env("SCRAPE_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("SCRAPE_BACKOFF_MULTIPLIER", 2.0)),
        headless=_get_bool_env("SCRAPE_HEADLESS", True),
        slow_mo_ms=max(0, _get_int_env("SCRAPE_SLOW_MO_MS", 100)),
        user_agent=_get_str_env("SCRAPE_USER_AGENT", _DEFAULT_USER_AGENT),
        locale=_get_str_env("SCRAPE_LOCALE", "en-US"),
        snapshot_dir=None if snapshot_dir.lower() in {"off", "none", "false"} else snapshot_dir,
        listing_max_clicks=max(0, _get_int_env("SCRAPE_LISTING_MAX_CLICKS", 15)),
        listing_max_scrolls=max(0, _get_int_env("SCRAPE_LISTING_MAX_SCROLLS", 10)),
        listing_wait_ms=max(0, _get_int_env("SCRAPE_LISTING_WAIT_MS", 3000)),
    )


def load_view_configs(*, config_path: str) -> ViewCatalog:
    """
    Load dashboard view configurations from a JSON file.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"View config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    views = raw_data.get("views", [])
    if not isinstance(views, list):
        raise ValueError("Invalid view config: 'views' must be a list.")

    parsed: dict[str, ViewConfig] = {}
    for entry in views:
        if not isinstance(entry, dict):
            continue

        name = str(entry.get("name", "")).strip().lower()
        url = str(entry.get("url", "")).strip()
        extraction = _parse_extraction(entry.get("extraction"))
        if not name or not url.startswith(("http://", "https://")) or extraction is None:
            continue

        readiness = str(entry.get("readiness", "settle")).strip().lower()
        parsed[name] = ViewConfig(
            name=name,
            scraper_type=str(entry.get("scraper_type", name)).strip().lower(),
            url=url,
            extraction=extraction,
            readiness=readiness if readiness in READINESS_MODES else "settle",
            controls=_normalize_selectors(entry.get("controls", {})),
            text_hints=_normalize_selectors(entry.get("text_hints", {})),
            enabled=_optional_bool(entry.get("enabled"), True),
            scraper_class=_optional_str(entry.get("scraper_class")),
        )

    return ViewCatalog(
        views=parsed,
        challenge_markers=_normalize_list(raw_data.get("challenge_markers", [])),
        challenge_phrases=[item.lower() for item in _normalize_list(raw_data.get("challenge_phrases", []))],
    )


def _parse_extraction(raw: object) -> ExtractionConfig | None:
    if not isinstance(raw, dict):
        return None
    primary = _parse_strategy(raw.get("primary"))
    if primary is None:
        return None

    fallbacks_raw = raw.get("fallbacks", [])
    fallbacks = [
        strategy
        for strategy in (_parse_strategy(item) for item in fallbacks_raw if isinstance(fallbacks_raw, list))
        if strategy is not None
    ]
    return ExtractionConfig(
        primary=primary,
        fallbacks=fallbacks,
        wait_for=_normalize_list(raw.get("wait_for", [])),
    )


def _parse_strategy(raw: object) -> ExtractionStrategyConfig | None:
    if not isinstance(raw, dict):
        return None
    kind = str(raw.get("kind", "")).strip().lower()
    containers = _normalize_list(raw.get("containers", []))
    if kind not in STRATEGY_KINDS or not containers:
        return None

    patterns = raw.get("field_patterns", {})
    return ExtractionStrategyConfig(
        kind=kind,
        containers=containers,
        rows=_normalize_list(raw.get("rows", [])),
        cells=_normalize_list(raw.get("cells", [])),
        fields=[item.lower() for item in _normalize_list(raw.get("fields", []))],
        field_selectors=_normalize_selectors(raw.get("field_selectors", {})),
        field_patterns={
            key.strip().lower(): value
            for key, value in (patterns.items() if isinstance(patterns, dict) else [])
            if isinstance(key, str) and isinstance(value, str) and key.strip() and value
        },
    )


def _normalize_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def _normalize_selectors(selectors: object) -> dict[str, list[str]]:
    if not isinstance(selectors, dict):
        return {}

    normalized: dict[str, list[str]] = {}
    for key, value in selectors.items():
        if not isinstance(key, str):
            continue
        normalized[key.strip().lower()] = _normalize_list(value)
    return normalized


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
