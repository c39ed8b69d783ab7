"""
Structured logging helpers for browser scraping workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

# Playwright error messages embed multi-line call logs.
MAX_FIELD_CHARS = 300


def _compact(value: Any) -> Any:
    if isinstance(value, str):
        flattened = " ".join(value.split())
        if len(flattened) > MAX_FIELD_CHARS:
            return flattened[: MAX_FIELD_CHARS - 3] + "..."
        return flattened
    return value


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **{key: _compact(value) for key, value in fields.items()}}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
