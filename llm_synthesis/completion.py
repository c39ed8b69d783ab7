"""Async completion service on top of the blocking LLM adapters."""

import asyncio
import logging
from typing import Optional

from llm_synthesis.adapter import BaseLLMAdapter

logger = logging.getLogger(__name__)


class CompletionUnavailableError(Exception):
    """Raised when a completion could not be produced.

    Attributes:
        reason: Short machine-readable cause (``timeout``, ``empty`` or
            ``adapter_error``).
    """

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class CompletionService:
    """Runs adapter calls in a worker thread under a hard timeout."""

    def __init__(self, adapter: BaseLLMAdapter, timeout_seconds: float = 60.0) -> None:
        self._adapter = adapter
        self._timeout_seconds = timeout_seconds

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """Return the completion text for ``prompt``.

        Raises:
            CompletionUnavailableError: On timeout, adapter failure or an
                empty response.
        """
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._adapter.generate, prompt, system),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Completion timed out after %.1fs", self._timeout_seconds)
            raise CompletionUnavailableError("timeout", "Completion timed out.") from exc
        except Exception as exc:
            logger.warning("Completion adapter failed: %s", exc)
            raise CompletionUnavailableError("adapter_error", f"Completion failed: {exc}") from exc

        if not text or not text.strip():
            logger.warning("Completion adapter returned an empty response")
            raise CompletionUnavailableError("empty", "Completion was empty.")
        return text.strip()
