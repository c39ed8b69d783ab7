"""LLM adapters for text completion.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

from abc import ABC, abstractmethod
from typing import Optional

from openai import OpenAI

from app.config import LLMSettings


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted user prompt.
            system: Optional system instruction sent before the prompt.

        Returns:
            Raw string response from the model.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Blocking client; async callers run it in a worker thread.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 1500,
        temperature: float = 0.7,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            temperature: Sampling temperature; creative answers need > 0.
            api_key: OpenAI API key. The SDK falls back to OPENAI_API_KEY.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Per-request timeout enforced by the SDK.
        """
        client_kwargs: dict = {"timeout": timeout_seconds, "max_retries": 1}
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Call the OpenAI chat completion API.

        Args:
            prompt: The fully formatted user prompt.
            system: Optional system instruction.

        Returns:
            Stripped string content from the model response.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            stream=False,
        )
        return (response.choices[0].message.content or "").strip()


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter for local runs and CI without an API key.

    Echoes the first non-empty prompt line so callers can tell
    which prompt produced the text.
    """

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Return a fixed reply derived from the prompt.

        Args:
            prompt: The user prompt; only its first line is used.
            system: Ignored.

        Returns:
            A short deterministic string.
        """
        first_line = next((line.strip() for line in prompt.splitlines() if line.strip()), "")
        return f"[mock completion] {first_line[:120]}"


def build_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    """Instantiate the adapter selected by ``settings.adapter``.

    LLM_ADAPTER=mock   -> MockLLMAdapter  (testing, no API key required)
    LLM_ADAPTER=openai -> OpenAILLMAdapter (default)
    """
    if settings.adapter == "mock":
        return MockLLMAdapter()

    return OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
    )
