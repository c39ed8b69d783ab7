"""
LLM completion exports.
"""

from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter, build_adapter
from llm_synthesis.completion import CompletionService, CompletionUnavailableError
from llm_synthesis.prompt_builder import InsightPromptBuilder

__all__ = [
    "BaseLLMAdapter",
    "CompletionService",
    "CompletionUnavailableError",
    "InsightPromptBuilder",
    "MockLLMAdapter",
    "OpenAILLMAdapter",
    "build_adapter",
]
