"""
LLM Module

Single chat-completions client used by extraction, comparison and chat.
Every call soft-fails into an LLMResponse; nothing here decides
business outcomes.
"""

from .client import (
    DisabledLLMClient,
    FakeLLMClient,
    LLMCallError,
    LLMClient,
    LLMResponse,
    OpenAILLMClient,
    get_llm_client,
    get_llm_compare_model,
    get_llm_model,
    is_llm_enabled,
    parse_json_content,
    strip_code_fences,
)

__all__ = [
    # Clients
    "LLMClient",
    "LLMCallError",
    "OpenAILLMClient",
    "DisabledLLMClient",
    "FakeLLMClient",
    "LLMResponse",
    "get_llm_client",
    # Config
    "is_llm_enabled",
    "get_llm_model",
    "get_llm_compare_model",
    # JSON
    "parse_json_content",
    "strip_code_fences",
]
