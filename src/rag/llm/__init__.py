"""LLM transport for rag.

Provides an OpenAI-compatible streaming HTTP client, the pluggable
transport protocol, and the client error hierarchy.
"""

from rag.llm.client import OpenAIClient
from rag.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)
from rag.llm.protocols import ChatTransport

__all__ = [
    "OpenAIClient",
    "ChatTransport",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
]
