"""Errors raised by the chat-completion transport.

The turn pipeline treats every LLMClientError as recoverable: the turn
ends with an ``Error:`` line and the loop waits for the next input. Only
LLMConfigError is fatal, because the CLI cannot open a client without it.
"""

from __future__ import annotations

from rag.exceptions import RagError


class LLMClientError(RagError):
    """Base for failures talking to the OpenAI-compatible endpoint."""


class LLMConfigError(LLMClientError):
    """The client cannot be built, e.g. no API key in rag.json or $RAG_API_KEY."""


class LLMRateLimitError(LLMClientError):
    """The endpoint answered 429 on every attempt to open the stream.

    Attributes:
        retry_after: Seconds from the Retry-After header, or None.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMAuthError(LLMClientError):
    """The endpoint rejected the API key. Never retried.

    Attributes:
        status_code: HTTP status of the rejection (401 or 403), if known.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class LLMResponseError(LLMClientError):
    """A ``data:`` line was not JSON, or carried an ``error`` payload mid-stream."""
