"""Built-in OpenAI-compatible streaming httpx client with tenacity retry.

Provides a sync HTTP client that posts chat completion requests with
``stream: true`` and yields the decoded server-sent-event chunks.
Reads configuration from constructor arguments or environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from typing import Any

import httpx
import tenacity

from rag.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}

_SSE_DATA_PREFIX = "data:"
_SSE_DONE = "[DONE]"


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 500, 502, 503, 504, connection errors.
    Not retryable: 401, 403, 400, other client errors.
    """
    if isinstance(exc, LLMAuthError):
        return False
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


class OpenAIClient:
    """Sync httpx client for streaming OpenAI-compatible chat completions.

    Implements the ChatTransport protocol. Opening the stream is retried
    with exponential backoff for transient errors (429, 5xx, connection
    failures); authentication errors (401, 403) fail immediately. Once
    chunks have started flowing nothing is retried.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            for chunk in client.stream_chat([{"role": "user", "content": "Hi"}]):
                print(chunk["choices"][0]["delta"].get("content", ""), end="")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-4o-mini",
        timeout: float = 120.0,
        max_retries: int = 3,
        include_usage: bool = True,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            api_key: API key. Falls back to RAG_API_KEY env var.
            base_url: API base URL. Falls back to RAG_BASE_URL env var,
                then to https://api.openai.com/v1.
            default_model: Default model for chat requests.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of attempts for retryable errors.
            include_usage: Ask the server to report token usage in the
                final chunk (``stream_options.include_usage``).

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("RAG_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Run `rag --sa <key>` or set the "
                "RAG_API_KEY environment variable."
            )
        self._base_url = (
            base_url
            or os.environ.get("RAG_BASE_URL", "https://api.openai.com/v1")
        ).rstrip("/")
        self._default_model = default_model
        self._timeout = timeout
        self._max_retries = max_retries
        self._include_usage = include_usage
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    @property
    def default_model(self) -> str:
        return self._default_model

    def build_payload(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        tool_choice: str = "auto",
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Build the JSON request body for a streaming completion."""
        payload: dict[str, Any] = {
            "model": model or self._default_model,
            "messages": messages,
            "stream": True,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = tool_choice
        if self._include_usage:
            payload["stream_options"] = {"include_usage": True}
        payload.update(kwargs)
        return payload

    def stream_chat(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        tool_choice: str = "auto",
        **kwargs: Any,
    ) -> Iterator[dict]:
        """Send a streaming chat completion request and yield chunk dicts.

        The request is sent lazily, on the first ``next()``. Uses
        tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model to use. Falls back to default_model.
            tools: OpenAI ``tools`` catalogue. Omitted when empty.
            tool_choice: Tool choice policy sent alongside ``tools``.
            **kwargs: Additional payload parameters forwarded to the API.

        Yields:
            Decoded JSON objects, one per SSE ``data:`` line.

        Raises:
            LLMAuthError: On 401/403 (no retry).
            LLMRateLimitError: On 429 after all retries exhausted.
            LLMResponseError: On undecodable lines or in-stream error payloads.
            httpx.HTTPStatusError: On other non-retryable HTTP errors.
        """
        payload = self.build_payload(
            messages, model=model, tools=tools, tool_choice=tool_choice, **kwargs
        )
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        response = retryer(self._open_stream, payload)
        try:
            yield from self._iter_chunks(response)
        finally:
            response.close()

    def _open_stream(self, payload: dict[str, Any]) -> httpx.Response:
        """Send the request and check its status (no retry)."""
        request = self._client.build_request(
            "POST", f"{self._base_url}/chat/completions", json=payload
        )
        response = self._client.send(request, stream=True)
        if response.status_code < 400:
            return response

        try:
            response.read()
        finally:
            response.close()

        # Check for auth errors before raise_for_status
        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(
                f"Authentication failed: HTTP {response.status_code} - "
                f"{response.text}",
                status_code=response.status_code,
            )

        # Check for rate limiting
        if response.status_code == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise LLMRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=retry_after,
            )

        response.raise_for_status()
        return response

    @staticmethod
    def _iter_chunks(response: httpx.Response) -> Iterator[dict]:
        """Decode SSE ``data:`` lines until ``[DONE]``."""
        for line in response.iter_lines():
            if not line.startswith(_SSE_DATA_PREFIX):
                # blank separators, comments (": keep-alive"), event names
                continue
            data = line[len(_SSE_DATA_PREFIX):].strip()
            if data == _SSE_DONE:
                return
            try:
                chunk = json.loads(data)
            except json.JSONDecodeError as exc:
                raise LLMResponseError(
                    f"Undecodable stream chunk: {exc}. Line: {line!r}"
                ) from exc
            if isinstance(chunk, dict) and "error" in chunk:
                error = chunk["error"]
                message = error.get("message", error) if isinstance(error, dict) else error
                raise LLMResponseError(f"Error in stream: {message}")
            yield chunk

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
