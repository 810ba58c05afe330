"""Claude API client wrapper with retry logic.

Provides a consistent interface for Claude API calls with automatic retry
on transient errors, so that callers only build messages and interpret
the reply text.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass

import anthropic

from imgreplace_claude.models import ModelConfig

_log = logging.getLogger("claude_api")

# Retry configuration for transient API/network errors.
_DEFAULT_MAX_RETRIES = 3
"""Default maximum total attempts per request (1 = no retry)."""

_RETRY_MIN_DELAY_S = 1
"""Initial retry delay in seconds."""

_RETRY_MAX_DELAY_S = 30
"""Maximum retry delay in seconds (cap for exponential backoff)."""


def _is_retryable(exc: BaseException) -> bool:
    """Classify whether an exception is transient and worth retrying.

    Returns ``True`` for network/transport errors and server-side failures
    that are likely to succeed on a subsequent attempt.  Returns ``False``
    for permanent client errors (bad request, auth, content filtering).

    Uses string-based type checking for ``httpcore``/``httpx`` transport
    errors to avoid adding a hard import dependency on ``httpcore``.
    """
    if isinstance(exc, (anthropic.APIConnectionError, anthropic.APITimeoutError)):
        return True
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code in (429, 500, 502, 503, 529)
    type_name = type(exc).__name__
    return type_name in ("RemoteProtocolError", "ReadError", "ProtocolError")


@dataclass
class ApiResponse:
    """Raw response from a single Claude API call."""

    text: str
    input_tokens: int
    output_tokens: int
    stop_reason: str | None


class ClaudeApi:
    """Claude API client wrapper with retry support.

    Usage::

        api = ClaudeApi(client, model, max_retries=3)
        messages = [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}]
        response = api.send_message(messages, max_tokens=100, retry_context="greeting")
        print(response.text)
    """

    def __init__(
        self,
        client: anthropic.Anthropic,
        model: ModelConfig,
        max_retries: int = _DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize the Claude API wrapper.

        Args:
            client: Authenticated Anthropic client.
            model: Model configuration (includes model_id, max_output_tokens).
            max_retries: Maximum number of attempts per request (1 = no retry).
        """
        self._client = client
        self._model = model
        self._max_retries = max(1, max_retries)

    @property
    def model(self) -> ModelConfig:
        """The model configuration used by this API client."""
        return self._model

    def send_message(
        self,
        messages: list[dict],
        max_tokens: int | None = None,
        system: str | None = None,
        retry_context: str = "",
    ) -> ApiResponse:
        """Send a message to Claude with automatic retry.

        Retries transient errors (network failures, rate limits, server
        errors) with exponential backoff.  Non-retryable errors (auth, bad
        request, content filtering) are raised immediately.

        Args:
            messages: List of message dicts (Anthropic messages API format).
            max_tokens: Output token cap (defaults to the model maximum).
            system: Optional system prompt.
            retry_context: Optional label for log messages.

        Returns:
            ApiResponse with reply text, token counts, and stop reason.

        Raises:
            anthropic.APIError: On permanent API errors, or transient ones
                once all attempts are exhausted.
        """
        start = time.time()
        context_str = f" ({retry_context})" if retry_context else ""

        for attempt in range(1, self._max_retries + 1):
            try:
                resp = self._create_message(messages, max_tokens, system)
                elapsed = time.time() - start
                _log.debug(
                    "API call%s: %.1fs, stop=%s",
                    context_str, elapsed, resp.stop_reason,
                )
                return resp
            except Exception as e:
                if not _is_retryable(e) or attempt == self._max_retries:
                    raise
                # Exponential backoff: 1, 2, 4, 8, 16, 30, 30, ... capped.
                base = min(
                    _RETRY_MIN_DELAY_S * (2 ** (attempt - 1)),
                    _RETRY_MAX_DELAY_S,
                )
                delay = base + random.uniform(0, base * 0.25)
                _log.warning(
                    "API call%s: %s (attempt %d/%d, retrying in %.0fs)",
                    context_str,
                    f"{type(e).__name__}: {e}",
                    attempt, self._max_retries, delay,
                )
                time.sleep(delay)

        # Unreachable: loop always returns or raises
        raise AssertionError("Retry loop exited without returning or raising")

    def _create_message(
        self,
        messages: list[dict],
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> ApiResponse:
        """Send a single non-streaming request and collect the reply text."""
        kwargs: dict = {
            "model": self._model.model_id,
            "max_tokens": max_tokens or self._model.max_output_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        message = self._client.messages.create(**kwargs)

        text = ""
        for block in message.content:
            if block.type == "text":
                text += block.text

        return ApiResponse(
            text=text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            stop_reason=message.stop_reason,
        )
