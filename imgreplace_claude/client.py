"""Claude API client setup for image comparison."""

from __future__ import annotations

import logging

import anthropic

_log = logging.getLogger("client")


def create_client(api_key: str, timeout: float | None = None) -> anthropic.Anthropic:
    """Create an Anthropic client.

    Args:
        api_key: Anthropic API key (ANTHROPIC_API_KEY).
        timeout: Optional per-request timeout in seconds (SDK default
            when ``None``).

    Returns:
        Configured Anthropic client.
    """
    kwargs: dict = {"api_key": api_key}

    if timeout is not None:
        _log.debug("  Client timeout: %.0fs", timeout)
        kwargs["timeout"] = timeout

    return anthropic.Anthropic(**kwargs)
