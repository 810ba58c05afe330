"""Visual-equivalence judgment delegated to Claude.

:class:`EquivalenceOracle` is the seam the pipeline depends on; any object
with a ``compare(a, b) -> bool`` method qualifies, which lets tests use a
deterministic stub.  :class:`ClaudeOracle` is the production implementation.

The oracle is advisory: an unrecognised reply or a failed call is a
non-match, never an exception.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from imgreplace_claude.claude_api import ClaudeApi
from imgreplace_claude.fetcher import ImageAsset
from imgreplace_claude.models import ComparisonUsage, calculate_cost
from imgreplace_claude.prompt import COMPARE_PROMPT, VERDICT_FALSE, VERDICT_TRUE

_log = logging.getLogger("oracle")

VERDICT_MAX_TOKENS = 100
"""Output token cap for a verdict reply."""


@runtime_checkable
class EquivalenceOracle(Protocol):
    """Protocol for a visual-equivalence judge."""

    def compare(self, a: ImageAsset, b: ImageAsset) -> bool:
        """Return ``True`` when *a* and *b* depict the same image."""
        ...


@dataclass(frozen=True)
class ComparisonOutcome:
    """Verdict for one target-vs-candidate pair."""

    target: str
    candidate: str
    matched: bool
    verdict: str = ""
    """Normalised reply text (empty when the call failed)."""


@runtime_checkable
class JudgingOracle(EquivalenceOracle, Protocol):
    """An oracle that also reports the full outcome of a comparison."""

    def judge(self, a: ImageAsset, b: ImageAsset) -> ComparisonOutcome:
        """Compare *a* with *b* and return the verdict with its reply text."""
        ...


def parse_verdict(text: str) -> bool | None:
    """Normalise a reply and map it to a boolean.

    Returns ``None`` for anything other than the two verdict tokens.
    """
    normalised = text.strip().lower()
    if normalised == VERDICT_TRUE:
        return True
    if normalised == VERDICT_FALSE:
        return False
    return None


class ClaudeOracle:
    """Equivalence oracle backed by the Claude Messages API.

    Each comparison sends one user message holding the instruction text
    followed by the two images.  Token usage of every successful call is
    accumulated in :attr:`usage`.
    """

    def __init__(self, api: ClaudeApi) -> None:
        self._api = api
        self._lock = threading.Lock()
        self.usage = ComparisonUsage()

    def compare(self, a: ImageAsset, b: ImageAsset) -> bool:
        return self.judge(a, b).matched

    def judge(self, a: ImageAsset, b: ImageAsset) -> ComparisonOutcome:
        """Compare two assets and return the full outcome."""
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": COMPARE_PROMPT},
                    a.to_content_block(),
                    b.to_content_block(),
                ],
            },
        ]
        label = f"{a.reference} vs {b.reference}"

        start = time.time()
        try:
            response = self._api.send_message(
                messages,
                max_tokens=VERDICT_MAX_TOKENS,
                retry_context=label,
            )
        except Exception as e:
            _log.warning(
                "  Comparison failed for %s: %s: %s", label, type(e).__name__, e,
            )
            with self._lock:
                self.usage.failed_calls += 1
            return ComparisonOutcome(a.reference, b.reference, matched=False)
        elapsed = time.time() - start

        with self._lock:
            self.usage.add(
                response.input_tokens,
                response.output_tokens,
                calculate_cost(
                    self._api.model, response.input_tokens, response.output_tokens,
                ),
                elapsed,
            )

        verdict = response.text.strip().lower()
        matched = parse_verdict(verdict)
        if matched is None:
            _log.warning(
                "  Unrecognised verdict for %s: %r (treated as no match)",
                label, verdict[:80],
            )
            matched = False
        _log.info("  AI comparison result for %s: %s", label, verdict)
        return ComparisonOutcome(a.reference, b.reference, matched, verdict)
