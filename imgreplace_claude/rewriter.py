"""Literal replacement of matched image references in article content.

Each matched reference is escaped before it is used as a pattern, so the
substitution is an exact string replace-all.  All references are replaced
in one scan of the original content, so counts never include text that an
earlier substitution inserted (for example when the new reference is also
one of the matches).  The replacement is returned from a callback to keep
backslashes and group syntax in the new reference from being interpreted.

Replacement is substring-based: a matched reference that is a prefix of
another, unmatched reference in the same body (``a.png`` vs
``a.png?v=2``) will also rewrite the prefix of the longer one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

_log = logging.getLogger("rewriter")


@dataclass
class RewriteResult:
    """Updated content and replacement counts."""

    content: str
    occurrences: int = 0
    """Total literal occurrences replaced across all matched references."""

    counts: dict[str, int] = field(default_factory=dict)
    """Occurrences replaced per matched reference."""


def rewrite_content(
    content: str,
    matches: Iterable[str],
    replacement: str,
) -> RewriteResult:
    """Replace every occurrence of each matched reference with *replacement*.

    Args:
        content: Original article body.
        matches: References judged equivalent to the target image.
        replacement: New image reference.

    Returns:
        :class:`RewriteResult` with the new content and exact counts.
    """
    references = [r for r in dict.fromkeys(matches) if r]
    result = RewriteResult(content=content, counts=dict.fromkeys(references, 0))
    if not references:
        return result

    # Single pass over the original content, longest reference first, so that
    # text inserted by one substitution is never matched again.
    pattern = re.compile(
        "|".join(re.escape(r) for r in sorted(references, key=len, reverse=True))
    )

    def _substitute(match: re.Match) -> str:
        result.counts[match.group(0)] += 1
        return replacement

    result.content = pattern.sub(_substitute, content)
    result.occurrences = sum(result.counts.values())
    for reference, count in result.counts.items():
        _log.debug("  Replaced %d occurrence(s) of %s", count, reference)
    return result
