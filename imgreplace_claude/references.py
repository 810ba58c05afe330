"""Image reference extraction from article markup.

References are the literal ``src`` values of ``<img>`` tags, exactly as
they appear in the markup.  No URL normalisation is applied: two
references are the same only when their strings are equal.
"""

from __future__ import annotations

import logging
import re

_log = logging.getLogger("references")

IMG_SRC_RE = re.compile(
    r"""<img\s[^>]*(?<![\w-])src\s*=\s*(?:"([^"]+)"|'([^']+)')""",
    re.IGNORECASE,
)
"""Regex matching an ``<img>`` tag up to its ``src`` attribute value.

The attribute may appear anywhere among the tag's other attributes.
Group 1 holds a double-quoted value, group 2 a single-quoted one.
``data-src`` and similar prefixed attributes are not matched.
"""


def extract_image_references(html: str) -> list[str]:
    """Return the distinct image references in *html*, in first-seen order.

    Malformed values are passed through unchanged; they simply fail later
    when fetched.  Empty or image-free markup yields an empty list.
    """
    references: dict[str, None] = {}
    for match in IMG_SRC_RE.finditer(html or ""):
        reference = match.group(1) if match.group(1) is not None else match.group(2)
        references.setdefault(reference, None)
    _log.debug("Extracted %d distinct image reference(s)", len(references))
    return list(references)
