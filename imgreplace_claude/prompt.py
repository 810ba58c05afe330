"""Prompt text for the visual-equivalence comparison.

The verdict tokens are shared with :mod:`imgreplace_claude.oracle` so that
the instruction and the reply parser always agree.
"""

VERDICT_TRUE = "true"
"""Normalised reply meaning the two images match."""

VERDICT_FALSE = "false"
"""Normalised reply meaning the two images do not match."""

COMPARE_PROMPT = (
    "Compare these two images and determine if they are the same image or "
    "substantially similar (considering they might be different sizes, "
    "formats, or compression levels). "
    f"Respond with ONLY '{VERDICT_TRUE}' if they match or '{VERDICT_FALSE}' "
    "if they don't match. No other text."
)
"""Instruction sent ahead of the two image blocks."""
