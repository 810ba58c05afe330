"""Model configurations, pricing, and usage tracking for image comparison.

References:
  - Models overview: https://platform.claude.com/docs/en/about-claude/models/overview#latest-models-comparison
  - Model pricing:   https://platform.claude.com/docs/en/about-claude/pricing#model-pricing
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelPricing:
    """Pricing for a Claude model (USD per million tokens)."""

    input_per_mtok: float
    output_per_mtok: float


@dataclass(frozen=True)
class ModelConfig:
    """Complete configuration for a Claude model."""

    model_id: str
    display_name: str
    max_output_tokens: int
    pricing: ModelPricing


@dataclass
class ComparisonUsage:
    """Token usage accumulated across all oracle calls of one invocation.

    ``cost`` is accumulated per-request with :func:`calculate_cost` rather
    than recalculated from the aggregate token counts.
    """

    calls: int = 0
    failed_calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    elapsed_seconds: float = 0.0

    @property
    def total_tokens(self) -> int:
        """Total tokens (input + output)."""
        return self.input_tokens + self.output_tokens

    def add(
        self,
        input_tokens: int,
        output_tokens: int,
        cost: float,
        elapsed_seconds: float,
    ) -> None:
        """Record one completed API call."""
        self.calls += 1
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.cost += cost
        self.elapsed_seconds += elapsed_seconds


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------

SONNET_4 = ModelConfig(
    model_id="claude-sonnet-4-20250514",
    display_name="Claude Sonnet 4",
    max_output_tokens=64_000,
    pricing=ModelPricing(
        input_per_mtok=3.0,       # $3 / MTok
        output_per_mtok=15.0,     # $15 / MTok
    ),
)

SONNET_4_5 = ModelConfig(
    model_id="claude-sonnet-4-5",
    display_name="Claude Sonnet 4.5",
    max_output_tokens=64_000,
    pricing=ModelPricing(
        input_per_mtok=3.0,       # $3 / MTok
        output_per_mtok=15.0,     # $15 / MTok
    ),
)

HAIKU_4_5 = ModelConfig(
    model_id="claude-haiku-4-5",
    display_name="Claude Haiku 4.5",
    max_output_tokens=64_000,
    pricing=ModelPricing(
        input_per_mtok=1.0,       # $1 / MTok
        output_per_mtok=5.0,      # $5 / MTok
    ),
)

OPUS_4_6 = ModelConfig(
    model_id="claude-opus-4-6",
    display_name="Claude Opus 4.6",
    max_output_tokens=64_000,
    pricing=ModelPricing(
        input_per_mtok=5.0,       # $5 / MTok
        output_per_mtok=25.0,     # $25 / MTok
    ),
)

MODELS: dict[str, ModelConfig] = {
    "sonnet-4": SONNET_4,
    "sonnet": SONNET_4_5,
    "haiku": HAIKU_4_5,
    "opus": OPUS_4_6,
}


# ---------------------------------------------------------------------------
# Cost calculation
# ---------------------------------------------------------------------------


def calculate_cost(
    model: ModelConfig,
    input_tokens: int,
    output_tokens: int,
) -> float:
    """Calculate USD cost for a **single API request**.

    Args:
        model: Model configuration with pricing info.
        input_tokens: Input tokens (prompt text plus both images).
        output_tokens: Output tokens.
    """
    p = model.pricing
    input_cost = input_tokens * p.input_per_mtok / 1_000_000
    output_cost = output_tokens * p.output_per_mtok / 1_000_000
    return input_cost + output_cost


def fmt_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples: ``"45s"``, ``"2m 15s"``, ``"1h 3m 12s"``.
    """
    if seconds < 0:
        return "0s"
    s = int(seconds)
    if s < 60:
        return f"{s}s"
    m, s = divmod(s, 60)
    if m < 60:
        return f"{m}m {s:02d}s"
    h, m = divmod(m, 60)
    return f"{h}h {m:02d}m {s:02d}s"


def format_usage(model: ModelConfig, usage: ComparisonUsage) -> str:
    """Format a one-line usage report for the oracle calls of one run."""
    line = (
        f"{model.display_name}: {usage.calls} comparison(s), "
        f"{usage.input_tokens:,} input / {usage.output_tokens:,} output tokens, "
        f"{fmt_duration(usage.elapsed_seconds)}, ${usage.cost:.4f}"
    )
    if usage.failed_calls:
        line += f" ({usage.failed_calls} failed)"
    return line
