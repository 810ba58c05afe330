"""Claude-assisted image replacement for help-center articles.

Finds every image in an article body, asks Claude which of them are
visually equivalent to a reference image, and rewrites the article so the
matching images point at a new URL.

Pipeline stages:
- Reference extraction from ``<img src>`` attributes (exact-string dedup)
- Image retrieval over HTTP (``httpx``)
- Visual-equivalence judgment by Claude (fails open to "no match")
- Order-preserving match aggregation with per-image failure isolation
- Literal, count-accurate rewrite of the article body

Note: Imports are deferred to avoid requiring ``anthropic`` at import time.
Use explicit imports from submodules (e.g.,
``from imgreplace_claude.rewriter import rewrite_content``).
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("imgreplace-claude")
except PackageNotFoundError:
    __version__ = "0.0.0"  # fallback for uninstalled dev usage


def __getattr__(name: str):
    """Lazy imports to avoid requiring anthropic at package import time."""
    # Map attribute names to their source modules.
    _lazy_imports = {
        # imgreplace_claude.aggregator
        "CandidateFailure": "imgreplace_claude.aggregator",
        "MatchAggregator": "imgreplace_claude.aggregator",
        "MatchSet": "imgreplace_claude.aggregator",
        # imgreplace_claude.articles
        "ArticleStoreError": "imgreplace_claude.articles",
        "IntercomArticleStore": "imgreplace_claude.articles",
        "NotFoundError": "imgreplace_claude.articles",
        "PersistError": "imgreplace_claude.articles",
        # imgreplace_claude.client
        "create_client": "imgreplace_claude.client",
        # imgreplace_claude.fetcher
        "ImageAsset": "imgreplace_claude.fetcher",
        "ImageFetcher": "imgreplace_claude.fetcher",
        "RetrievalError": "imgreplace_claude.fetcher",
        # imgreplace_claude.models
        "MODELS": "imgreplace_claude.models",
        "ModelConfig": "imgreplace_claude.models",
        # imgreplace_claude.oracle
        "ClaudeOracle": "imgreplace_claude.oracle",
        "EquivalenceOracle": "imgreplace_claude.oracle",
        "JudgingOracle": "imgreplace_claude.oracle",
        # imgreplace_claude.orchestrator
        "ReplacementOrchestrator": "imgreplace_claude.orchestrator",
        "ReplacementSummary": "imgreplace_claude.orchestrator",
        # imgreplace_claude.references
        "extract_image_references": "imgreplace_claude.references",
        # imgreplace_claude.rewriter
        "rewrite_content": "imgreplace_claude.rewriter",
    }

    if name in _lazy_imports:
        import importlib
        module = importlib.import_module(_lazy_imports[name])
        return getattr(module, name)

    raise AttributeError(f"module 'imgreplace_claude' has no attribute {name!r}")


__all__ = [
    "ArticleStoreError",
    "CandidateFailure",
    "ClaudeOracle",
    "create_client",
    "EquivalenceOracle",
    "extract_image_references",
    "ImageAsset",
    "ImageFetcher",
    "IntercomArticleStore",
    "JudgingOracle",
    "MatchAggregator",
    "MatchSet",
    "MODELS",
    "ModelConfig",
    "NotFoundError",
    "PersistError",
    "ReplacementOrchestrator",
    "ReplacementSummary",
    "RetrievalError",
    "rewrite_content",
]
