"""End-to-end image replacement for one article.

The run is a linear sequence of stages::

    fetch article -> extract references -> fetch target image
        -> aggregate matches -> rewrite body -> persist article

with two early exits: no images in the article, and no matching images.
Both early exits (and every successful run) return a
:class:`ReplacementSummary`; only a persisted rewrite has ``success=True``.

Errors fetching the article, fetching the target image, or persisting the
rewritten body propagate to the caller.  Per-candidate errors never do
(see :mod:`imgreplace_claude.aggregator`).  The rewrite is computed fully
in memory before the store is written, so a persist failure leaves the
stored article untouched.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from imgreplace_claude.aggregator import MatchAggregator
from imgreplace_claude.articles import ArticleStore
from imgreplace_claude.fetcher import ImageFetcher
from imgreplace_claude.models import ComparisonUsage
from imgreplace_claude.oracle import EquivalenceOracle
from imgreplace_claude.references import extract_image_references
from imgreplace_claude.rewriter import rewrite_content

_log = logging.getLogger("orchestrator")

MSG_NO_IMAGES = "No images found in the article"
MSG_NO_MATCHES = "No matching images found in the article"
MSG_SUCCESS = "Successfully replaced {count} image occurrences"
MSG_DRY_RUN = "Dry run: would replace {count} image occurrences"


@dataclass
class ReplacementSummary:
    """Terminal result of one replacement run."""

    success: bool
    message: str
    images_found: int = 0
    matches_found: int = 0
    replacements: int = 0
    matched_references: list[str] = field(default_factory=list)
    failed_references: list[str] = field(default_factory=list)
    """Candidates skipped because they could not be fetched or compared."""

    usage: ComparisonUsage | None = None
    """Oracle token usage, when the oracle reports it."""

    elapsed_seconds: float = 0.0

    @property
    def details(self) -> str:
        """One-line count report."""
        return (
            f"Images found: {self.images_found} | "
            f"Matches: {self.matches_found} | "
            f"Replaced: {self.replacements}"
        )


class ReplacementOrchestrator:
    """Compose the content store, fetcher, oracle, and rewriter.

    Usage::

        orchestrator = ReplacementOrchestrator(store, fetcher, oracle)
        summary = orchestrator.run("4727254", old_url, new_url)
        print(summary.message, summary.details)
    """

    def __init__(
        self,
        store: ArticleStore,
        fetcher: ImageFetcher,
        oracle: EquivalenceOracle,
        max_workers: int = 1,
        dry_run: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Content store for fetching and persisting the article.
            fetcher: Image fetcher (target and candidates).
            oracle: Visual-equivalence judge.
            max_workers: Concurrent candidate evaluations (1 = sequential).
            dry_run: Compute the rewrite but do not persist it.
        """
        self._store = store
        self._fetcher = fetcher
        self._oracle = oracle
        self._aggregator = MatchAggregator(fetcher, oracle, max_workers=max_workers)
        self._dry_run = dry_run

    def run(
        self,
        article_id: str,
        old_reference: str,
        new_reference: str,
    ) -> ReplacementSummary:
        """Replace all images equivalent to *old_reference* with *new_reference*.

        Inputs are assumed present and non-empty (validated by the caller).

        Raises:
            NotFoundError: The article does not exist or could not be fetched.
            RetrievalError: The target image could not be fetched.
            PersistError: The rewritten body could not be stored.
        """
        start = time.time()
        _log.info("Processing image replacement for article %s", article_id)

        article = self._store.get_article(article_id)

        references = extract_image_references(article.body)
        _log.info("Found %d images in article", len(references))
        if not references:
            return self._finish(
                ReplacementSummary(success=False, message=MSG_NO_IMAGES), start,
            )

        target_asset = self._fetcher.fetch(old_reference)

        match_set = self._aggregator.aggregate(old_reference, target_asset, references)
        failed = [f.reference for f in match_set.failures]
        if not match_set.matches:
            return self._finish(
                ReplacementSummary(
                    success=False,
                    message=MSG_NO_MATCHES,
                    images_found=len(references),
                    failed_references=failed,
                ),
                start,
            )

        rewrite = rewrite_content(article.body, match_set.matches, new_reference)

        if self._dry_run:
            _log.info("Dry run: article %s not updated", article_id)
            message = MSG_DRY_RUN.format(count=rewrite.occurrences)
        else:
            self._store.update_article(article_id, rewrite.content)
            message = MSG_SUCCESS.format(count=rewrite.occurrences)

        return self._finish(
            ReplacementSummary(
                success=not self._dry_run,
                message=message,
                images_found=len(references),
                matches_found=len(match_set.matches),
                replacements=rewrite.occurrences,
                matched_references=list(match_set.matches),
                failed_references=failed,
            ),
            start,
        )

    def _finish(self, summary: ReplacementSummary, start: float) -> ReplacementSummary:
        """Attach usage and timing, and log the outcome."""
        summary.usage = getattr(self._oracle, "usage", None)
        summary.elapsed_seconds = time.time() - start
        log = _log.info if summary.success else _log.warning
        log("%s (%s)", summary.message, summary.details)
        return summary
