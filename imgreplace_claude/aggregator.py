"""Match aggregation: fetch and compare every candidate against the target.

This is the failure-isolation point of the pipeline.  A candidate that
cannot be fetched (or whose processing fails in any other way) is logged,
recorded as a :class:`CandidateFailure`, and skipped; the remaining
candidates are still evaluated.

Candidates are evaluated sequentially by default.  With ``max_workers > 1``
they run on a thread pool and the results are re-sorted into candidate
order, so the emitted :class:`MatchSet` never depends on completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from imgreplace_claude.fetcher import ImageAsset, ImageFetcher
from imgreplace_claude.oracle import ComparisonOutcome, EquivalenceOracle, JudgingOracle

_log = logging.getLogger("aggregator")


@dataclass(frozen=True)
class CandidateFailure:
    """A candidate that could not be evaluated."""

    reference: str
    error: str


@dataclass
class MatchSet:
    """References judged equivalent to the target, in candidate order."""

    matches: list[str] = field(default_factory=list)
    outcomes: list[ComparisonOutcome] = field(default_factory=list)
    """One outcome per candidate that was compared, in candidate order."""

    failures: list[CandidateFailure] = field(default_factory=list)
    """Candidates skipped because their processing failed."""

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self):
        return iter(self.matches)

    def __contains__(self, reference: object) -> bool:
        return reference in self.matches


class MatchAggregator:
    """Drive the fetcher and oracle across all candidates."""

    def __init__(
        self,
        fetcher: ImageFetcher,
        oracle: EquivalenceOracle,
        max_workers: int = 1,
    ) -> None:
        """Initialize the aggregator.

        Args:
            fetcher: Retrieves candidate images.
            oracle: Judges target-vs-candidate equivalence.
            max_workers: Concurrent candidate evaluations (1 = sequential).
        """
        self._fetcher = fetcher
        self._oracle = oracle
        self._max_workers = max(1, max_workers)

    def aggregate(
        self,
        target_reference: str,
        target_asset: ImageAsset,
        candidates: list[str],
    ) -> MatchSet:
        """Evaluate *candidates* against the already-fetched target image.

        Args:
            target_reference: Reference of the image to replace.
            target_asset: The target image, fetched once by the caller.
            candidates: Distinct references extracted from the article.

        Returns:
            :class:`MatchSet` whose matches are a subset of *candidates*
            in their original order.
        """
        if self._max_workers > 1 and len(candidates) > 1:
            results = self._evaluate_parallel(target_asset, candidates)
        else:
            results = [self._evaluate(target_asset, c) for c in candidates]

        match_set = MatchSet()
        for result in results:
            if isinstance(result, CandidateFailure):
                match_set.failures.append(result)
                continue
            match_set.outcomes.append(result)
            if result.matched:
                match_set.matches.append(result.candidate)
                _log.info("  Match found: %s", result.candidate)

        _log.info(
            "Found %d matching image(s) for %s (%d candidate(s), %d failed)",
            len(match_set.matches), target_reference,
            len(candidates), len(match_set.failures),
        )
        return match_set

    def _evaluate(
        self, target_asset: ImageAsset, candidate: str,
    ) -> ComparisonOutcome | CandidateFailure:
        """Fetch and compare one candidate; failures are returned, not raised."""
        try:
            asset = self._fetcher.fetch(candidate)
            if isinstance(self._oracle, JudgingOracle):
                return self._oracle.judge(target_asset, asset)
            matched = self._oracle.compare(target_asset, asset)
            return ComparisonOutcome(target_asset.reference, candidate, bool(matched))
        except Exception as e:
            _log.warning(
                "  Failed to process image %s: %s", candidate, e,
            )
            return CandidateFailure(candidate, str(e))

    def _evaluate_parallel(
        self, target_asset: ImageAsset, candidates: list[str],
    ) -> list[ComparisonOutcome | CandidateFailure]:
        """Evaluate candidates on a thread pool, returned in candidate order."""
        max_workers = min(self._max_workers, len(candidates))
        _log.debug("  Parallel: %d workers", max_workers)
        indexed: list[tuple[int, ComparisonOutcome | CandidateFailure]] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self._evaluate, target_asset, candidate): index
                for index, candidate in enumerate(candidates)
            }
            for future in as_completed(futures):
                indexed.append((futures[future], future.result()))
        indexed.sort(key=lambda item: item[0])
        return [result for _, result in indexed]
