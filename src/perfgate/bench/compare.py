"""Baseline/candidate comparison analysis.

Pairs two result sets by case name and classifies each pair:

- both succeeded: percent change in throughput, then
  ``IMPROVED`` (> 0), ``REGRESSED`` (< -threshold) or ``NOISE``
  (the band [-threshold, 0]);
- present on one side only: ``MISSING_BASELINE`` / ``MISSING_CANDIDATE``;
- both failed: ``BOTH_FAILED``;
- exactly one failed: ``REGRESSED`` with no percent change.

The report formatter classifies through ``classify_change`` too, so
the regression marker and the classification can never disagree.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from perfgate.bench.config import DEFAULT_REGRESSION_THRESHOLD
from perfgate.bench.results import BenchmarkResult, BenchmarkResultSet

log = logging.getLogger("perfgate")


class Classification(enum.Enum):
    """How a case changed between baseline and candidate."""

    IMPROVED = "improved"
    REGRESSED = "regressed"
    NOISE = "noise"
    MISSING_BASELINE = "missing_baseline"
    MISSING_CANDIDATE = "missing_candidate"
    BOTH_FAILED = "both_failed"


def classify_change(
    percent_change: float,
    threshold: float = DEFAULT_REGRESSION_THRESHOLD,
) -> Classification:
    """Classify a throughput change given in percent.

    *threshold* is the tolerated slowdown in percent: a change of
    exactly ``-threshold`` is still noise.
    """
    if percent_change > 0:
        return Classification.IMPROVED
    if percent_change < -threshold:
        return Classification.REGRESSED
    return Classification.NOISE


# ---------------------------------------------------------------------------
# Per-case comparison
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Comparison:
    """Comparison of one case between baseline and candidate.

    Rates of a missing or failed side are None, as is the percent
    change whenever it cannot be computed.
    """

    name: str
    classification: Classification
    baseline_hz: float | None = None
    candidate_hz: float | None = None
    baseline_rme: float | None = None
    candidate_rme: float | None = None
    percent_change: float | None = None
    baseline_error: str = ""
    candidate_error: str = ""

    @property
    def regressed(self) -> bool:
        return self.classification is Classification.REGRESSED


@dataclass(frozen=True)
class ComparisonSummary:
    """Count of comparisons per classification."""

    improved: int = 0
    regressed: int = 0
    noise: int = 0
    missing_baseline: int = 0
    missing_candidate: int = 0
    both_failed: int = 0

    @property
    def total(self) -> int:
        return (
            self.improved
            + self.regressed
            + self.noise
            + self.missing_baseline
            + self.missing_candidate
            + self.both_failed
        )

    @property
    def has_regressions(self) -> bool:
        return self.regressed > 0


# ---------------------------------------------------------------------------
# Comparison logic
# ---------------------------------------------------------------------------


def compare_results(
    baseline: BenchmarkResultSet,
    candidate: BenchmarkResultSet,
    *,
    threshold: float = DEFAULT_REGRESSION_THRESHOLD,
) -> list[Comparison]:
    """Compare two result sets case by case.

    Cases are matched by name, never by position.  The output follows
    the candidate's case order, then lists baseline-only cases in the
    baseline's order.

    Args:
        baseline: Result set of the reference run.
        candidate: Result set of the run under test.
        threshold: Tolerated slowdown in percent before a case counts
            as regressed.

    Raises:
        ValueError: If *threshold* is negative.
    """
    if threshold < 0:
        raise ValueError(f"Regression threshold cannot be negative (got {threshold})")

    if baseline.platform != candidate.platform:
        log.warning(
            "Comparing runs from different platforms: %s vs %s",
            baseline.platform,
            candidate.platform,
        )
    if baseline.runtime_version != candidate.runtime_version:
        log.warning(
            "Comparing runs from different runtimes: %s vs %s",
            baseline.runtime_version,
            candidate.runtime_version,
        )

    base_by_name = {r.name: r for r in baseline.results}
    cand_by_name = {r.name: r for r in candidate.results}

    names = list(candidate.names)
    names += [n for n in baseline.names if n not in cand_by_name]

    comparisons = [
        compare_case(name, base_by_name.get(name), cand_by_name.get(name), threshold=threshold)
        for name in names
    ]
    log.debug("Compared %d cases", len(comparisons))
    return comparisons


def compare_case(
    name: str,
    base: BenchmarkResult | None,
    cand: BenchmarkResult | None,
    *,
    threshold: float = DEFAULT_REGRESSION_THRESHOLD,
) -> Comparison:
    """Compare one case's baseline and candidate results."""
    if base is None:
        if cand is None:
            raise ValueError(f"Case '{name}' is missing from both result sets")
        return Comparison(
            name=name,
            classification=Classification.MISSING_BASELINE,
            candidate_hz=cand.hz,
            candidate_rme=cand.rme,
            candidate_error=cand.error_message,
        )
    if cand is None:
        return Comparison(
            name=name,
            classification=Classification.MISSING_CANDIDATE,
            baseline_hz=base.hz,
            baseline_rme=base.rme,
            baseline_error=base.error_message,
        )

    if base.failed and cand.failed:
        classification = Classification.BOTH_FAILED
        percent = None
    elif base.failed or cand.failed:
        # A failure is worse than any measured rate.
        classification = Classification.REGRESSED
        percent = None
    else:
        percent = percent_change(base.hz, cand.hz)  # type: ignore[arg-type]
        if percent is None:
            classification = Classification.NOISE
        else:
            classification = classify_change(percent, threshold)

    return Comparison(
        name=name,
        classification=classification,
        baseline_hz=base.hz,
        candidate_hz=cand.hz,
        baseline_rme=base.rme,
        candidate_rme=cand.rme,
        percent_change=percent,
        baseline_error=base.error_message,
        candidate_error=cand.error_message,
    )


def percent_change(baseline_hz: float, candidate_hz: float) -> float | None:
    """Throughput change in percent, or None when the baseline rate is 0."""
    if baseline_hz <= 0:
        return None
    return (candidate_hz - baseline_hz) / baseline_hz * 100


def summarize(comparisons: list[Comparison]) -> ComparisonSummary:
    """Count comparisons per classification."""
    counts = {c: 0 for c in Classification}
    for comp in comparisons:
        counts[comp.classification] += 1
    return ComparisonSummary(
        improved=counts[Classification.IMPROVED],
        regressed=counts[Classification.REGRESSED],
        noise=counts[Classification.NOISE],
        missing_baseline=counts[Classification.MISSING_BASELINE],
        missing_candidate=counts[Classification.MISSING_CANDIDATE],
        both_failed=counts[Classification.BOTH_FAILED],
    )
