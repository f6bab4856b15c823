"""Report formatting for benchmark results.

Pure rendering: nothing here measures or classifies.  Regression
markers come from each Comparison's classification, which
``perfgate.bench.compare.classify_change`` assigned.

- ``format_report``: Markdown comparison report (PR comments, CI logs).
- ``format_result_set``: aligned terminal table for a single run.
"""

from __future__ import annotations

import math
from typing import Sequence

from perfgate.bench.compare import (
    Classification,
    Comparison,
    summarize,
)
from perfgate.bench.config import DEFAULT_REGRESSION_THRESHOLD
from perfgate.bench.results import BenchmarkResultSet

_ICONS = {
    Classification.IMPROVED: "\U0001f7e2",  # green circle
    Classification.REGRESSED: "\U0001f534",  # red circle
    Classification.NOISE: "\U0001f7e1",  # yellow circle
    Classification.MISSING_BASELINE: "⚪",  # white circle
    Classification.MISSING_CANDIDATE: "⚪",
    Classification.BOTH_FAILED: "⚪",
}

_REGRESSION_WARNING = "⚠️ **Warning**: Performance regression detected!"


# ---------------------------------------------------------------------------
# Number formatting utilities
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    """Thousands separators, at most two decimals, no trailing zeros."""
    if math.isnan(value):
        return "N/A"
    text = f"{value:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _format_pct(value: float | None) -> str:
    """Format a percentage with sign, or N/A."""
    if value is None or math.isnan(value):
        return "N/A"
    sign = "+" if value >= 0 else ""
    return f"{sign}{_format_number(value)}%"


def _format_time(seconds: float, precision: int = 2) -> str:
    """Format a time value with adaptive units."""
    if math.isnan(seconds):
        return "N/A"
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.{precision}f}µs"
    if seconds < 1:
        return f"{seconds * 1000:.{precision}f}ms"
    if seconds < 60:
        return f"{seconds:.{precision}f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m{secs:.0f}s"


def _format_rate(hz: float | None, rme: float | None, error: str, present: bool) -> str:
    """One side of a comparison: rate with RME, or why there is none."""
    if not present:
        return "N/A (not run)"
    if hz is None:
        return f"FAILED ({error})" if error else "FAILED"
    return f"{_format_number(hz)} ops/sec (±{_format_number(rme or 0.0)}% RME)"


# ---------------------------------------------------------------------------
# Comparison report (Markdown)
# ---------------------------------------------------------------------------


def format_report(
    comparisons: Sequence[Comparison],
    *,
    baseline: BenchmarkResultSet | None = None,
    candidate: BenchmarkResultSet | None = None,
    threshold: float = DEFAULT_REGRESSION_THRESHOLD,
) -> str:
    """Render comparisons as a Markdown report.

    Args:
        comparisons: Output of ``compare_results``.
        baseline: Baseline result set, for the Environment section.
        candidate: Candidate result set, for the Environment section.
        threshold: The threshold the comparisons were classified with;
            only shown in the summary.
    """
    lines: list[str] = ["# Performance Test Results", ""]

    if baseline is not None or candidate is not None:
        lines.extend(_format_environment(baseline, candidate))

    lines.append("## Test Results")
    lines.append("")

    if not comparisons:
        lines.append("No benchmark cases to compare.")
        lines.append("")

    for comp in comparisons:
        lines.append(f"### {_ICONS[comp.classification]} {comp.name}")
        lines.append("```")
        lines.append(
            "Baseline:  "
            + _format_rate(
                comp.baseline_hz,
                comp.baseline_rme,
                comp.baseline_error,
                comp.classification is not Classification.MISSING_BASELINE,
            )
        )
        lines.append(
            "Candidate: "
            + _format_rate(
                comp.candidate_hz,
                comp.candidate_rme,
                comp.candidate_error,
                comp.classification is not Classification.MISSING_CANDIDATE,
            )
        )
        lines.append(f"Change:    {_format_pct(comp.percent_change)}")
        lines.append("```")
        lines.append("")
        if comp.regressed:
            lines.append(_REGRESSION_WARNING)
            lines.append("")

    lines.extend(_format_summary(comparisons, threshold))
    return "\n".join(lines)


def _format_environment(
    baseline: BenchmarkResultSet | None,
    candidate: BenchmarkResultSet | None,
) -> list[str]:
    """Environment table with one column per available result set."""
    columns = [
        (label, rs)
        for label, rs in (("Baseline", baseline), ("Candidate", candidate))
        if rs is not None
    ]
    lines = ["## Environment", ""]
    lines.append("| | " + " | ".join(label for label, _ in columns) + " |")
    lines.append("|---|" + "---|" * len(columns))
    lines.append("| Python | " + " | ".join(rs.runtime_version for _, rs in columns) + " |")
    lines.append("| Platform | " + " | ".join(rs.platform for _, rs in columns) + " |")
    lines.append("| Timestamp | " + " | ".join(rs.timestamp for _, rs in columns) + " |")
    lines.append("")
    return lines


def _format_summary(comparisons: Sequence[Comparison], threshold: float) -> list[str]:
    summary = summarize(list(comparisons))
    lines = ["## Summary", ""]
    lines.append(f"- Cases compared: {summary.total}")
    lines.append(f"- Improved: {summary.improved}")
    lines.append(f"- Regressed: {summary.regressed}")
    lines.append(f"- Within noise (0% to -{_format_number(threshold)}%): {summary.noise}")
    if summary.missing_baseline:
        lines.append(f"- New (no baseline): {summary.missing_baseline}")
    if summary.missing_candidate:
        lines.append(f"- Removed (no candidate): {summary.missing_candidate}")
    if summary.both_failed:
        lines.append(f"- Failed in both runs: {summary.both_failed}")
    return lines


# ---------------------------------------------------------------------------
# Single run display (terminal)
# ---------------------------------------------------------------------------


def format_result_set(result_set: BenchmarkResultSet) -> str:
    """Format one run's results as an aligned table."""
    lines: list[str] = []
    title = f"Python {result_set.runtime_version} on {result_set.platform}"
    lines.append(title)
    lines.append("─" * len(title))
    lines.append(f"Time: {result_set.timestamp}")
    lines.append("")

    header = (
        f"{'Case':<30s} {'ops/sec':>14s} {'± RME':>8s} "
        f"{'Mean':>10s} {'Samples':>8s} {'Status':>8s}"
    )
    lines.append(header)
    lines.append("─" * len(header))

    fastest = set(result_set.fastest)
    for r in result_set.results:
        if r.failed or r.stats is None:
            lines.append(
                f"{r.name:<30s} {'':>14s} {'':>8s} {'':>10s} {'':>8s} {'FAILED':>8s}"
            )
            if r.error_message:
                lines.append(f"    {r.error_message}")
            continue
        s = r.stats
        status = "fastest" if r.name in fastest and len(result_set.results) > 1 else "ok"
        lines.append(
            f"{r.name:<30s} {_format_number(s.hz):>14s} "
            f"{_format_number(s.rme) + '%':>8s} "
            f"{_format_time(s.mean):>10s} {s.count:>8d} {status:>8s}"
        )

    failed = len(result_set.failed)
    lines.append("")
    lines.append(f"Cases: {len(result_set.results) - failed} ok, {failed} failed")
    return "\n".join(lines)
