"""Benchmark execution engine.

Runs a suite of named cases through the sample collector and assembles
a BenchmarkResultSet:

1. Configuration and case-name validation (before any measurement)
2. Environment capture
3. Sequential execution, one case at a time, in submission order
4. Per-case failure isolation
5. Progress reporting through an injected callback

Cases never run concurrently: parallel cases would compete for CPU,
caches and memory and bias each other's timings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

from perfgate.bench.collector import (
    BenchmarkCase,
    CaseExecutionError,
    SampleCollector,
)
from perfgate.bench.config import (
    BenchConfig,
    check_unique_names,
    raise_for_errors,
    validate_config,
)
from perfgate.bench.results import BenchmarkResult, BenchmarkResultSet
from perfgate.bench.system import capture_environment
from perfgate.bench.timing import Clock, default_clock
from perfgate.logging import get_logger

log = get_logger("runner")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "case" after each case, "done" once at the end
    cases_done: int
    cases_total: int
    result: BenchmarkResult | None = None  # set for phase "case"


ProgressCallback = Callable[[BenchProgress], None]


# ---------------------------------------------------------------------------
# SuiteRunner
# ---------------------------------------------------------------------------


class SuiteRunner:
    """Executes a suite of benchmark cases.

    Usage::

        runner = SuiteRunner(cases, BenchConfig(target_rme=2.0))
        result_set = runner.run()

    Raises (at construction):
        NameCollisionError: If two cases share a name.
        ValueError: If the configuration is invalid.
    """

    def __init__(
        self,
        cases: Sequence[BenchmarkCase],
        config: BenchConfig | None = None,
        progress_callback: ProgressCallback | None = None,
        *,
        clock: Clock = default_clock,
    ) -> None:
        self.config = config or BenchConfig()
        raise_for_errors(validate_config(self.config))
        check_unique_names(c.name for c in cases)

        self.cases = list(cases)
        self.progress: ProgressCallback = progress_callback or self._default_progress
        self.collector = SampleCollector(self.config.collector_config, clock=clock)

    def run(self) -> BenchmarkResultSet:
        """Run every case and return the assembled result set."""
        env = capture_environment()
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        total = len(self.cases)
        log.info("Running %d benchmark cases", total)

        results: list[BenchmarkResult] = []
        for idx, case in enumerate(self.cases):
            result = self._run_case(case)
            results.append(result)
            self.progress(
                BenchProgress(
                    phase="case",
                    cases_done=idx + 1,
                    cases_total=total,
                    result=result,
                )
            )

        result_set = BenchmarkResultSet(
            timestamp=timestamp,
            platform=env.platform,
            runtime_version=env.runtime_version,
            results=tuple(results),
        )
        self.progress(BenchProgress(phase="done", cases_done=total, cases_total=total))
        return result_set

    def _run_case(self, case: BenchmarkCase) -> BenchmarkResult:
        """Collect one case, turning its failure into a failed result."""
        try:
            collection = self.collector.collect(case)
        except CaseExecutionError as exc:
            log.error("%s", exc)
            return BenchmarkResult.failure(case.name, exc.detail)
        return BenchmarkResult(
            name=case.name,
            stats=collection.stats,
            samples=collection.samples,
        )

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log one line per event."""
        if progress.phase == "done":
            log.info("Completed %d/%d cases", progress.cases_done, progress.cases_total)
            return

        r = progress.result
        if r is None:
            return
        prefix = f"  [{progress.cases_done}/{progress.cases_total}] {r.name:30s}"
        if r.failed:
            log.info("%s FAILED: %s", prefix, r.error_message)
        elif r.stats is not None:
            log.info(
                "%s x %s ops/sec ±%.2f%% (%d runs sampled)",
                prefix,
                f"{r.stats.hz:,.2f}",
                r.stats.rme,
                r.stats.count,
            )


def run_suite(
    cases: Sequence[BenchmarkCase],
    config: BenchConfig | None = None,
    progress_callback: ProgressCallback | None = None,
) -> BenchmarkResultSet:
    """Run *cases* and return their result set."""
    return SuiteRunner(cases, config, progress_callback).run()
