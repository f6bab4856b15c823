"""Adaptive sample collection for one benchmark case.

The collector decides how many times to invoke a case:

1. Warm-up invocations (discarded) absorb one-time setup cost such as
   cold caches and lazy imports.
2. Measured invocations are appended to the sample set one at a time;
   after each one the statistics are recomputed.
3. Collection stops as soon as any of these holds:

   - ``max_samples`` samples were taken;
   - at least ``min_samples`` were taken and the relative margin of
     error is at or below ``target_rme``;
   - the wall-clock time since the first measured invocation exceeds
     ``max_time``.

Invocations never overlap.  Async work is awaited on one event loop
owned by the collector for the lifetime of a single case.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

from perfgate.bench.stats import Stats, compute_stats
from perfgate.bench.timing import Clock, default_clock, time_call
from perfgate.logging import get_logger

log = get_logger("collector")


class CaseExecutionError(RuntimeError):
    """The unit of work of a case raised, or reported failure."""

    def __init__(self, case: str, cause: BaseException | str) -> None:
        self.case = case
        self.cause = cause
        super().__init__(f"Case '{case}' failed: {self.detail}")

    @property
    def detail(self) -> str:
        """The error message without the case prefix."""
        if isinstance(self.cause, BaseException):
            return f"{type(self.cause).__name__}: {self.cause}"
        return self.cause


# ---------------------------------------------------------------------------
# BenchmarkCase
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkCase:
    """One named unit of work.

    ``work`` takes no arguments.  It fails by raising (``sys.exit()``
    included), or by returning exactly ``False``; any other return value
    counts as success.  It may return an awaitable, which is awaited as
    part of the invocation.
    """

    name: str
    work: Callable[[], Any]


# ---------------------------------------------------------------------------
# Settings and outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollectorConfig:
    """Stopping rules for adaptive sampling."""

    min_samples: int = 5
    max_samples: int = 100
    target_rme: float = 1.0  # percent
    max_time: float = 5.0  # seconds of wall-clock time per case
    warmup: int = 1


STOP_MAX_SAMPLES = "max_samples"
STOP_CONVERGED = "converged"
STOP_TIME_BUDGET = "time_budget"


@dataclass(frozen=True)
class Collection:
    """Samples and statistics gathered for one case."""

    case: str
    samples: tuple[float, ...]
    stats: Stats
    stop_reason: str
    elapsed_s: float  # wall-clock time spent on measured invocations


# ---------------------------------------------------------------------------
# SampleCollector
# ---------------------------------------------------------------------------


class SampleCollector:
    """Collects timing samples for benchmark cases.

    Usage::

        collector = SampleCollector(CollectorConfig(target_rme=2.0))
        collection = collector.collect(case)
    """

    def __init__(
        self,
        config: CollectorConfig | None = None,
        *,
        clock: Clock = default_clock,
    ) -> None:
        self.config = config or CollectorConfig()
        self.clock = clock

    def collect(self, case: BenchmarkCase) -> Collection:
        """Sample *case* until a stopping rule fires.

        Raises:
            CaseExecutionError: If any invocation fails, warm-up
                included.  Samples taken so far are discarded.
        """
        loop = asyncio.new_event_loop()
        try:
            return self._collect(case, loop)
        finally:
            loop.close()

    def _collect(
        self,
        case: BenchmarkCase,
        loop: asyncio.AbstractEventLoop,
    ) -> Collection:
        cfg = self.config

        for i in range(cfg.warmup):
            elapsed = self._invoke(case, loop)
            log.debug("%s: warm-up %d/%d took %.6fs", case.name, i + 1, cfg.warmup, elapsed)

        samples: list[float] = []
        started = self.clock()

        while True:
            samples.append(self._invoke(case, loop))
            stats = compute_stats(samples)
            spent = self.clock() - started
            log.debug(
                "%s: sample %d = %.6fs (rme %.2f%%)",
                case.name,
                stats.count,
                samples[-1],
                stats.rme,
            )

            reason = self._stop_reason(stats, spent)
            if reason is not None:
                break

        log.info(
            "%s: %d samples, %.2f ops/sec ±%.2f%% (%s)",
            case.name,
            stats.count,
            stats.hz,
            stats.rme,
            reason,
        )
        return Collection(
            case=case.name,
            samples=tuple(samples),
            stats=stats,
            stop_reason=reason,
            elapsed_s=spent,
        )

    def _stop_reason(self, stats: Stats, spent: float) -> str | None:
        """Return why collection should stop now, or None to continue."""
        cfg = self.config
        if stats.count >= cfg.max_samples:
            return STOP_MAX_SAMPLES
        if stats.count >= cfg.min_samples and stats.rme <= cfg.target_rme:
            return STOP_CONVERGED
        if spent > cfg.max_time:
            return STOP_TIME_BUDGET
        return None

    def _invoke(self, case: BenchmarkCase, loop: asyncio.AbstractEventLoop) -> float:
        """Run one invocation and return its elapsed time."""
        try:
            timed = time_call(case.work, clock=self.clock, loop=loop)
        except (Exception, SystemExit) as exc:  # noqa: BLE001
            raise CaseExecutionError(case.name, exc) from exc
        if timed.value is False:
            raise CaseExecutionError(case.name, "unit of work reported failure")
        return timed.elapsed_s
