"""Summary statistics for benchmark samples.

Computes mean, sample variance, standard deviation, standard error of
the mean, relative margin of error and throughput from a sequence of
elapsed times.  Pure functions, no I/O.

Variance uses Bessel's correction (n - 1 denominator) and is computed
with the standard library's ``statistics`` module, which sums floats
exactly, so identical samples always produce a variance of exactly 0.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence


class EmptyInputError(ValueError):
    """Statistics were requested for an empty sample set."""


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Stats:
    """Summary statistics derived from one sample set."""

    count: int
    mean: float  # seconds per invocation
    variance: float
    stddev: float
    sem: float  # standard error of the mean
    rme: float  # relative margin of error, percent of the mean
    hz: float  # invocations per second (1 / mean)

    @classmethod
    def zero(cls) -> Stats:
        """All-zero stats, used where a failed case needs a placeholder."""
        return cls(count=0, mean=0.0, variance=0.0, stddev=0.0, sem=0.0, rme=0.0, hz=0.0)


def compute_stats(samples: Sequence[float]) -> Stats:
    """Compute summary statistics for a sample set.

    Args:
        samples: Elapsed times in seconds, in the order they were taken.

    Returns:
        Stats for the samples.  With fewer than 2 samples the variance,
        standard deviation, SEM and RME are all 0.

    Raises:
        EmptyInputError: If *samples* is empty.
        ValueError: If any sample is negative.
    """
    n = len(samples)
    if n == 0:
        raise EmptyInputError("cannot compute statistics on zero samples")
    if any(s < 0 for s in samples):
        raise ValueError("samples must be non-negative elapsed times")

    mean = float(statistics.mean(samples))
    variance = float(statistics.variance(samples)) if n >= 2 else 0.0
    stddev = math.sqrt(variance)
    sem = stddev / math.sqrt(n)

    if mean > 0:
        rme = sem / mean * 100
        hz = 1 / mean
    else:
        # Degenerate zero-duration work.
        rme = 0.0
        hz = 0.0

    return Stats(
        count=n,
        mean=mean,
        variance=variance,
        stddev=stddev,
        sem=sem,
        rme=rme,
        hz=hz,
    )
