"""Timing capture for benchmark invocations.

Measures the wall-clock time of a single call to a unit of work.  The
work may be a plain callable or return an awaitable; awaitables are run
to completion on the event loop supplied by the caller, and the elapsed
time covers the whole suspension.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Callable

# A clock returns monotonic seconds.  Tests inject fake clocks.
Clock = Callable[[], float]

default_clock: Clock = time.perf_counter


# ---------------------------------------------------------------------------
# TimedCall
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimedCall:
    """Result of one timed invocation."""

    elapsed_s: float
    value: Any = None  # whatever the work returned (awaited if needed)


def time_call(
    work: Callable[[], Any],
    *,
    clock: Clock = default_clock,
    loop: asyncio.AbstractEventLoop | None = None,
) -> TimedCall:
    """Invoke *work* once and measure how long it took.

    Args:
        work: Zero-argument callable.  If it returns an awaitable, the
            awaitable is run on *loop* before the clock is stopped.
        clock: Monotonic time source.
        loop: Event loop used for awaitable results.  A temporary loop
            is created (and its creation timed) when none is given, so
            callers timing async work repeatedly should pass one.

    Returns:
        TimedCall with the elapsed seconds and the returned value.

    Exceptions raised by the work propagate unchanged.
    """
    start = clock()
    value = work()
    if inspect.isawaitable(value):
        if loop is None:
            value = asyncio.run(_await(value))
        else:
            value = loop.run_until_complete(_await(value))
    elapsed = clock() - start
    return TimedCall(elapsed_s=max(elapsed, 0.0), value=value)


async def _await(awaitable: Any) -> Any:
    return await awaitable
