"""Environment characterization for benchmark result sets.

Captures the platform and runtime the benchmark ran on, so a baseline
and a candidate result set can be checked for comparability.  Every
capture is best-effort: failures produce defaults, not exceptions.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import sys
from dataclasses import asdict, dataclass
from typing import Any

log = logging.getLogger("perfgate")


# ---------------------------------------------------------------------------
# EnvironmentInfo
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnvironmentInfo:
    """Where a benchmark ran."""

    platform: str = ""  # sys.platform, e.g. "linux"
    runtime_version: str = ""  # e.g. "3.12.4"
    implementation: str = ""  # CPython, PyPy, ...
    machine: str = ""  # e.g. "x86_64"
    os_release: str = ""
    cpu_count: int = 0
    load_avg_1m: float = 0.0
    hostname: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def capture_environment() -> EnvironmentInfo:
    """Capture the current process's environment."""
    return EnvironmentInfo(
        platform=sys.platform,
        runtime_version=platform.python_version(),
        implementation=platform.python_implementation(),
        machine=platform.machine(),
        os_release=platform.release(),
        cpu_count=os.cpu_count() or 0,
        load_avg_1m=_load_avg_1m(),
        hostname=platform.node(),
    )


def _load_avg_1m() -> float:
    # Load averages are POSIX only.
    try:
        return round(os.getloadavg()[0], 2)
    except (AttributeError, OSError):
        log.debug("Load average not available on %s", sys.platform)
        return 0.0


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_environment(info: EnvironmentInfo) -> str:
    """Format environment info for terminal display."""
    lines = [
        "Environment",
        "─" * 11,
        f"Runtime:  Python {info.runtime_version} ({info.implementation})",
        f"Platform: {info.platform} ({info.machine}, {info.os_release})",
        f"CPUs:     {info.cpu_count}",
        f"Load:     {info.load_avg_1m}",
        f"Hostname: {info.hostname}",
    ]
    return "\n".join(lines)
