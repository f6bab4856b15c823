"""Benchmark result data structures and the result-file format.

Hierarchy::

    BenchmarkResultSet (one Suite Runner invocation)
      → timestamp, platform, runtime_version
      → results: tuple[BenchmarkResult, ...]   (case submission order)
        → stats: Stats | None                  (None when the case failed)

Result file (one JSON object per run)::

    {
      "timestamp": "2026-10-18T09:30:00.123+00:00",
      "platform": "linux",
      "runtimeVersion": "3.12.4",
      "fastest": ["parse-small"],
      "stats": [
        {"name": "parse-small", "hz": 812.4, "rme": 0.73, "samples": 41,
         "mean": 0.00123, "deviation": 0.00002},
        {"name": "parse-large", "hz": 0, "rme": 0, "samples": 0,
         "mean": 0, "deviation": 0, "failed": true, "error": "..."}
      ]
    }

Floats are written unrounded so that loading a saved file gives back
bit-identical ``hz``, ``rme``, ``mean`` and ``deviation`` values.
``fastest`` is informational and ignored on load.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from perfgate.bench.stats import Stats

log = logging.getLogger("perfgate")


class MalformedResultFileError(ValueError):
    """A result file failed to parse or validate."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        field: str | None = None,
        case: str | None = None,
    ) -> None:
        self.path = str(path) if path is not None else None
        self.field = field
        self.case = case
        self.message = message
        context = []
        if self.path:
            context.append(f"file {self.path}")
        if case:
            context.append(f"case '{case}'")
        if field:
            context.append(f"field '{field}'")
        prefix = f"{', '.join(context)}: " if context else ""
        super().__init__(f"Malformed result file: {prefix}{message}")


# ---------------------------------------------------------------------------
# Case-level result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkResult:
    """Outcome of one case in one run."""

    name: str
    stats: Stats | None = None
    failed: bool = False
    error_message: str = ""
    # Raw samples; only present for results produced in this process.
    samples: tuple[float, ...] = field(default=(), compare=False, repr=False)

    @property
    def hz(self) -> float | None:
        """Throughput, or None when the case failed."""
        if self.failed or self.stats is None:
            return None
        return self.stats.hz

    @property
    def rme(self) -> float | None:
        """Relative margin of error, or None when the case failed."""
        if self.failed or self.stats is None:
            return None
        return self.stats.rme

    @classmethod
    def failure(cls, name: str, error_message: str) -> BenchmarkResult:
        """Build a failed result."""
        return cls(name=name, stats=None, failed=True, error_message=error_message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to one entry of the result file's ``stats`` list."""
        stats = self.stats if self.stats is not None and not self.failed else Stats.zero()
        d: dict[str, Any] = {
            "name": self.name,
            "hz": stats.hz,
            "rme": stats.rme,
            "samples": stats.count,
            "mean": stats.mean,
            "deviation": stats.stddev,
        }
        if self.failed:
            d["failed"] = True
            d["error"] = self.error_message
        return d


# ---------------------------------------------------------------------------
# Run-level result set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkResultSet:
    """All case results of one run, plus where the run happened."""

    timestamp: str
    platform: str
    runtime_version: str
    results: tuple[BenchmarkResult, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for r in self.results:
            if r.name in seen:
                raise ValueError(f"Duplicate case name in result set: '{r.name}'")
            seen.add(r.name)

    @property
    def names(self) -> list[str]:
        """Case names in submission order."""
        return [r.name for r in self.results]

    def get(self, name: str) -> BenchmarkResult | None:
        """Look up a case result by name."""
        for r in self.results:
            if r.name == name:
                return r
        return None

    @property
    def failed(self) -> list[BenchmarkResult]:
        """Results of cases that failed."""
        return [r for r in self.results if r.failed]

    @property
    def fastest(self) -> list[str]:
        """Names of the successful cases sharing the highest throughput."""
        ok = [r for r in self.results if r.hz is not None]
        if not ok:
            return []
        best = max(r.hz for r in ok)  # type: ignore[type-var]
        return [r.name for r in ok if r.hz == best]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def result_set_to_dict(result_set: BenchmarkResultSet) -> dict[str, Any]:
    """Serialize a result set to the result-file JSON object."""
    return {
        "timestamp": result_set.timestamp,
        "platform": result_set.platform,
        "runtimeVersion": result_set.runtime_version,
        "fastest": result_set.fastest,
        "stats": [r.to_dict() for r in result_set.results],
    }


def result_set_from_dict(
    data: Any,
    *,
    path: Path | str | None = None,
) -> BenchmarkResultSet:
    """Validate and deserialize a result-file JSON object.

    Args:
        data: The parsed JSON value.
        path: Source file, used only in error messages.

    Raises:
        MalformedResultFileError: Naming the offending field (and case,
            when known) on any schema violation.
    """
    if not isinstance(data, dict):
        raise MalformedResultFileError(
            f"expected a JSON object, got {_json_type(data)}", path=path
        )

    timestamp = _require_str(data, "timestamp", path=path)
    try:
        _parse_timestamp(timestamp)
    except ValueError:
        raise MalformedResultFileError(
            f"not an ISO-8601 timestamp: {timestamp!r}", path=path, field="timestamp"
        ) from None
    platform = _require_str(data, "platform", path=path)
    runtime_version = _require_str(data, "runtimeVersion", path=path)

    entries = data.get("stats")
    if not isinstance(entries, list):
        raise MalformedResultFileError(
            f"expected a list, got {_json_type(entries)}", path=path, field="stats"
        )

    results: list[BenchmarkResult] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        result = _result_from_entry(entry, index=i, path=path)
        if result.name in seen:
            raise MalformedResultFileError(
                "duplicate case name",
                path=path,
                field=f"stats[{i}].name",
                case=result.name,
            )
        seen.add(result.name)
        results.append(result)

    return BenchmarkResultSet(
        timestamp=timestamp,
        platform=platform,
        runtime_version=runtime_version,
        results=tuple(results),
    )


def _result_from_entry(
    entry: Any,
    *,
    index: int,
    path: Path | str | None,
) -> BenchmarkResult:
    """Deserialize one ``stats`` entry."""
    prefix = f"stats[{index}]"
    if not isinstance(entry, dict):
        raise MalformedResultFileError(
            f"expected an object, got {_json_type(entry)}", path=path, field=prefix
        )

    name = _require_str(entry, "name", path=path, prefix=prefix)
    if not name:
        raise MalformedResultFileError("empty case name", path=path, field=f"{prefix}.name")

    failed = entry.get("failed", False)
    if not isinstance(failed, bool):
        raise MalformedResultFileError(
            f"expected a boolean, got {_json_type(failed)}",
            path=path,
            field=f"{prefix}.failed",
            case=name,
        )
    if failed:
        error = entry.get("error", "")
        if not isinstance(error, str):
            raise MalformedResultFileError(
                f"expected a string, got {_json_type(error)}",
                path=path,
                field=f"{prefix}.error",
                case=name,
            )
        return BenchmarkResult.failure(name, error)

    hz = _require_number(entry, "hz", path=path, prefix=prefix, case=name)
    rme = _require_number(entry, "rme", path=path, prefix=prefix, case=name)
    mean = _require_number(entry, "mean", path=path, prefix=prefix, case=name)
    deviation = _require_number(entry, "deviation", path=path, prefix=prefix, case=name)

    count = entry.get("samples")
    if isinstance(count, bool) or not isinstance(count, int):
        raise MalformedResultFileError(
            f"expected an integer, got {_json_type(count)}",
            path=path,
            field=f"{prefix}.samples",
            case=name,
        )
    if count < 1:
        raise MalformedResultFileError(
            f"successful case must have at least 1 sample, got {count}",
            path=path,
            field=f"{prefix}.samples",
            case=name,
        )

    stats = Stats(
        count=count,
        mean=mean,
        variance=deviation * deviation,
        stddev=deviation,
        sem=deviation / math.sqrt(count),
        rme=rme,
        hz=hz,
    )
    return BenchmarkResult(name=name, stats=stats)


def _require_str(
    data: dict[str, Any],
    key: str,
    *,
    path: Path | str | None,
    prefix: str = "",
) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise MalformedResultFileError(
            f"expected a string, got {_json_type(value)}",
            path=path,
            field=f"{prefix}.{key}" if prefix else key,
        )
    return value


def _require_number(
    data: dict[str, Any],
    key: str,
    *,
    path: Path | str | None,
    prefix: str,
    case: str,
) -> float:
    value = data.get(key)
    field_name = f"{prefix}.{key}"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResultFileError(
            f"expected a number, got {_json_type(value)}",
            path=path,
            field=field_name,
            case=case,
        )
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise MalformedResultFileError(
            f"expected a finite non-negative number, got {value!r}",
            path=path,
            field=field_name,
            case=case,
        )
    return value


def _parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp, including the ``Z`` UTC suffix.

    ``datetime.fromisoformat`` only accepts ``Z`` from Python 3.11 on.
    """
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _json_type(value: Any) -> str:
    """Name a value's JSON type for error messages."""
    if value is None:
        return "null (or missing)"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


# ---------------------------------------------------------------------------
# I/O functions
# ---------------------------------------------------------------------------


def save_result_set(path: Path, result_set: BenchmarkResultSet) -> None:
    """Write a result set to *path* as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result_set_to_dict(result_set), indent=2) + "\n")
    log.info("Wrote %d case results to %s", len(result_set.results), path)


def load_result_set(path: Path) -> BenchmarkResultSet:
    """Load and validate a result file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        MalformedResultFileError: If the file is not valid JSON or does
            not match the result-file schema.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedResultFileError(
            f"not UTF-8 text (byte {exc.start}: {exc.reason})", path=path
        ) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResultFileError(
            f"invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}",
            path=path,
        ) from exc
    return result_set_from_dict(data, path=path)
