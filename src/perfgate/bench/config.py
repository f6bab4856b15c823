"""Benchmark configuration and suite profile loading.

Handles:
- Loading suite profiles from YAML files.
- Parsing inline case definitions from CLI arguments.
- Merging CLI options with profile defaults.
- Resolving case targets (``package.module:attr``) to callables.
- Validating the final configuration before any measurement starts.
"""

from __future__ import annotations

import functools
import importlib
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from perfgate.bench.collector import BenchmarkCase, CollectorConfig

log = logging.getLogger("perfgate")

DEFAULT_REGRESSION_THRESHOLD = 5.0  # percent slowdown still treated as noise


class NameCollisionError(ValueError):
    """Two cases were submitted under the same name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate benchmark case name: '{name}'")


def check_unique_names(names: Iterable[str]) -> None:
    """Raise NameCollisionError on the first repeated name."""
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise NameCollisionError(name)
        seen.add(name)


# ---------------------------------------------------------------------------
# CaseDef
# ---------------------------------------------------------------------------


@dataclass
class CaseDef:
    """Definition of one benchmark case as written in a profile."""

    name: str
    target: str  # "package.module:attr"
    args: list[Any] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)
    description: str = ""


_CASE_KEYS = frozenset({"target", "args", "kwargs", "description"})


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    name: str = ""
    description: str = ""

    # Cases to run, in submission order.
    cases: dict[str, CaseDef] = field(default_factory=dict)

    # Sampling
    min_samples: int = 5
    max_samples: int = 100
    target_rme: float = 1.0  # percent
    max_time: float = 5.0  # seconds per case
    warmup: int = 1

    # Comparison policy
    regression_threshold: float = DEFAULT_REGRESSION_THRESHOLD

    @property
    def collector_config(self) -> CollectorConfig:
        """The sampling settings as a CollectorConfig."""
        return CollectorConfig(
            min_samples=self.min_samples,
            max_samples=self.max_samples,
            target_rme=self.target_rme,
            max_time=self.max_time,
            warmup=self.warmup,
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


_INT_SETTINGS = ("min_samples", "max_samples", "warmup")
_FLOAT_SETTINGS = ("target_rme", "max_time", "regression_threshold")


def _check_setting_types(config: BenchConfig) -> list[ValidationError]:
    """Reject settings of the wrong type (a YAML profile can hold anything)."""
    errors: list[ValidationError] = []
    for key in _INT_SETTINGS:
        value = getattr(config, key)
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(
                ValidationError(
                    field=key,
                    message=f"Must be an integer (got {value!r}).",
                )
            )
    for key in _FLOAT_SETTINGS:
        value = getattr(config, key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            errors.append(
                ValidationError(
                    field=key,
                    message=f"Must be a number (got {value!r}).",
                )
            )
    return errors


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.  Range
    checks are skipped for settings that already failed the type check.
    """
    errors = _check_setting_types(config)
    typed = set(_INT_SETTINGS + _FLOAT_SETTINGS) - {e.field for e in errors}

    if "min_samples" in typed:
        if config.min_samples < 1:
            errors.append(
                ValidationError(
                    field="min_samples",
                    message=f"Need at least 1 sample per case (got {config.min_samples}).",
                )
            )
        elif config.min_samples < 2:
            errors.append(
                ValidationError(
                    field="min_samples",
                    message="With min_samples=1 the RME is 0 after one sample; "
                    "cases will stop immediately.",
                    severity="warning",
                )
            )

    if {"min_samples", "max_samples"} <= typed and config.max_samples < config.min_samples:
        errors.append(
            ValidationError(
                field="max_samples",
                message=(
                    f"max_samples ({config.max_samples}) must be at least "
                    f"min_samples ({config.min_samples})."
                ),
            )
        )

    if "target_rme" in typed and config.target_rme <= 0:
        errors.append(
            ValidationError(
                field="target_rme",
                message=f"Target RME must be positive (got {config.target_rme}).",
            )
        )

    if "max_time" in typed and config.max_time <= 0:
        errors.append(
            ValidationError(
                field="max_time",
                message=f"Time budget must be positive (got {config.max_time}).",
            )
        )

    if "warmup" in typed and config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warm-up invocations cannot be negative (got {config.warmup}).",
            )
        )

    if "regression_threshold" in typed and config.regression_threshold < 0:
        errors.append(
            ValidationError(
                field="regression_threshold",
                message=(
                    f"Regression threshold is a tolerated slowdown in percent and "
                    f"cannot be negative (got {config.regression_threshold})."
                ),
            )
        )

    for name, case in config.cases.items():
        if not name or not name.strip():
            errors.append(
                ValidationError(field="cases", message="Case names must be non-empty.")
            )
        if ":" not in case.target:
            errors.append(
                ValidationError(
                    field=f"cases.{name}.target",
                    message=(
                        f"Case '{name}' target must look like 'package.module:attr' "
                        f"(got '{case.target}')."
                    ),
                )
            )

    return errors


def raise_for_errors(errors: list[ValidationError]) -> None:
    """Log warnings and raise ValueError listing every fatal error."""
    fatal = [e for e in errors if e.severity == "error"]
    for w in errors:
        if w.severity == "warning":
            log.warning("Config warning: %s: %s", w.field, w.message)
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ValueError("Invalid benchmark configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a suite profile from a YAML file.

    Profile format::

        name: "parser benchmarks"
        min_samples: 5
        max_samples: 100
        target_rme: 1.0
        max_time: 5.0
        warmup: 1
        regression_threshold: 5.0

        cases:
          parse-small:
            target: "mypkg.bench:parse_small"
          parse-large:
            description: "10 MB input"
            target: "mypkg.bench:parse"
            kwargs:
              size: 10000000

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


_SETTING_KEYS = (
    "min_samples",
    "max_samples",
    "target_rme",
    "max_time",
    "warmup",
    "regression_threshold",
)


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values for the name and
    every sampling/policy setting.  Override values of None are ignored.

    Raises:
        ValueError: If the profile's structure is wrong or a case uses
            an unknown key.
    """
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    config = BenchConfig(
        name=cli.get("name") or profile_data.get("name", ""),
        description=profile_data.get("description", ""),
    )
    for key in _SETTING_KEYS:
        if key in cli:
            setattr(config, key, cli[key])
        elif key in profile_data:
            setattr(config, key, profile_data[key])

    cases_data = profile_data.get("cases", {}) or {}
    if not isinstance(cases_data, dict):
        raise ValueError("Profile 'cases' must be a mapping of case_name -> definition")

    for name, case_data in cases_data.items():
        config.cases[str(name)] = case_from_dict(str(name), case_data)

    return config


def case_from_dict(name: str, data: Any) -> CaseDef:
    """Build a CaseDef from a profile entry, rejecting unknown keys."""
    if isinstance(data, str):
        # Shorthand: "case-name: package.module:attr"
        data = {"target": data}
    if not isinstance(data, dict):
        raise ValueError(f"Case '{name}' must be a mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - _CASE_KEYS)
    if unknown:
        raise ValueError(
            f"Unknown key(s) {', '.join(unknown)} in case '{name}'. "
            f"Valid keys: {', '.join(sorted(_CASE_KEYS))}"
        )
    if not data.get("target"):
        raise ValueError(f"Case '{name}' has no target.")

    args = data.get("args", []) or []
    kwargs = data.get("kwargs", {}) or {}
    if not isinstance(args, list):
        raise ValueError(f"Case '{name}' args must be a list.")
    if not isinstance(kwargs, dict):
        raise ValueError(f"Case '{name}' kwargs must be a mapping.")

    return CaseDef(
        name=name,
        target=str(data["target"]),
        args=list(args),
        kwargs=dict(kwargs),
        description=data.get("description", ""),
    )


# ---------------------------------------------------------------------------
# Inline case parsing
# ---------------------------------------------------------------------------


def parse_inline_case(spec: str) -> CaseDef:
    """Parse an inline case specification from the CLI.

    Format: ``"name=package.module:attr"``.

    Examples::

        "json-dumps=mypkg.bench:dump_small"
        "startup=mypkg.bench:cold_start"
    """
    if "=" not in spec:
        raise ValueError(
            f"Invalid case spec: '{spec}'. Expected format: 'name=package.module:attr'"
        )
    name, target = spec.split("=", 1)
    name = name.strip()
    target = target.strip()
    if not name:
        raise ValueError("Case name cannot be empty.")
    if not target:
        raise ValueError(f"Case '{name}' has no target.")
    return CaseDef(name=name, target=target)


def add_cases(config: BenchConfig, cases: Iterable[CaseDef]) -> None:
    """Append cases to *config*, refusing names already present."""
    for case in cases:
        if case.name in config.cases:
            raise NameCollisionError(case.name)
        config.cases[case.name] = case


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------


def resolve_target(target: str) -> Any:
    """Import ``package.module:attr`` (attr may be dotted) and return it.

    Raises:
        ValueError: If the target is malformed, the module cannot be
            imported, or the attribute does not exist.
    """
    if ":" not in target:
        raise ValueError(f"Target must look like 'package.module:attr', got '{target}'")
    module_name, attr_path = target.split(":", 1)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import module '{module_name}': {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"'{module_name}' has no attribute '{attr_path}'") from None
    return obj


def resolve_case(case_def: CaseDef) -> BenchmarkCase:
    """Turn a CaseDef into a runnable BenchmarkCase."""
    func = resolve_target(case_def.target)
    if not callable(func):
        raise ValueError(f"Target '{case_def.target}' of case '{case_def.name}' is not callable")
    if case_def.args or case_def.kwargs:
        func = functools.partial(func, *case_def.args, **case_def.kwargs)
    return BenchmarkCase(name=case_def.name, work=func)


def resolve_cases(config: BenchConfig) -> list[BenchmarkCase]:
    """Resolve every case of *config*, in submission order."""
    return [resolve_case(c) for c in config.cases.values()]
