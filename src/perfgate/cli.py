"""Command-line interface for perfgate.

Subcommands:
    perfgate run       Run a benchmark suite and save its result file
    perfgate compare   Compare a candidate result file against a baseline
    perfgate show      Display a result file
    perfgate system    Print environment metadata
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from perfgate import __version__
from perfgate.bench.config import DEFAULT_REGRESSION_THRESHOLD
from perfgate.logging import setup_logging

log = logging.getLogger("perfgate")

# Exit status of ``compare --fail-on-regression`` when a case regressed.
EXIT_REGRESSION = 3


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """perfgate — adaptive micro-benchmarks with baseline/candidate regression reports."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML profile defining the benchmark cases.",
)
@click.option(
    "--case",
    "inline_cases",
    type=str,
    multiple=True,
    help="Inline case: 'name=package.module:attr' (repeatable).",
)
@click.option(
    "--min-samples", type=int, default=None, help="Minimum samples per case (default: 5)."
)
@click.option(
    "--max-samples", type=int, default=None, help="Maximum samples per case (default: 100)."
)
@click.option(
    "--target-rme",
    type=float,
    default=None,
    help="Stop sampling once the RME (percent) reaches this (default: 1.0).",
)
@click.option(
    "--max-time",
    type=float,
    default=None,
    help="Wall-clock budget per case in seconds (default: 5.0).",
)
@click.option("--warmup", type=int, default=None, help="Warm-up invocations (default: 1).")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("performance-results.json"),
    show_default=True,
    help="Result file to write.",
)
@click.option("--name", type=str, default=None, help="Human-readable suite name.")
@click.option("-v", "--verbose", is_flag=True, help="Show per-sample output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def run(  # noqa: PLR0913
    profile_path: Path | None,
    inline_cases: tuple[str, ...],
    min_samples: int | None,
    max_samples: int | None,
    target_rme: float | None,
    max_time: float | None,
    warmup: int | None,
    output: Path,
    name: str | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run a benchmark suite and write its result file.

    Use --profile for a YAML profile and/or --case for inline cases.

    \b
    Examples:
        # From a YAML profile
        perfgate run --profile bench.yaml -o baseline.json

        # Inline cases
        perfgate run --case "dumps=mypkg.bench:dumps" \\
            --case "loads=mypkg.bench:loads" --target-rme 2 -o candidate.json
    """
    from perfgate.bench.config import (
        add_cases,
        config_from_profile,
        load_profile,
        parse_inline_case,
        resolve_cases,
    )
    from perfgate.bench.display import format_result_set
    from perfgate.bench.results import save_result_set
    from perfgate.bench.runner import SuiteRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "name": name,
        "min_samples": min_samples,
        "max_samples": max_samples,
        "target_rme": target_rme,
        "max_time": max_time,
        "warmup": warmup,
    }

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        add_cases(config, (parse_inline_case(spec) for spec in inline_cases))
        if not config.cases:
            raise ValueError("No benchmark cases defined. Use --profile or --case.")
        runner = SuiteRunner(resolve_cases(config), config)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    try:
        result_set = runner.run()
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    save_result_set(output, result_set)

    click.echo()
    click.echo(format_result_set(result_set))
    click.echo()
    click.echo(f"Results saved to: {output}")

    if result_set.failed:
        log.warning("%d of %d cases failed", len(result_set.failed), len(result_set.results))


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


@main.command("compare")
@click.argument("baseline_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("candidate_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--threshold",
    type=float,
    default=DEFAULT_REGRESSION_THRESHOLD,
    show_default=True,
    help="Tolerated slowdown in percent before a case counts as regressed.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the Markdown report here (default: stdout).",
)
@click.option(
    "--fail-on-regression",
    is_flag=True,
    default=False,
    help=f"Exit with status {EXIT_REGRESSION} if any case regressed.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
def compare(  # noqa: PLR0913
    baseline_file: Path,
    candidate_file: Path,
    threshold: float,
    output: Path | None,
    fail_on_regression: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Compare CANDIDATE_FILE against BASELINE_FILE.

    Both files are result files written by ``perfgate run``.  Cases are
    matched by name.

    \b
    Examples:
        perfgate compare baseline.json candidate.json
        perfgate compare baseline.json candidate.json -o report.md --fail-on-regression
    """
    from perfgate.bench.compare import compare_results, summarize
    from perfgate.bench.display import format_report
    from perfgate.bench.results import MalformedResultFileError, load_result_set

    if threshold < 0:
        raise click.BadParameter("must be non-negative", param_hint="--threshold")

    setup_logging(verbose=verbose, quiet=quiet)

    try:
        baseline = load_result_set(baseline_file)
        candidate = load_result_set(candidate_file)
    except MalformedResultFileError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    comparisons = compare_results(baseline, candidate, threshold=threshold)
    report = format_report(
        comparisons,
        baseline=baseline,
        candidate=candidate,
        threshold=threshold,
    )

    if output:
        output.write_text(report + "\n")
        click.echo(f"Report written to {output}")
    else:
        click.echo(report)

    summary = summarize(comparisons)
    if fail_on_regression and summary.has_regressions:
        click.echo(f"{summary.regressed} case(s) regressed.", err=True)
        raise SystemExit(EXIT_REGRESSION)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command("show")
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(result_file: Path) -> None:
    """Display the results stored in RESULT_FILE."""
    from perfgate.bench.display import format_result_set
    from perfgate.bench.results import MalformedResultFileError, load_result_set

    try:
        result_set = load_result_set(result_file)
    except MalformedResultFileError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(format_result_set(result_set))


# ---------------------------------------------------------------------------
# system
# ---------------------------------------------------------------------------


@main.command("system")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def system_cmd(as_json: bool) -> None:
    """Print the environment metadata recorded in result files."""
    from perfgate.bench.system import capture_environment, format_environment

    info = capture_environment()
    if as_json:
        click.echo(info.to_json())
    else:
        click.echo(format_environment(info))
