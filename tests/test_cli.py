"""Tests for perfgate.cli — Click CLI."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from bench_test_helpers import make_hz_result, make_result_set
from click.testing import CliRunner

from perfgate.bench.results import BenchmarkResult, save_result_set
from perfgate.cli import EXIT_REGRESSION, main
from perfgate.logging import reset_logging

# Keeps CLI runs short on the real clock.
_FAST = ["--min-samples", "2", "--max-samples", "5", "--max-time", "0.5", "--warmup", "0"]


class _CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.tmp = Path(self._tmpdir.name)
        self.addCleanup(reset_logging)
        self.runner = CliRunner()


class TestHelp(_CliTestCase):
    """Tests for the group and subcommand help."""

    def test_group_help(self) -> None:
        result = self.runner.invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("run", "compare", "show", "system"):
            self.assertIn(command, result.output)

    def test_run_help(self) -> None:
        result = self.runner.invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--profile", result.output)
        self.assertIn("--case", result.output)
        self.assertIn("--target-rme", result.output)

    def test_compare_help(self) -> None:
        result = self.runner.invoke(main, ["compare", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--threshold", result.output)
        self.assertIn("--fail-on-regression", result.output)

    def test_version(self) -> None:
        result = self.runner.invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRun(_CliTestCase):
    """Tests for perfgate run."""

    def test_inline_case(self) -> None:
        out = self.tmp / "results.json"
        result = self.runner.invoke(
            main, ["run", "--case", "noop=bench_test_helpers:noop", *_FAST, "-o", str(out)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Results saved to", result.output)
        data = json.loads(out.read_text())
        self.assertEqual([s["name"] for s in data["stats"]], ["noop"])
        self.assertGreaterEqual(data["stats"][0]["samples"], 2)
        self.assertLessEqual(data["stats"][0]["samples"], 5)

    def test_profile(self) -> None:
        profile = self.tmp / "bench.yaml"
        profile.write_text(
            "name: helpers\n"
            "cases:\n"
            "  noop: bench_test_helpers:noop\n"
            "  add:\n"
            "    target: bench_test_helpers:add\n"
            "    args: [1, 2]\n"
        )
        out = self.tmp / "results.json"
        result = self.runner.invoke(
            main, ["run", "--profile", str(profile), *_FAST, "-o", str(out)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(out.read_text())
        self.assertEqual([s["name"] for s in data["stats"]], ["noop", "add"])

    def test_failing_case_recorded(self) -> None:
        out = self.tmp / "results.json"
        result = self.runner.invoke(
            main,
            [
                "run",
                "--case",
                "ok=bench_test_helpers:noop",
                "--case",
                "bad=bench_test_helpers:always_fails",
                *_FAST,
                "-o",
                str(out),
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        bad = json.loads(out.read_text())["stats"][1]
        self.assertTrue(bad["failed"])
        self.assertIn("intentional failure", bad["error"])

    def test_no_cases(self) -> None:
        result = self.runner.invoke(main, ["run", "-o", str(self.tmp / "r.json")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No benchmark cases", result.output)

    def test_duplicate_inline_names(self) -> None:
        result = self.runner.invoke(
            main,
            [
                "run",
                "--case",
                "x=bench_test_helpers:noop",
                "--case",
                "x=bench_test_helpers:add",
                "-o",
                str(self.tmp / "r.json"),
            ],
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Duplicate benchmark case name", result.output)
        self.assertFalse((self.tmp / "r.json").exists())

    def test_unresolvable_target(self) -> None:
        result = self.runner.invoke(
            main, ["run", "--case", "x=no_such_module_xyz:f", "-o", str(self.tmp / "r.json")]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot import module", result.output)

    def test_mistyped_profile_setting(self) -> None:
        profile = self.tmp / "bench.yaml"
        profile.write_text("min_samples: five\ncases:\n  noop: bench_test_helpers:noop\n")
        out = self.tmp / "r.json"
        result = self.runner.invoke(main, ["run", "--profile", str(profile), "-o", str(out)])
        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("min_samples: Must be an integer", result.output)
        self.assertFalse(out.exists())

    def test_invalid_settings(self) -> None:
        result = self.runner.invoke(
            main,
            [
                "run",
                "--case",
                "x=bench_test_helpers:noop",
                "--min-samples",
                "10",
                "--max-samples",
                "3",
                "-o",
                str(self.tmp / "r.json"),
            ],
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("max_samples", result.output)


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


class TestCompare(_CliTestCase):
    """Tests for perfgate compare."""

    def _write_sets(self, base_hz: float, cand_hz: float) -> tuple[Path, Path]:
        base = self.tmp / "baseline.json"
        cand = self.tmp / "candidate.json"
        save_result_set(base, make_result_set(make_hz_result("case", base_hz)))
        save_result_set(cand, make_result_set(make_hz_result("case", cand_hz)))
        return base, cand

    def test_report_to_stdout(self) -> None:
        base, cand = self._write_sets(100, 120)
        result = self.runner.invoke(main, ["compare", str(base), str(cand)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("# Performance Test Results", result.output)
        self.assertIn("\U0001f7e2 case", result.output)

    def test_regression_without_flag_exits_zero(self) -> None:
        base, cand = self._write_sets(100, 50)
        result = self.runner.invoke(main, ["compare", str(base), str(cand)])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Performance regression detected", result.output)

    def test_fail_on_regression(self) -> None:
        base, cand = self._write_sets(100, 50)
        result = self.runner.invoke(
            main, ["compare", str(base), str(cand), "--fail-on-regression"]
        )
        self.assertEqual(result.exit_code, EXIT_REGRESSION)
        self.assertEqual(EXIT_REGRESSION, 3)

    def test_fail_on_regression_clean(self) -> None:
        base, cand = self._write_sets(100, 99)
        result = self.runner.invoke(
            main, ["compare", str(base), str(cand), "--fail-on-regression"]
        )
        self.assertEqual(result.exit_code, 0, result.output)

    def test_threshold_option(self) -> None:
        base, cand = self._write_sets(100, 90)
        loose = self.runner.invoke(
            main,
            ["compare", str(base), str(cand), "--threshold", "15", "--fail-on-regression"],
        )
        self.assertEqual(loose.exit_code, 0, loose.output)
        self.assertIn("Within noise (0% to -15%): 1", loose.output)

    def test_negative_threshold(self) -> None:
        base, cand = self._write_sets(100, 100)
        result = self.runner.invoke(
            main, ["compare", str(base), str(cand), "--threshold", "-1"]
        )
        self.assertEqual(result.exit_code, 2)

    def test_platform_mismatch_logged(self) -> None:
        base = self.tmp / "baseline.json"
        cand = self.tmp / "candidate.json"
        save_result_set(base, make_result_set(make_hz_result("case", 100)))
        save_result_set(
            cand, make_result_set(make_hz_result("case", 100), platform="darwin")
        )
        result = self.runner.invoke(
            main, ["compare", str(base), str(cand), "-o", str(self.tmp / "r.md")]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(
            "WARNING  Comparing runs from different platforms: linux vs darwin",
            result.output,
        )

    def test_verbose_shows_debug(self) -> None:
        base, cand = self._write_sets(100, 100)
        quiet = self.runner.invoke(main, ["compare", str(base), str(cand)])
        self.assertNotIn("Compared 1 cases", quiet.output)
        verbose = self.runner.invoke(main, ["compare", str(base), str(cand), "-v"])
        self.assertEqual(verbose.exit_code, 0, verbose.output)
        self.assertIn("Compared 1 cases", verbose.output)

    def test_output_file(self) -> None:
        base, cand = self._write_sets(100, 100)
        report = self.tmp / "report.md"
        result = self.runner.invoke(main, ["compare", str(base), str(cand), "-o", str(report)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Report written to", result.output)
        self.assertIn("## Summary", report.read_text())

    def test_failed_candidate_case_regresses(self) -> None:
        base = self.tmp / "baseline.json"
        cand = self.tmp / "candidate.json"
        save_result_set(base, make_result_set(make_hz_result("case", 100)))
        save_result_set(cand, make_result_set(BenchmarkResult.failure("case", "Err: x")))
        result = self.runner.invoke(
            main, ["compare", str(base), str(cand), "--fail-on-regression"]
        )
        self.assertEqual(result.exit_code, EXIT_REGRESSION)
        self.assertIn("FAILED (Err: x)", result.output)

    def test_malformed_file(self) -> None:
        base, _ = self._write_sets(100, 100)
        bad = self.tmp / "bad.json"
        bad.write_text('{"timestamp": "2026-10-18T00:00:00", "platform": "linux"}')
        result = self.runner.invoke(main, ["compare", str(base), str(bad)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Malformed result file", result.output)
        self.assertIn("runtimeVersion", result.output)

    def test_non_utf8_file(self) -> None:
        bad = self.tmp / "b.json"
        bad.write_bytes(b'{"timestamp": "\xff\xfe"}')
        result = self.runner.invoke(main, ["compare", str(bad), str(bad)])
        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("Malformed result file", result.output)

    def test_missing_file(self) -> None:
        base, _ = self._write_sets(100, 100)
        result = self.runner.invoke(main, ["compare", str(base), "/nonexistent/c.json"])
        self.assertNotEqual(result.exit_code, 0)


# ---------------------------------------------------------------------------
# show / system
# ---------------------------------------------------------------------------


class TestShow(_CliTestCase):
    """Tests for perfgate show."""

    def test_show(self) -> None:
        path = self.tmp / "results.json"
        save_result_set(path, make_result_set(make_hz_result("fast", 1000)))
        result = self.runner.invoke(main, ["show", str(path)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("fast", result.output)
        self.assertIn("Cases: 1 ok, 0 failed", result.output)

    def test_show_malformed(self) -> None:
        path = self.tmp / "results.json"
        path.write_text("[]")
        result = self.runner.invoke(main, ["show", str(path)])
        self.assertEqual(result.exit_code, 1)

    def test_show_missing(self) -> None:
        result = self.runner.invoke(main, ["show", "/nonexistent/path.json"])
        self.assertNotEqual(result.exit_code, 0)


class TestSystem(_CliTestCase):
    """Tests for perfgate system."""

    def test_system(self) -> None:
        result = self.runner.invoke(main, ["system"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Runtime:", result.output)

    def test_system_json(self) -> None:
        result = self.runner.invoke(main, ["system", "--json"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertIn("runtime_version", data)
        self.assertIn("platform", data)


if __name__ == "__main__":
    unittest.main()
