"""Tests for perfgate.bench.stats — summary statistics for benchmark samples.

Every statistic is checked against hand-computed values.
"""

from __future__ import annotations

import math
import unittest

from perfgate.bench.stats import EmptyInputError, Stats, compute_stats


class TestComputeStatsKnownValues(unittest.TestCase):
    """Known-value tests."""

    def test_all_ones(self) -> None:
        stats = compute_stats([1.0, 1.0, 1.0, 1.0, 1.0])
        self.assertEqual(stats.count, 5)
        self.assertEqual(stats.mean, 1.0)
        self.assertEqual(stats.variance, 0.0)
        self.assertEqual(stats.hz, 1.0)

    def test_one_two_three(self) -> None:
        """[1,2,3]: sample variance uses n-1."""
        stats = compute_stats([1.0, 2.0, 3.0])
        self.assertEqual(stats.count, 3)
        self.assertAlmostEqual(stats.mean, 2.0, places=12)
        self.assertAlmostEqual(stats.variance, 1.0, places=12)
        self.assertAlmostEqual(stats.stddev, 1.0, places=12)
        self.assertAlmostEqual(stats.sem, 1 / math.sqrt(3), places=12)
        self.assertAlmostEqual(stats.sem, 0.577, places=3)
        self.assertAlmostEqual(stats.rme, 100 / (2 * math.sqrt(3)), places=10)
        self.assertAlmostEqual(stats.rme, 28.87, places=2)
        self.assertAlmostEqual(stats.hz, 0.5, places=12)

    def test_integer_input_gives_floats(self) -> None:
        stats = compute_stats([1, 2, 3])
        self.assertIsInstance(stats.mean, float)
        self.assertIsInstance(stats.variance, float)

    def test_two_values(self) -> None:
        stats = compute_stats([1.0, 3.0])
        self.assertAlmostEqual(stats.mean, 2.0)
        self.assertAlmostEqual(stats.variance, 2.0)
        self.assertAlmostEqual(stats.stddev, math.sqrt(2.0))
        self.assertAlmostEqual(stats.sem, 1.0)
        self.assertAlmostEqual(stats.rme, 50.0)


class TestComputeStatsIdentical(unittest.TestCase):
    """Identical samples have exactly zero spread."""

    def test_identical_values_zero_spread(self) -> None:
        for v in (0.1, 0.003, 1e-7, 2.5, 123.456):
            for n in (2, 3, 7, 50):
                with self.subTest(v=v, n=n):
                    stats = compute_stats([v] * n)
                    self.assertEqual(stats.variance, 0.0)
                    self.assertEqual(stats.stddev, 0.0)
                    self.assertEqual(stats.rme, 0.0)
                    self.assertEqual(stats.mean, v)
                    self.assertEqual(stats.hz, 1 / v)


class TestComputeStatsEdgeCases(unittest.TestCase):
    """Degenerate inputs."""

    def test_empty_raises(self) -> None:
        with self.assertRaises(EmptyInputError):
            compute_stats([])

    def test_empty_error_is_value_error(self) -> None:
        self.assertTrue(issubclass(EmptyInputError, ValueError))

    def test_single_sample(self) -> None:
        """One sample: variance and RME collapse to 0, not NaN."""
        stats = compute_stats([0.25])
        self.assertEqual(stats.count, 1)
        self.assertEqual(stats.mean, 0.25)
        self.assertEqual(stats.variance, 0.0)
        self.assertEqual(stats.stddev, 0.0)
        self.assertEqual(stats.sem, 0.0)
        self.assertEqual(stats.rme, 0.0)
        self.assertEqual(stats.hz, 4.0)

    def test_zero_duration(self) -> None:
        """Zero mean: hz and rme are 0 rather than a division error."""
        stats = compute_stats([0.0, 0.0, 0.0])
        self.assertEqual(stats.mean, 0.0)
        self.assertEqual(stats.hz, 0.0)
        self.assertEqual(stats.rme, 0.0)

    def test_negative_sample_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compute_stats([0.1, -0.1])

    def test_deterministic(self) -> None:
        samples = [0.011, 0.012, 0.0105, 0.013, 0.0119]
        self.assertEqual(compute_stats(samples), compute_stats(list(samples)))

    def test_tuple_input(self) -> None:
        stats = compute_stats((0.5, 0.5))
        self.assertEqual(stats.hz, 2.0)


class TestStatsDataclass(unittest.TestCase):
    """Tests for the Stats dataclass."""

    def test_zero(self) -> None:
        z = Stats.zero()
        self.assertEqual(z.count, 0)
        self.assertEqual(z.hz, 0.0)
        self.assertEqual(z.rme, 0.0)

    def test_frozen(self) -> None:
        stats = compute_stats([1.0])
        with self.assertRaises(AttributeError):
            stats.mean = 2.0  # type: ignore[misc]

    def test_mean_non_negative(self) -> None:
        stats = compute_stats([0.0, 0.001, 0.002])
        self.assertGreaterEqual(stats.mean, 0.0)


if __name__ == "__main__":
    unittest.main()
