"""Tests for cmdbench.bench.stats — summary statistics and outlier detection."""

from __future__ import annotations

import unittest

from cmdbench.bench.stats import _percentile, describe, detect_outliers, iqr_fences


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


class TestDescribe(unittest.TestCase):
    """Tests for describe() and DescriptiveStats."""

    def test_describe_basic(self) -> None:
        """Known-value test with a small sample."""
        stats = describe([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        self.assertEqual(stats.n, 8)
        self.assertAlmostEqual(stats.mean, 5.0)
        self.assertAlmostEqual(stats.median, 4.5)
        self.assertEqual(stats.min, 2.0)
        self.assertEqual(stats.max, 9.0)
        assert stats.stdev is not None
        self.assertAlmostEqual(stats.stdev, 2.138089935299395)

    def test_single_value_has_no_stdev(self) -> None:
        stats = describe([0.25])
        self.assertEqual(stats.n, 1)
        self.assertEqual(stats.mean, 0.25)
        self.assertEqual(stats.median, 0.25)
        self.assertIsNone(stats.stdev)

    def test_identical_values(self) -> None:
        stats = describe([0.1] * 10)
        self.assertEqual(stats.stdev, 0.0)
        self.assertLessEqual(stats.min, stats.mean)
        self.assertLessEqual(stats.mean, stats.max)

    def test_empty_raises(self) -> None:
        with self.assertRaises(ValueError):
            describe([])


class TestPercentile(unittest.TestCase):
    def test_interpolates(self) -> None:
        self.assertAlmostEqual(_percentile([1.0, 2.0, 3.0, 4.0], 0.25), 1.75)
        self.assertAlmostEqual(_percentile([1.0, 2.0, 3.0, 4.0], 0.5), 2.5)

    def test_edges(self) -> None:
        self.assertEqual(_percentile([3.0], 0.75), 3.0)
        self.assertEqual(_percentile([1.0, 5.0], 0.0), 1.0)
        self.assertEqual(_percentile([1.0, 5.0], 1.0), 5.0)


# ---------------------------------------------------------------------------
# Outlier detection
# ---------------------------------------------------------------------------


class TestDetectOutliers(unittest.TestCase):
    def test_fences(self) -> None:
        lower, upper = iqr_fences([1.0, 2.0, 3.0, 4.0, 5.0], factor=1.0)
        self.assertAlmostEqual(lower, 0.0)
        self.assertAlmostEqual(upper, 6.0)

    def test_no_outliers(self) -> None:
        values = [1.0, 1.1, 0.9, 1.05, 0.95, 1.02]
        self.assertEqual(detect_outliers(values), [False] * len(values))

    def test_extreme_value_flagged(self) -> None:
        values = [10.0, 1.0, 1.1, 0.9, 1.05, 0.95, 1.02]
        flags = detect_outliers(values)
        self.assertTrue(flags[0])
        self.assertFalse(any(flags[1:]))

    def test_too_few_values(self) -> None:
        self.assertEqual(detect_outliers([1.0, 100.0, 1.0]), [False, False, False])

    def test_factor_controls_sensitivity(self) -> None:
        values = [1.0, 1.0, 1.1, 1.1, 1.3]
        self.assertFalse(any(detect_outliers(values, factor=3.0)))
        self.assertTrue(detect_outliers(values, factor=1.0)[4])


if __name__ == "__main__":
    unittest.main()
