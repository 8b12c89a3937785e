"""Tests for cmdbench.bench.relative_speed — comparison against the fastest result."""

from __future__ import annotations

import math
import unittest

from bench_test_helpers import make_result

from cmdbench.bench.relative_speed import compute_with_check, fastest_index
from cmdbench.options import SortOrder


class TestFastestIndex(unittest.TestCase):
    def test_minimum_mean(self) -> None:
        results = [make_result("a", 3.0), make_result("b", 1.0), make_result("c", 2.0)]
        self.assertEqual(fastest_index(results), 1)

    def test_tie_picks_first_declared(self) -> None:
        results = [make_result("a", 2.0), make_result("b", 1.0), make_result("c", 1.0)]
        self.assertEqual(fastest_index(results), 1)

    def test_empty_raises(self) -> None:
        with self.assertRaises(ValueError):
            fastest_index([])


class TestComputeWithCheck(unittest.TestCase):
    def test_two_commands_with_uncertainty(self) -> None:
        results = [make_result("first", 1.0, 2.0), make_result("second", 11.0, 12.0)]
        annotated = compute_with_check(results, SortOrder.COMMAND)
        assert annotated is not None

        self.assertTrue(annotated[0].is_fastest)
        self.assertEqual(annotated[0].relative_speed, 1.0)
        self.assertIsNone(annotated[0].relative_speed_stddev)

        self.assertFalse(annotated[1].is_fastest)
        self.assertAlmostEqual(annotated[1].relative_speed, 11.0)
        expected = 11.0 * math.sqrt((12.0 / 11.0) ** 2 + (2.0 / 1.0) ** 2)
        assert annotated[1].relative_speed_stddev is not None
        self.assertAlmostEqual(annotated[1].relative_speed_stddev, expected)
        self.assertEqual(f"{annotated[1].relative_speed_stddev:.2f}", "25.06")

    def test_zero_fastest_mean_is_undefined(self) -> None:
        results = [make_result("a", 0.0, 0.0), make_result("b", 0.5, 0.1)]
        self.assertIsNone(compute_with_check(results, SortOrder.MEAN_TIME))
        self.assertIsNone(compute_with_check(results, SortOrder.COMMAND))

    def test_empty_input(self) -> None:
        self.assertEqual(compute_with_check([], SortOrder.COMMAND), [])

    def test_single_result(self) -> None:
        annotated = compute_with_check([make_result("a", 0.3, 0.01)], SortOrder.COMMAND)
        assert annotated is not None
        self.assertEqual(len(annotated), 1)
        self.assertTrue(annotated[0].is_fastest)
        self.assertEqual(annotated[0].relative_speed, 1.0)

    def test_ratios_at_least_one_and_single_fastest(self) -> None:
        results = [
            make_result("a", 0.4, 0.01),
            make_result("b", 0.1, 0.01),
            make_result("c", 0.25, 0.02),
            make_result("d", 0.1, 0.03),
        ]
        annotated = compute_with_check(results, SortOrder.COMMAND)
        assert annotated is not None
        self.assertTrue(all(a.relative_speed >= 1.0 for a in annotated))
        fastest = [a for a in annotated if a.is_fastest]
        self.assertEqual(len(fastest), 1)
        self.assertEqual(fastest[0].result.command, "b")
        # An exact tie with the fastest is reported as 1.0 but not fastest.
        self.assertEqual(annotated[3].relative_speed, 1.0)
        self.assertFalse(annotated[3].is_fastest)

    def test_missing_stddev_gives_missing_ratio_stddev(self) -> None:
        results = [make_result("a", 1.0, None), make_result("b", 2.0, 0.1)]
        annotated = compute_with_check(results, SortOrder.COMMAND)
        assert annotated is not None
        self.assertIsNone(annotated[1].relative_speed_stddev)

        results = [make_result("a", 1.0, 0.1), make_result("b", 2.0, None)]
        annotated = compute_with_check(results, SortOrder.COMMAND)
        assert annotated is not None
        self.assertIsNone(annotated[1].relative_speed_stddev)

    def test_ratio_stddev_grows_with_either_stddev(self) -> None:
        def ratio_stddev(fast_sd: float, slow_sd: float) -> float:
            annotated = compute_with_check(
                [make_result("a", 1.0, fast_sd), make_result("b", 3.0, slow_sd)],
                SortOrder.COMMAND,
            )
            assert annotated is not None
            value = annotated[1].relative_speed_stddev
            assert value is not None
            return value

        self.assertLess(ratio_stddev(0.1, 0.1), ratio_stddev(0.2, 0.1))
        self.assertLess(ratio_stddev(0.1, 0.1), ratio_stddev(0.1, 0.2))
        self.assertEqual(ratio_stddev(0.0, 0.0), 0.0)

    def test_command_order_preserved(self) -> None:
        results = [make_result("slow", 3.0), make_result("fast", 1.0), make_result("mid", 2.0)]
        annotated = compute_with_check(results, SortOrder.COMMAND)
        assert annotated is not None
        self.assertEqual([a.result.command for a in annotated], ["slow", "fast", "mid"])

    def test_mean_time_order_is_stable(self) -> None:
        results = [
            make_result("slow", 3.0),
            make_result("tie1", 2.0),
            make_result("fast", 1.0),
            make_result("tie2", 2.0),
        ]
        annotated = compute_with_check(results, SortOrder.MEAN_TIME)
        assert annotated is not None
        self.assertEqual(
            [a.result.command for a in annotated],
            ["fast", "tie1", "tie2", "slow"],
        )
        self.assertTrue(annotated[0].is_fastest)


if __name__ == "__main__":
    unittest.main()
