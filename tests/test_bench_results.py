"""Tests for cmdbench.bench.results — the BenchmarkResult record."""

from __future__ import annotations

import unittest

from bench_test_helpers import make_result

from cmdbench.bench.results import BenchmarkResult


class TestBenchmarkResult(unittest.TestCase):
    def test_runs(self) -> None:
        self.assertEqual(make_result("a", 0.1, runs=7).runs, 7)

    def test_to_dict(self) -> None:
        d = make_result("a", 0.5, 0.1).to_dict()
        expected_keys = ["command", "mean", "stddev", "median", "user", "system", "min", "max"]
        self.assertEqual(list(d), expected_keys + ["times", "exit_codes"])
        self.assertEqual(d["stddev"], 0.1)

    def test_to_dict_parameters(self) -> None:
        d = make_result("sleep 1", 1.0, parameters={"t": "1"}).to_dict()
        self.assertEqual(d["parameters"], {"t": "1"})

    def test_immutable(self) -> None:
        result = make_result("a", 0.5)
        with self.assertRaises(AttributeError):
            result.mean = 1.0  # type: ignore[misc]

    def test_absent_stddev_and_signal_exit(self) -> None:
        result = BenchmarkResult(
            command="a",
            command_with_unused_parameters="a",
            mean=0.1,
            stddev=None,
            median=0.1,
            user=0.0,
            system=0.0,
            min=0.1,
            max=0.1,
            times=[0.1],
            exit_codes=[None],
        )
        d = result.to_dict()
        self.assertIsNone(d["stddev"])
        self.assertEqual(d["exit_codes"], [None])


if __name__ == "__main__":
    unittest.main()
