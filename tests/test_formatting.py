"""Tests for cmdbench.formatting — time-unit aware number formatting."""

from __future__ import annotations

import unittest

from cmdbench.formatting import format_duration, format_duration_value, pick_unit
from cmdbench.options import TimeUnit


class TestPickUnit(unittest.TestCase):
    def test_sub_second_is_milliseconds(self) -> None:
        self.assertIs(pick_unit(0.0), TimeUnit.MILLISECOND)
        self.assertIs(pick_unit(0.999), TimeUnit.MILLISECOND)

    def test_seconds(self) -> None:
        self.assertIs(pick_unit(1.0), TimeUnit.SECOND)
        self.assertIs(pick_unit(42.0), TimeUnit.SECOND)


class TestFormatDuration(unittest.TestCase):
    def test_auto_unit(self) -> None:
        self.assertEqual(format_duration(0.1057), "105.7 ms")
        self.assertEqual(format_duration(2.5), "2.500 s")

    def test_explicit_unit(self) -> None:
        self.assertEqual(format_duration(2.5, TimeUnit.MILLISECOND), "2500.0 ms")
        self.assertEqual(format_duration(0.0123, TimeUnit.SECOND), "0.012 s")

    def test_value_and_unit(self) -> None:
        self.assertEqual(format_duration_value(0.005), ("5.0", TimeUnit.MILLISECOND))
        self.assertEqual(format_duration_value(1.0), ("1.000", TimeUnit.SECOND))


if __name__ == "__main__":
    unittest.main()
