"""Tests for cmdbench.command — commands and parameter expansion."""

from __future__ import annotations

import unittest

from cmdbench.command import (
    Command,
    build_commands,
    commands_from_profile,
    parameter_combinations,
    parameter_scan_values,
    profile_parameter_lists,
)


class TestCommand(unittest.TestCase):
    def test_plain(self) -> None:
        cmd = Command("sleep 1")
        self.assertEqual(cmd.get_command(), "sleep 1")
        self.assertEqual(cmd.get_name(), "sleep 1")
        self.assertEqual(cmd.get_name_with_unused_parameters(), "sleep 1")
        self.assertEqual(cmd.parameter_dict(), {})

    def test_substitution(self) -> None:
        cmd = Command("make -j {n} {target}", parameters=(("n", "4"), ("target", "all")))
        self.assertEqual(cmd.get_command(), "make -j 4 all")
        self.assertEqual(cmd.get_name_with_unused_parameters(), "make -j 4 all")

    def test_explicit_name_is_substituted(self) -> None:
        cmd = Command("make -j {n}", name="make n={n}", parameters=(("n", "2"),))
        self.assertEqual(cmd.get_name(), "make n=2")
        self.assertEqual(cmd.get_command(), "make -j 2")

    def test_unused_parameters(self) -> None:
        cmd = Command("sleep {t}", parameters=(("t", "1"), ("a", "x"), ("b", "y")))
        self.assertEqual(cmd.get_name_with_unused_parameters(), "sleep 1 (a = x, b = y)")


class TestParameterScan(unittest.TestCase):
    def test_integers(self) -> None:
        self.assertEqual(parameter_scan_values("1", "4"), ["1", "2", "3", "4"])

    def test_single_value(self) -> None:
        self.assertEqual(parameter_scan_values("3", "3"), ["3"])

    def test_decimal_step(self) -> None:
        self.assertEqual(
            parameter_scan_values("0", "1", "0.25"),
            ["0", "0.25", "0.5", "0.75", "1"],
        )

    def test_step_not_hitting_maximum(self) -> None:
        self.assertEqual(parameter_scan_values("0", "10", "4"), ["0", "4", "8"])

    def test_decimal_bounds_need_step(self) -> None:
        with self.assertRaises(ValueError):
            parameter_scan_values("0.5", "2")

    def test_invalid(self) -> None:
        with self.assertRaises(ValueError):
            parameter_scan_values("a", "2")
        with self.assertRaises(ValueError):
            parameter_scan_values("5", "2")
        with self.assertRaises(ValueError):
            parameter_scan_values("1", "2", "0")


class TestParameterCombinations(unittest.TestCase):
    def test_first_list_varies_slowest(self) -> None:
        combos = parameter_combinations([("a", ["1", "2"]), ("b", ["x", "y"])])
        self.assertEqual(
            combos,
            [
                (("a", "1"), ("b", "x")),
                (("a", "1"), ("b", "y")),
                (("a", "2"), ("b", "x")),
                (("a", "2"), ("b", "y")),
            ],
        )

    def test_duplicate_names(self) -> None:
        with self.assertRaises(ValueError):
            parameter_combinations([("a", ["1"]), ("a", ["2"])])

    def test_empty_values(self) -> None:
        with self.assertRaises(ValueError):
            parameter_combinations([("a", [])])


class TestBuildCommands(unittest.TestCase):
    def test_plain_commands(self) -> None:
        commands = build_commands(["a", "b"], names=["first"])
        self.assertEqual([c.get_name() for c in commands], ["first", "b"])

    def test_scan_grouped_by_expression(self) -> None:
        commands = build_commands(["x {n}", "y {n}"], parameter_scan=("n", "1", "2"))
        self.assertEqual([c.get_command() for c in commands], ["x 1", "x 2", "y 1", "y 2"])

    def test_scan_with_step(self) -> None:
        commands = build_commands(["sleep {t}"], parameter_scan=("t", "0", "0.2"), step_size="0.1")
        self.assertEqual(
            [c.get_command() for c in commands], ["sleep 0", "sleep 0.1", "sleep 0.2"]
        )

    def test_lists(self) -> None:
        commands = build_commands(
            ["{compiler} -O{opt}"],
            parameter_lists=[("compiler", "gcc,clang"), ("opt", "1,2")],
        )
        self.assertEqual(
            [c.get_command() for c in commands],
            ["gcc -O1", "gcc -O2", "clang -O1", "clang -O2"],
        )

    def test_errors(self) -> None:
        with self.assertRaises(ValueError):
            build_commands([])
        with self.assertRaises(ValueError):
            build_commands(["a"], names=["x", "y"])
        with self.assertRaises(ValueError):
            build_commands(["a"], parameter_scan=("n", "1", "2"), parameter_lists=[("m", "1")])
        with self.assertRaises(ValueError):
            build_commands(["a"], step_size="2")


class TestProfileCommands(unittest.TestCase):
    def test_strings_and_mappings(self) -> None:
        exprs, names = commands_from_profile(
            {"commands": [{"command": "grep foo", "name": "grep"}, "sleep 1"]}
        )
        self.assertEqual(exprs, ["grep foo", "sleep 1"])
        self.assertEqual(names, ["grep"])

    def test_names_only_for_named_prefix(self) -> None:
        _, names = commands_from_profile(
            {"commands": ["a", {"command": "b", "name": "bee"}]}
        )
        self.assertEqual(names, [])

    def test_invalid(self) -> None:
        with self.assertRaises(ValueError):
            commands_from_profile({"commands": "sleep 1"})
        with self.assertRaises(ValueError):
            commands_from_profile({"commands": [42]})

    def test_parameters(self) -> None:
        pairs = profile_parameter_lists({"parameters": {"threads": [1, 2, 4], "mode": "fast"}})
        self.assertEqual(pairs, [("threads", "1,2,4"), ("mode", "fast")])
        self.assertEqual(profile_parameter_lists({}), [])


if __name__ == "__main__":
    unittest.main()
