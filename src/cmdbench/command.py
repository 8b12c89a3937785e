"""Benchmark commands and parameter expansion.

A command expression may contain ``{name}`` placeholders.  Parameter
scans (``--parameter-scan``) and lists (``--parameter-list``) expand
each expression into one ``Command`` per parameter combination.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Sequence

from cmdbench.logging import get_logger

log = get_logger("command")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Command:
    """One benchmarked command with its bound parameters."""

    expression: str
    name: str | None = None
    parameters: tuple[tuple[str, str], ...] = ()

    def _substitute(self, text: str) -> str:
        for param, value in self.parameters:
            text = text.replace(f"{{{param}}}", value)
        return text

    def get_command(self) -> str:
        """The command line as executed, parameters substituted."""
        return self._substitute(self.expression)

    def get_name(self) -> str:
        """The display name: the explicit name if any, else the command."""
        if self.name is not None:
            return self._substitute(self.name)
        return self.get_command()

    def get_name_with_unused_parameters(self) -> str:
        """The display name, annotated with bindings the expression does not use.

        Used to tell apart results of a parameter scan whose command text
        does not mention the scanned parameter.
        """
        unused = [
            f"{param} = {value}"
            for param, value in self.parameters
            if f"{{{param}}}" not in self.expression
        ]
        if not unused:
            return self.get_name()
        return f"{self.get_name()} ({', '.join(unused)})"

    def parameter_dict(self) -> dict[str, str]:
        return dict(self.parameters)


# ---------------------------------------------------------------------------
# Parameter expansion
# ---------------------------------------------------------------------------


def _format_decimal(value: Decimal) -> str:
    """Render a scan value without exponent or trailing zeros."""
    text = format(value.normalize(), "f")
    return "0" if text == "-0" else text


def parameter_scan_values(
    minimum: str,
    maximum: str,
    step_size: str | None = None,
) -> list[str]:
    """Inclusive numeric range from *minimum* to *maximum*.

    Without a step size both bounds must be integers and the step is 1.

    Raises:
        ValueError: On unparsable bounds, a non-positive step, or
            ``minimum > maximum``.
    """
    try:
        lo = Decimal(minimum)
        hi = Decimal(maximum)
        step = Decimal(step_size) if step_size is not None else Decimal(1)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric parameter scan: {minimum!r}..{maximum!r}") from exc

    if step_size is None and (lo != lo.to_integral_value() or hi != hi.to_integral_value()):
        raise ValueError(
            "Parameter scan bounds must be integers unless --parameter-step-size is given."
        )
    if step <= 0:
        raise ValueError(f"Parameter step size must be positive (got {step_size}).")
    if lo > hi:
        raise ValueError(
            f"Parameter scan minimum ({minimum}) is greater than maximum ({maximum})."
        )

    values: list[str] = []
    current = lo
    while current <= hi:
        values.append(_format_decimal(current))
        current += step
    return values


def parameter_combinations(
    parameters: Sequence[tuple[str, Sequence[str]]],
) -> list[tuple[tuple[str, str], ...]]:
    """Cartesian product of named value lists, first list varying slowest.

    Raises:
        ValueError: If a parameter name repeats or a list is empty.
    """
    names = [name for name, _ in parameters]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate parameter names: {', '.join(duplicates)}")
    for name, values in parameters:
        if not values:
            raise ValueError(f"Parameter '{name}' has no values.")

    return [
        tuple(zip(names, combo))
        for combo in itertools.product(*(values for _, values in parameters))
    ]


def build_commands(
    expressions: Sequence[str],
    *,
    names: Sequence[str] = (),
    parameter_scan: tuple[str, str, str] | None = None,
    step_size: str | None = None,
    parameter_lists: Sequence[tuple[str, str]] = (),
) -> list[Command]:
    """Expand command expressions into the ordered list of commands to run.

    Args:
        expressions: Command expressions as given by the user.
        names: Optional display names, matched to expressions in order.
        parameter_scan: ``(name, min, max)`` for a numeric scan.
        step_size: Step for the numeric scan.
        parameter_lists: ``(name, "v1,v2,...")`` pairs.

    Returns:
        Commands grouped by expression, then by parameter combination.

    Raises:
        ValueError: On conflicting or malformed parameter options.
    """
    if not expressions:
        raise ValueError("At least one command is required.")
    if len(names) > len(expressions):
        raise ValueError(
            f"Got {len(names)} command names for {len(expressions)} commands. "
            "Give at most one name per command."
        )
    if parameter_scan is not None and parameter_lists:
        raise ValueError("--parameter-scan and --parameter-list cannot be combined.")
    if step_size is not None and parameter_scan is None:
        raise ValueError("--parameter-step-size requires --parameter-scan.")

    if parameter_scan is not None:
        scan_name, lo, hi = parameter_scan
        space = parameter_combinations([(scan_name, parameter_scan_values(lo, hi, step_size))])
    elif parameter_lists:
        space = parameter_combinations(
            [(name, values.split(",")) for name, values in parameter_lists]
        )
    else:
        space = [()]

    commands: list[Command] = []
    for index, expression in enumerate(expressions):
        name = names[index] if index < len(names) else None
        for bindings in space:
            commands.append(Command(expression=expression, name=name, parameters=bindings))

    log.debug("Expanded %d expressions into %d commands", len(expressions), len(commands))
    return commands


def commands_from_profile(profile_data: dict[str, object]) -> tuple[list[str], list[str]]:
    """Extract command expressions and names from a parsed profile.

    Entries are either plain strings or ``{command, name}`` mappings.
    Names are only returned while every preceding entry also has one,
    since names are matched to commands positionally.

    Raises:
        ValueError: If ``commands`` is not a list of strings or mappings.
    """
    entries = profile_data.get("commands") or []
    if not isinstance(entries, list):
        raise ValueError("Profile 'commands' must be a list.")

    expressions: list[str] = []
    names: list[str] = []
    named_prefix = True
    for entry in entries:
        if isinstance(entry, str):
            expressions.append(entry)
            named_prefix = False
        elif isinstance(entry, dict) and "command" in entry:
            expressions.append(str(entry["command"]))
            if entry.get("name") is not None and named_prefix:
                names.append(str(entry["name"]))
            else:
                named_prefix = False
        else:
            raise ValueError(f"Invalid profile command entry: {entry!r}")
    return expressions, names


def profile_parameter_lists(profile_data: dict[str, object]) -> list[tuple[str, str]]:
    """Turn a profile's ``parameters`` mapping into ``--parameter-list`` pairs."""
    params = profile_data.get("parameters") or {}
    if not isinstance(params, dict):
        raise ValueError("Profile 'parameters' must be a mapping of name -> list of values.")
    pairs: list[tuple[str, str]] = []
    for name, values in params.items():
        if isinstance(values, (list, tuple)):
            pairs.append((str(name), ",".join(str(v) for v in values)))
        else:
            pairs.append((str(name), str(values)))
    return pairs
