"""Shared text formatting helpers for cmdbench.

Formats durations with an explicit or automatically chosen time unit,
as used by the terminal summaries and the markup exporters.
"""

from __future__ import annotations

from cmdbench.options import TimeUnit


def pick_unit(seconds: float) -> TimeUnit:
    """Milliseconds for sub-second values, seconds otherwise."""
    return TimeUnit.MILLISECOND if seconds < 1.0 else TimeUnit.SECOND


def format_duration_value(
    seconds: float,
    unit: TimeUnit | None = None,
) -> tuple[str, TimeUnit]:
    """Format *seconds* as a bare number in *unit*.

    Seconds get three decimals, milliseconds one, so both show
    millisecond resolution.

    Returns:
        The formatted number and the unit that was used.
    """
    unit = unit or pick_unit(seconds)
    if unit is TimeUnit.SECOND:
        return f"{seconds:.3f}", unit
    return f"{seconds * unit.factor:.1f}", unit


def format_duration(seconds: float, unit: TimeUnit | None = None) -> str:
    """Format *seconds* with its unit suffix, e.g. ``'105.7 ms'``."""
    value, unit = format_duration_value(seconds, unit)
    return f"{value} {unit.short_name}"
