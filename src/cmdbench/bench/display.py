"""Terminal display formatting for benchmark results.

Produces the per-benchmark timing block and the relative speed
summaries.  Colors are applied with ``click.style`` only when the
output style asks for them; padding is done before styling so that
escape codes never break the alignment.
"""

from __future__ import annotations

from typing import Any, Sequence

import click

from cmdbench.bench.relative_speed import AnnotatedResult
from cmdbench.bench.results import BenchmarkResult
from cmdbench.formatting import format_duration_value, pick_unit
from cmdbench.options import TimeUnit

ZERO_MEAN_NOTE = (
    "The benchmark comparison could not be computed as some benchmark times are zero. "
    "This could be caused by background interference during the initial calibration "
    "phase, in combination with very fast commands (faster than a few milliseconds). "
    "Try to re-run the benchmark on a quiet system. If you did not do so already, try "
    "the --shell=none/-N option. If it does not help either, your command is most "
    "likely too fast to be accurately benchmarked."
)


def _style(text: str, use_color: bool, **styles: Any) -> str:
    return click.style(text, **styles) if use_color else text


# ---------------------------------------------------------------------------
# Single benchmark display
# ---------------------------------------------------------------------------


def format_benchmark_header(number: int, name: str, *, use_color: bool = False) -> str:
    """``Benchmark 1: <name>`` with a 1-based number."""
    return f"{_style(f'Benchmark {number + 1}', use_color, bold=True)}: {name}"


def format_benchmark_summary(
    result: BenchmarkResult,
    *,
    unit: TimeUnit | None = None,
    use_color: bool = False,
) -> str:
    """Format the timing block printed after a benchmark finishes.

    All values share one unit, chosen from the mean unless given.
    """
    unit = unit or pick_unit(result.mean)

    def value(seconds: float) -> str:
        return f"{format_duration_value(seconds, unit)[0]} {unit.short_name}"

    user = _style(value(result.user), use_color, fg="blue")
    system = _style(value(result.system), use_color, fg="blue")
    mean = _style(f"{value(result.mean):>10}", use_color, fg="green", bold=True)

    lines: list[str] = []
    if result.stddev is None:
        label = _style("abs", use_color, fg="green", bold=True)
        lines.append(
            f"  Time ({label} ≡):        {mean}              "
            f"[User: {user}, System: {system}]"
        )
    else:
        label = (
            f"{_style('mean', use_color, fg='green', bold=True)} ± "
            f"{_style('σ', use_color, fg='green')}"
        )
        stddev = _style(f"{value(result.stddev):>10}", use_color, fg="green")
        lines.append(
            f"  Time ({label}):     {mean} ± {stddev}    "
            f"[User: {user}, System: {system}]"
        )
        range_label = (
            f"{_style('min', use_color, fg='cyan')} … {_style('max', use_color, fg='magenta')}"
        )
        lines.append(
            f"  Range ({range_label}):   "
            f"{_style(f'{value(result.min):>10}', use_color, fg='cyan')} … "
            f"{_style(f'{value(result.max):>10}', use_color, fg='magenta')}    "
            f"{_style(f'{result.runs} runs', use_color, dim=True)}"
        )

    for warning in result.warnings:
        lines.append("")
        lines.append(f"  {_style('Warning', use_color, fg='yellow')}: {warning}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Relative speed display
# ---------------------------------------------------------------------------


def format_relative_speed_summary(
    annotated: Sequence[AnnotatedResult],
    *,
    use_color: bool = False,
) -> str:
    """Format the "Summary" block: the fastest command against each other one."""
    fastest = next(a for a in annotated if a.is_fastest)
    lines = [
        _style("Summary", use_color, bold=True),
        f"  {_style(fastest.result.command_with_unused_parameters, use_color, fg='cyan')} ran",
    ]
    for item in annotated:
        if item.is_fastest:
            continue
        ratio = _style(f"{item.relative_speed:8.2f}", use_color, fg="green", bold=True)
        uncertainty = ""
        if item.relative_speed_stddev is not None:
            stddev = _style(f"{item.relative_speed_stddev:.2f}", use_color, fg="green")
            uncertainty = f" ± {stddev}"
        other = _style(item.result.command_with_unused_parameters, use_color, fg="magenta")
        lines.append(f"{ratio}{uncertainty} times faster than {other}")
    return "\n".join(lines)


def format_relative_speed_table(
    annotated: Sequence[AnnotatedResult],
    *,
    use_color: bool = False,
) -> str:
    """Format the ranked "Relative speed comparison" table."""
    lines = [_style("Relative speed comparison", use_color, bold=True)]
    for item in annotated:
        ratio = _style(f"{item.relative_speed:10.2f}", use_color, fg="green", bold=True)
        if item.is_fastest or item.relative_speed_stddev is None:
            uncertainty = " " * 8
        else:
            stddev = _style(f"{item.relative_speed_stddev:5.2f}", use_color, fg="green")
            uncertainty = f" ± {stddev}"
        lines.append(f"  {ratio}{uncertainty}  {item.result.command_with_unused_parameters}")
    return "\n".join(lines)
