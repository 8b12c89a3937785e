"""Export benchmark results to JSON, CSV, Markdown and AsciiDoc.

JSON and CSV carry the raw numbers in command order.  The markup
formats render a summary table (mean ± σ, min, max, relative speed)
ordered by the export sort order.

``ExportManager.write_results`` is called after every benchmark with
the growing list of results, and once more at the end.  File targets
are replaced completely on every call, so a file always holds a
consistent table of every result finished so far.  The stdout target
is only written at the end.
"""

from __future__ import annotations

import csv
import enum
import io
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import click

from cmdbench.bench.relative_speed import AnnotatedResult, compute_with_check
from cmdbench.bench.results import BenchmarkResult
from cmdbench.formatting import format_duration_value, pick_unit
from cmdbench.logging import get_logger
from cmdbench.options import SortOrder, TimeUnit

log = get_logger("export")

STDOUT_TARGET = "-"


class ExportFormat(enum.Enum):
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"
    ASCIIDOC = "asciidoc"


class ExportError(OSError):
    """Writing an export target failed."""


# ---------------------------------------------------------------------------
# JSON / CSV export
# ---------------------------------------------------------------------------


def export_json(results: Sequence[BenchmarkResult]) -> str:
    """Export results as ``{"results": [...]}``, one object per command."""
    return json.dumps({"results": [r.to_dict() for r in results]}, indent=2) + "\n"


def export_csv(results: Sequence[BenchmarkResult]) -> str:
    """Export results as CSV, one row per command.

    Columns:
        command, mean, stddev, median, user, system, min, max, then
        one ``parameter_<name>`` column per parameter of the first result.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    param_names = list(results[0].parameters) if results else []
    writer.writerow(
        ["command", "mean", "stddev", "median", "user", "system", "min", "max"]
        + [f"parameter_{name}" for name in param_names]
    )

    for r in results:
        writer.writerow(
            [
                r.command,
                r.mean,
                "" if r.stddev is None else r.stddev,
                r.median,
                r.user,
                r.system,
                r.min,
                r.max,
            ]
            + [r.parameters.get(name, "") for name in param_names]
        )

    return output.getvalue()


# ---------------------------------------------------------------------------
# Markup export
# ---------------------------------------------------------------------------


def _annotate(
    results: Sequence[BenchmarkResult],
    sort_order: SortOrder,
) -> list[tuple[BenchmarkResult, str]]:
    """Pair each result with its formatted relative speed, in table order.

    When the comparison is undefined (zero fastest mean) the relative
    column reads ``n/a`` rather than an infinite ratio.
    """
    annotated: list[AnnotatedResult] | None = compute_with_check(results, sort_order)
    if annotated is None:
        ordered = list(results)
        if sort_order is SortOrder.MEAN_TIME:
            ordered.sort(key=lambda r: r.mean)
        return [(r, "n/a") for r in ordered]

    rows: list[tuple[BenchmarkResult, str]] = []
    for a in annotated:
        relative = f"{a.relative_speed:.2f}"
        if a.relative_speed_stddev is not None:
            relative += f" ± {a.relative_speed_stddev:.2f}"
        rows.append((a.result, relative))
    return rows


def _table_cells(
    results: Sequence[BenchmarkResult],
    unit: TimeUnit | None,
    sort_order: SortOrder,
    quote_command: str,
) -> tuple[list[str], list[list[str]]]:
    """Header and row cells shared by the markup formats."""
    if unit is None:
        unit = pick_unit(results[0].mean) if results else TimeUnit.SECOND
    short = unit.short_name

    def fmt(seconds: float) -> str:
        return format_duration_value(seconds, unit)[0]

    header = ["Command", f"Mean [{short}]", f"Min [{short}]", f"Max [{short}]", "Relative"]
    rows: list[list[str]] = []
    for r, relative in _annotate(results, sort_order):
        mean = fmt(r.mean)
        if r.stddev is not None:
            mean += f" ± {fmt(r.stddev)}"
        command = quote_command.format(r.command_with_unused_parameters.replace("|", "\\|"))
        rows.append([command, mean, fmt(r.min), fmt(r.max), relative])
    return header, rows


def export_markdown(
    results: Sequence[BenchmarkResult],
    *,
    unit: TimeUnit | None = None,
    sort_order: SortOrder = SortOrder.COMMAND,
) -> str:
    """Export results as a Markdown table."""
    header, rows = _table_cells(results, unit, sort_order, "`{}`")
    lines = [f"| {' | '.join(header)} |", "|:---|---:|---:|---:|---:|"]
    lines.extend(f"| {' | '.join(row)} |" for row in rows)
    return "\n".join(lines) + "\n"


def export_asciidoc(
    results: Sequence[BenchmarkResult],
    *,
    unit: TimeUnit | None = None,
    sort_order: SortOrder = SortOrder.COMMAND,
) -> str:
    """Export results as an AsciiDoc table.

    Every cell sits on its own ``| cell`` line and rows are separated
    by blank lines.
    """
    header, rows = _table_cells(results, unit, sort_order, "`{}`")

    def row(cells: list[str]) -> str:
        return "\n| " + " \n| ".join(cells) + " \n"

    parts = ['[cols="<,>,>,>,>"]\n|===', row(header)]
    parts.extend(row(cells) for cells in rows)
    parts.append("|===\n")
    return "".join(parts)


def serialize(
    fmt: ExportFormat,
    results: Sequence[BenchmarkResult],
    *,
    unit: TimeUnit | None = None,
    sort_order: SortOrder = SortOrder.COMMAND,
) -> str:
    if fmt is ExportFormat.JSON:
        return export_json(results)
    if fmt is ExportFormat.CSV:
        return export_csv(results)
    if fmt is ExportFormat.MARKDOWN:
        return export_markdown(results, unit=unit, sort_order=sort_order)
    return export_asciidoc(results, unit=unit, sort_order=sort_order)


# ---------------------------------------------------------------------------
# Export manager
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExportTarget:
    fmt: ExportFormat
    path: str  # "-" for stdout


class ExportManager:
    """Writes the accumulated results to every configured target."""

    def __init__(
        self,
        targets: Sequence[ExportTarget] = (),
        *,
        time_unit: TimeUnit | None = None,
    ) -> None:
        self.targets = list(targets)
        self.time_unit = time_unit

    def add_target(self, fmt: ExportFormat, path: str) -> None:
        self.targets.append(ExportTarget(fmt, path))

    def write_results(
        self,
        results: Sequence[BenchmarkResult],
        sort_order: SortOrder,
        is_partial: bool,
    ) -> None:
        """Export *results* to all targets.

        Safe to call repeatedly with a growing prefix of the same list.

        Args:
            results: Every result finished so far, in command order.
            sort_order: Row order for the markup tables.
            is_partial: True for the writes after each benchmark, False
                for the final write.

        Raises:
            ExportError: If a file target cannot be written.
        """
        for target in self.targets:
            if target.path == STDOUT_TARGET:
                if not is_partial:
                    click.echo(self._serialize(target, results, sort_order), nl=False)
                continue
            self._write_file(Path(target.path), self._serialize(target, results, sort_order))
            log.debug(
                "Wrote %d results to %s (%s%s)",
                len(results),
                target.path,
                target.fmt.value,
                ", partial" if is_partial else "",
            )

    def _serialize(
        self,
        target: ExportTarget,
        results: Sequence[BenchmarkResult],
        sort_order: SortOrder,
    ) -> str:
        return serialize(target.fmt, results, unit=self.time_unit, sort_order=sort_order)

    @staticmethod
    def _write_file(path: Path, content: str) -> None:
        """Replace *path* atomically so readers never see a half-written file."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.",
                suffix=".tmp",
                dir=str(path.parent),
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise ExportError(f"The file '{path}' could not be written: {exc}") from exc
