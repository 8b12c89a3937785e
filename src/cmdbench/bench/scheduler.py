"""Benchmark scheduler.

Runs every command of a benchmark run in declaration order with one
shared executor:

    Initializing → Calibrating → Running(i) → Comparing → Exporting → Done

Results are exported after every command, so that a later failure
never loses measurements that were already taken.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import click

from cmdbench.bench.benchmark import Benchmark, CommandFailedError
from cmdbench.bench.display import (
    ZERO_MEAN_NOTE,
    format_relative_speed_summary,
    format_relative_speed_table,
)
from cmdbench.bench.executor import Executor, make_executor
from cmdbench.bench.relative_speed import compute_with_check
from cmdbench.bench.results import BenchmarkResult
from cmdbench.command import Command
from cmdbench.options import CommandFailureAction, Options, OutputStyle, SortOrder

log = logging.getLogger("cmdbench")


class ResultWriter(Protocol):
    """What the scheduler needs from an export manager."""

    def write_results(
        self,
        results: Sequence[BenchmarkResult],
        sort_order: SortOrder,
        is_partial: bool,
    ) -> None: ...


class Scheduler:
    """Runs all benchmarks of one invocation.

    Usage::

        scheduler = Scheduler(commands, options, export_manager)
        scheduler.run_benchmarks()
        scheduler.print_relative_speed_comparison()
        scheduler.final_export()
    """

    def __init__(
        self,
        commands: Sequence[Command],
        options: Options,
        export_manager: ResultWriter,
        executor: Executor | None = None,
    ) -> None:
        self.commands = list(commands)
        self.options = options
        self.export_manager = export_manager
        self._executor = executor
        self._results: list[BenchmarkResult] = []

    @property
    def results(self) -> list[BenchmarkResult]:
        """Results collected so far, in command order."""
        return list(self._results)

    def run_benchmarks(self) -> None:
        """Calibrate the executor once, then benchmark every command.

        Raises:
            CalibrationError: If the executor cannot spawn anything.
            CommandFailedError: If a command fails and the failure
                action is ABORT.
            ExportError: If an intermediate export cannot be written.
        """
        executor = self._executor or make_executor(self.options)
        executor.calibrate()

        for number, command in enumerate(self.commands):
            try:
                result = Benchmark(number, command, self.options, executor).run()
            except CommandFailedError as exc:
                if self.options.command_failure_action is CommandFailureAction.ABORT:
                    raise
                log.warning("Skipping '%s': %s", command.get_name(), exc)
                continue

            self._results.append(result)

            # Export after each benchmark, since a later failure would
            # otherwise lose these results.
            self.export_manager.write_results(
                self._results,
                self.options.sort_order_exports,
                True,
            )

    def print_relative_speed_comparison(self) -> None:
        """Print how much faster the fastest command is than the others."""
        if self.options.output_style is OutputStyle.NONE:
            return
        if len(self._results) < 2:
            return

        use_color = self.options.output_style.use_color
        order = self.options.sort_order_speed_comparison
        annotated = compute_with_check(self._results, order)

        if annotated is None:
            note = click.style("Note", bold=True, fg="red") if use_color else "Note"
            click.echo(f"{note}: {ZERO_MEAN_NOTE}", err=True)
            return

        if order is SortOrder.MEAN_TIME:
            click.echo(format_relative_speed_summary(annotated, use_color=use_color))
        else:
            click.echo(format_relative_speed_table(annotated, use_color=use_color))

    def final_export(self) -> None:
        """Write the complete result list to every export target.

        Raises:
            ExportError: If a target cannot be written.
        """
        self.export_manager.write_results(
            self._results,
            self.options.sort_order_exports,
            False,
        )
