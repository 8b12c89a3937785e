"""Command-line interface for cmdbench.

Provides the ``cmdbench`` entry point: benchmark one or more shell
commands and compare their speed.
"""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import click

from cmdbench import __version__
from cmdbench.bench.benchmark import CommandFailedError
from cmdbench.bench.executor import CalibrationError
from cmdbench.bench.scheduler import Scheduler
from cmdbench.command import build_commands, commands_from_profile, profile_parameter_lists
from cmdbench.export import ExportError, ExportFormat, ExportManager
from cmdbench.logging import setup_logging
from cmdbench.options import (
    CommandFailureAction,
    ExecutorKind,
    OutputStyle,
    TimeUnit,
    check_options,
    load_profile,
    options_from_profile,
    sort_orders,
)


def _stderr_is_tty() -> bool:
    return sys.stderr.isatty()


def _executor_override(shell: str | None, no_shell: bool, debug_mode: bool) -> dict[str, Any]:
    """Options overrides selecting the executor from the shell flags."""
    if debug_mode:
        return {"executor_kind": ExecutorKind.MOCK}
    if no_shell or (shell is not None and shell.strip().lower() == "none"):
        return {"executor_kind": ExecutorKind.RAW}
    if shell is not None:
        return {"executor_kind": ExecutorKind.SHELL, "shell": shell}
    return {}


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("commands", nargs=-1)
@click.option("-w", "--warmup", type=int, default=None, help="Warm-up runs per command.")
@click.option("-m", "--min-runs", type=int, default=None, help="Minimum runs (default: 10).")
@click.option("-M", "--max-runs", type=int, default=None, help="Maximum runs (default: none).")
@click.option(
    "-r",
    "--runs",
    type=int,
    default=None,
    help="Exact number of runs, overrides --min-runs/--max-runs.",
)
@click.option(
    "--min-benchmarking-time",
    type=float,
    default=None,
    help="Minimum cumulative run time per command in seconds (default: 3).",
)
@click.option(
    "-s", "--setup", "setup_command", default=None, help="Run once before each benchmark."
)
@click.option(
    "-p",
    "--prepare",
    "prepare_commands",
    multiple=True,
    help="Run before each timing run (once, or once per command).",
)
@click.option(
    "-c", "--cleanup", "cleanup_command", default=None, help="Run once after each benchmark."
)
@click.option(
    "-P",
    "--parameter-scan",
    nargs=3,
    type=str,
    default=None,
    metavar="VAR MIN MAX",
    help="Benchmark for each value of VAR in MIN..MAX.",
)
@click.option(
    "-D",
    "--parameter-step-size",
    type=str,
    default=None,
    help="Step size for --parameter-scan (default: 1).",
)
@click.option(
    "-L",
    "--parameter-list",
    "parameter_lists",
    nargs=2,
    type=str,
    multiple=True,
    metavar="VAR VALUES",
    help="Benchmark for each comma-separated value of VAR (repeatable).",
)
@click.option("-S", "--shell", default=None, help="Shell to run commands with, or 'none'.")
@click.option("-N", "no_shell", is_flag=True, default=False, help="Run commands without a shell.")
@click.option(
    "-i",
    "--ignore-failure",
    is_flag=True,
    default=False,
    help="Ignore non-zero exit codes of the benchmarked commands.",
)
@click.option(
    "--on-failure",
    type=click.Choice([a.value for a in CommandFailureAction]),
    default=None,
    help="Abort the run or skip to the next command when a benchmark fails.",
)
@click.option(
    "--style",
    type=click.Choice([s.value for s in OutputStyle]),
    default=None,
    help="Output style.",
)
@click.option(
    "--sort",
    type=click.Choice(["auto", "command", "mean-time"]),
    default=None,
    help="Ordering of the speed comparison and exported tables.",
)
@click.option(
    "-u",
    "--time-unit",
    type=click.Choice([u.value for u in TimeUnit]),
    default=None,
    help="Time unit for output and exported tables.",
)
@click.option("--export-json", type=str, default=None, metavar="FILE", help="Export as JSON.")
@click.option("--export-csv", type=str, default=None, metavar="FILE", help="Export as CSV.")
@click.option(
    "--export-markdown", type=str, default=None, metavar="FILE", help="Export as Markdown."
)
@click.option(
    "--export-asciidoc", type=str, default=None, metavar="FILE", help="Export as AsciiDoc."
)
@click.option(
    "--show-output",
    is_flag=True,
    default=False,
    help="Show the output of the benchmarked commands.",
)
@click.option(
    "-n",
    "--command-name",
    "command_names",
    multiple=True,
    help="Name of a command in the output (repeatable, in order).",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML profile with commands and options.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
@click.option("--debug-mode", is_flag=True, default=False, hidden=True)
@click.version_option(version=__version__)
def main(  # noqa: PLR0913
    commands: tuple[str, ...],
    warmup: int | None,
    min_runs: int | None,
    max_runs: int | None,
    runs: int | None,
    min_benchmarking_time: float | None,
    setup_command: str | None,
    prepare_commands: tuple[str, ...],
    cleanup_command: str | None,
    parameter_scan: tuple[str, str, str] | None,
    parameter_step_size: str | None,
    parameter_lists: tuple[tuple[str, str], ...],
    shell: str | None,
    no_shell: bool,
    ignore_failure: bool,
    on_failure: str | None,
    style: str | None,
    sort: str | None,
    time_unit: str | None,
    export_json: str | None,
    export_csv: str | None,
    export_markdown: str | None,
    export_asciidoc: str | None,
    show_output: bool,
    command_names: tuple[str, ...],
    profile_path: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
    debug_mode: bool,
) -> None:
    """Benchmark shell commands and compare their speed.

    \b
    Examples:
        # Compare two commands
        cmdbench 'sleep 0.1' 'sleep 0.2'

        # Scan a parameter and export a Markdown table
        cmdbench -P threads 1 4 'make -j {threads}' --export-markdown results.md

        # Commands and options from a YAML profile
        cmdbench --profile bench.yaml
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        profile = load_profile(profile_path) if profile_path else {}

        cli_overrides: dict[str, Any] = {
            "warmup": warmup,
            "min_runs": min_runs,
            "max_runs": max_runs,
            "runs": runs,
            "min_benchmarking_time": min_benchmarking_time,
            "setup_command": setup_command,
            "prepare_commands": prepare_commands or None,
            "cleanup_command": cleanup_command,
            "ignore_failure": ignore_failure or None,
            "command_failure_action": on_failure,
            "output_style": style,
            "time_unit": time_unit,
            "show_output": show_output or None,
        }
        if sort is not None:
            speed_order, export_order = sort_orders(sort)
            cli_overrides["sort_order_speed_comparison"] = speed_order
            cli_overrides["sort_order_exports"] = export_order
        cli_overrides.update(_executor_override(shell, no_shell, debug_mode))

        options = options_from_profile(profile, cli_overrides=cli_overrides)
        if options.max_runs is not None and min_runs is None and "min_runs" not in profile:
            # A lone maximum lowers the default minimum instead of conflicting with it.
            options = replace(options, min_runs=min(options.min_runs, options.max_runs))
        setup_logging(
            verbose=verbose,
            quiet=quiet,
            log_file=log_file,
            use_color=options.output_style.use_color and _stderr_is_tty(),
        )

        if commands:
            expressions, names = list(commands), list(command_names)
        else:
            expressions, names = commands_from_profile(profile)
            names = list(command_names) or names

        cmd_list = build_commands(
            expressions,
            names=names,
            parameter_scan=parameter_scan,
            step_size=parameter_step_size,
            parameter_lists=parameter_lists
            or (profile_parameter_lists(profile) if parameter_scan is None else []),
        )
        check_options(options, command_count=len(cmd_list))

        export_manager = ExportManager(time_unit=options.time_unit)
        exports = profile.get("exports") or {}
        if not isinstance(exports, dict):
            raise ValueError("Profile 'exports' must be a mapping of format -> file.")
        cli_exports = {
            ExportFormat.JSON: export_json,
            ExportFormat.CSV: export_csv,
            ExportFormat.MARKDOWN: export_markdown,
            ExportFormat.ASCIIDOC: export_asciidoc,
        }
        for fmt, cli_path in cli_exports.items():
            path = cli_path or exports.get(fmt.value)
            if path:
                export_manager.add_target(fmt, str(path))

        scheduler = Scheduler(cmd_list, options, export_manager)
        scheduler.run_benchmarks()
        scheduler.print_relative_speed_comparison()
        scheduler.final_export()
    except (
        ValueError,
        FileNotFoundError,
        CalibrationError,
        CommandFailedError,
        ExportError,
    ) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
