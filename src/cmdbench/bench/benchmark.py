"""Benchmark of a single command.

Drives one command through its phases:

1. Setup command (once, not timed)
2. Warm-up runs (timings discarded)
3. Measured runs, each preceded by the prepare command
4. Anomaly checks (too fast, ignored failures, outliers)
5. Reduction into a BenchmarkResult
6. Cleanup command (once, not timed, also after a failed run)

A failing run aborts the benchmark unless non-zero exit codes are
explicitly permitted.  Whether that aborts the whole run is up to the
scheduler.
"""

from __future__ import annotations

import logging
import statistics

import click

from cmdbench.bench.display import format_benchmark_header, format_benchmark_summary
from cmdbench.bench.executor import Executor
from cmdbench.bench.results import BenchmarkResult
from cmdbench.bench.stats import describe, detect_outliers
from cmdbench.bench.timing import RawSample
from cmdbench.command import Command
from cmdbench.formatting import format_duration
from cmdbench.options import ExecutorKind, Options, OutputStyle

log = logging.getLogger("cmdbench")

OUTLIER_IQR_FACTOR = 3.0


class CommandFailedError(RuntimeError):
    """A benchmarked (or auxiliary) command did not run successfully."""

    def __init__(self, message: str, *, command: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class Benchmark:
    """Turns repeated runs of one command into one BenchmarkResult.

    Usage::

        result = Benchmark(0, command, options, executor).run()
    """

    def __init__(
        self,
        number: int,
        command: Command,
        options: Options,
        executor: Executor,
    ) -> None:
        self.number = number
        self.command = command
        self.options = options
        self.executor = executor

    @property
    def _print(self) -> bool:
        return self.options.output_style is not OutputStyle.NONE

    # -- execution helpers --------------------------------------------------

    def _substitute(self, text: str) -> str:
        """Apply this command's parameter bindings to an auxiliary command."""
        return Command(expression=text, parameters=self.command.parameters).get_command()

    def _execute(self, command_line: str) -> RawSample:
        try:
            return self.executor.run_once(command_line)
        except (OSError, ValueError) as exc:
            raise CommandFailedError(
                f"Could not run command '{command_line}': {exc}",
                command=command_line,
            ) from exc

    def _run_auxiliary(self, kind: str, command_line: str) -> None:
        """Run a setup, prepare, or cleanup command.  Failures always abort."""
        command_line = self._substitute(command_line)
        log.debug("Running %s command: %s", kind, command_line)
        sample = self._execute(command_line)
        if not sample.succeeded:
            raise CommandFailedError(
                f"The {kind} command terminated with a non-zero exit code. "
                "Append ' || true' to the command if you are sure that this can be ignored.",
                command=command_line,
                exit_code=sample.exit_code,
            )

    def _run_prepare(self) -> None:
        prepare = self.options.prepare_command_for(self.number)
        if prepare is not None:
            self._run_auxiliary("prepare", prepare)

    def _run_timed(self, command_line: str) -> RawSample:
        """One run of the benchmarked command, with the failure policy applied."""
        self._run_prepare()
        sample = self._execute(command_line)
        if not sample.succeeded and not self.options.ignore_failure:
            if sample.exit_code is None:
                reason = "Command terminated by a signal."
            else:
                reason = f"Command terminated with non-zero exit code: {sample.exit_code}."
            raise CommandFailedError(
                f"{reason} Use the '-i'/'--ignore-failure' option if you want to ignore "
                "this. Alternatively, use the '--show-output' option to debug what went wrong.",
                command=command_line,
                exit_code=sample.exit_code,
            )
        return sample

    def _needs_more_runs(self, n_runs: int, elapsed: float) -> bool:
        """Stopping rule for the measurement phase.

        An explicit run count wins.  Otherwise run until both the minimum
        run count and the minimum cumulative time are reached, capped by
        the maximum run count.  Zero-time commands can never accumulate
        time, so they stop at the minimum run count.
        """
        opts = self.options
        if opts.runs is not None:
            return n_runs < opts.runs
        if opts.max_runs is not None and n_runs >= opts.max_runs:
            return False
        if n_runs < opts.min_runs:
            return True
        return 0.0 < elapsed < opts.min_benchmarking_time

    # -- phases -------------------------------------------------------------

    def run(self) -> BenchmarkResult:
        """Benchmark the command.

        The cleanup command runs once setup has succeeded, even when a
        run fails.  A cleanup failure after a failed run is logged and the
        original failure is raised.

        Raises:
            CommandFailedError: If a run fails and failures are not
                permitted, or an auxiliary command fails.
        """
        command_line = self.command.get_command()
        name = self.command.get_name_with_unused_parameters()
        use_color = self.options.output_style.use_color

        if self._print:
            click.echo(format_benchmark_header(self.number, name, use_color=use_color))

        if self.options.setup_command:
            self._run_auxiliary("setup", self.options.setup_command)

        try:
            result = self._measure(command_line, name)
        except CommandFailedError:
            self._cleanup_after_failure()
            raise

        if self._print:
            click.echo(
                format_benchmark_summary(result, unit=self.options.time_unit, use_color=use_color)
            )
            click.echo()

        if self.options.cleanup_command:
            self._run_auxiliary("cleanup", self.options.cleanup_command)

        return result

    def _measure(self, command_line: str, name: str) -> BenchmarkResult:
        """Warm-up and measured runs, reduced into a result."""
        if self.options.warmup:
            log.debug("Performing %d warmup runs for '%s'", self.options.warmup, name)
        for _ in range(self.options.warmup):
            self._run_timed(command_line)

        samples: list[RawSample] = []
        elapsed = 0.0
        while self._needs_more_runs(len(samples), elapsed):
            sample = self._run_timed(command_line)
            samples.append(sample)
            elapsed += sample.wall_time_s
            log.debug(
                "  run %d: %s (exit %s)",
                len(samples),
                format_duration(sample.wall_time_s),
                sample.exit_code,
            )

        result = self._reduce(samples)

        for warning in result.warnings:
            if self._print:
                log.debug("%s: %s", name, warning)
            else:
                log.warning("%s: %s", name, warning)

        return result

    def _cleanup_after_failure(self) -> None:
        if not self.options.cleanup_command:
            return
        try:
            self._run_auxiliary("cleanup", self.options.cleanup_command)
        except CommandFailedError as exc:
            log.warning("Cleanup after a failed benchmark also failed: %s", exc)

    def _reduce(self, samples: list[RawSample]) -> BenchmarkResult:
        wall_times = [s.wall_time_s for s in samples]
        wall = describe(wall_times)
        exit_codes = [s.exit_code for s in samples]

        return BenchmarkResult(
            command=self.command.get_name(),
            command_with_unused_parameters=self.command.get_name_with_unused_parameters(),
            mean=wall.mean,
            stddev=wall.stdev,
            median=wall.median,
            user=statistics.fmean(s.user_time_s for s in samples),
            system=statistics.fmean(s.sys_time_s for s in samples),
            min=wall.min,
            max=wall.max,
            times=wall_times,
            exit_codes=exit_codes,
            parameters=self.command.parameter_dict(),
            warnings=tuple(self._check_anomalies(wall.mean, wall_times, exit_codes)),
        )

    def _check_anomalies(
        self,
        mean: float,
        wall_times: list[float],
        exit_codes: list[int | None],
    ) -> list[str]:
        warnings: list[str] = []

        if mean < self.options.fast_threshold:
            text = (
                f"Command took less than {format_duration(self.options.fast_threshold)} "
                "to complete. Note that the results might be inaccurate because the "
                "spawning overhead cannot be calibrated much more precisely than this limit."
            )
            if self.options.executor_kind is ExecutorKind.SHELL:
                text += " You can try to use the '-N'/'--shell=none' option to disable the shell."
            warnings.append(text)

        if any(code != 0 for code in exit_codes):
            warnings.append("Ignoring non-zero exit code.")

        outliers = detect_outliers(wall_times, factor=OUTLIER_IQR_FACTOR)
        slow_first_run = outliers[0] and wall_times[0] == max(wall_times)
        if slow_first_run and not self.options.warmup:
            warnings.append(
                "The first benchmarking run for this command was significantly slower than "
                f"the rest ({format_duration(wall_times[0])}). This could be caused by "
                "(filesystem) caches that were not filled until after the first run. You "
                "should consider using the '--warmup' option to fill those caches before "
                "the actual benchmark. Alternatively, use the '--prepare' option to clear "
                "the caches before each timing run."
            )
        elif any(outliers):
            warnings.append(
                "Statistical outliers were detected. Consider re-running this benchmark on "
                "a quiet system without any interferences from other programs. It might "
                "help to use the '--warmup' or '--prepare' options."
            )

        return warnings
