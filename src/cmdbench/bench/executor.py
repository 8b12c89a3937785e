"""Executors: how a single command run is spawned and timed.

Three variants, selected once per run by ``make_executor``:

- RawExecutor: splits the command line and execs the program directly.
- ShellExecutor: passes the command string to a shell (``sh -c``) and
  corrects every sample for the shell's own spawning time, measured
  once by ``calibrate()``.
- MockExecutor: spawns nothing and returns deterministic timings.

Executors never retry.  Retry and failure policy belong to the caller.
"""

from __future__ import annotations

import itertools
import logging
import shlex
import statistics
from typing import Iterator, Mapping, Sequence

from cmdbench.bench.timing import RawSample, run_timed
from cmdbench.formatting import format_duration
from cmdbench.options import ExecutorKind, Options

log = logging.getLogger("cmdbench")


class CalibrationError(RuntimeError):
    """The executor cannot spawn anything; no measurement is meaningful."""


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class Executor:
    """Runs one command once and reports its timing."""

    def calibrate(self) -> None:
        """Measure the executor's fixed overhead.  Called once per run."""

    def run_once(self, command: str) -> RawSample:
        raise NotImplementedError

    @property
    def overhead(self) -> RawSample | None:
        """Fixed overhead subtracted from every sample, if any."""
        return None


# ---------------------------------------------------------------------------
# Raw
# ---------------------------------------------------------------------------


class RawExecutor(Executor):
    """Spawn the program directly, without a shell."""

    def __init__(self, options: Options) -> None:
        self.show_output = options.show_output

    def calibrate(self) -> None:
        log.debug("Raw executor: no spawning overhead to calibrate")

    def run_once(self, command: str) -> RawSample:
        argv = shlex.split(command)
        if not argv:
            raise ValueError("Cannot run an empty command without a shell.")
        return run_timed(argv, show_output=self.show_output)


# ---------------------------------------------------------------------------
# Shell
# ---------------------------------------------------------------------------


class ShellExecutor(Executor):
    """Run commands through ``<shell> -c <command>``."""

    def __init__(self, options: Options) -> None:
        self.shell = options.shell
        self.show_output = options.show_output
        self.calibration_runs = options.calibration_runs
        self._overhead: RawSample | None = None

    @property
    def overhead(self) -> RawSample | None:
        return self._overhead

    def _argv(self, command: str) -> list[str]:
        return [*shlex.split(self.shell), "-c", command]

    def calibrate(self) -> None:
        """Measure the mean time the shell needs to run an empty command.

        Raises:
            CalibrationError: If the shell cannot be spawned or fails.
        """
        log.info("Measuring shell spawning time (%d runs)...", self.calibration_runs)
        message = (
            "Could not measure shell spawning time. "
            f"Make sure you can run '{self.shell} -c \"\"'."
        )

        samples: list[RawSample] = []
        for _ in range(self.calibration_runs):
            try:
                sample = run_timed(self._argv(""))
            except (OSError, ValueError) as exc:
                raise CalibrationError(f"{message} ({exc})") from exc
            if not sample.succeeded:
                raise CalibrationError(f"{message} (exit code {sample.exit_code})")
            samples.append(sample)

        self._overhead = RawSample(
            wall_time_s=statistics.mean(s.wall_time_s for s in samples),
            user_time_s=statistics.mean(s.user_time_s for s in samples),
            sys_time_s=statistics.mean(s.sys_time_s for s in samples),
            exit_code=0,
        )
        log.debug(
            "Shell spawning time: %s (user %s, system %s)",
            format_duration(self._overhead.wall_time_s),
            format_duration(self._overhead.user_time_s),
            format_duration(self._overhead.sys_time_s),
        )

    def run_once(self, command: str) -> RawSample:
        sample = run_timed(self._argv(command), show_output=self.show_output)
        if self._overhead is None:
            return sample
        # Clamped: the overhead is a mean, single runs can beat it.
        return RawSample(
            wall_time_s=max(sample.wall_time_s - self._overhead.wall_time_s, 0.0),
            user_time_s=max(sample.user_time_s - self._overhead.user_time_s, 0.0),
            sys_time_s=max(sample.sys_time_s - self._overhead.sys_time_s, 0.0),
            exit_code=sample.exit_code,
        )


# ---------------------------------------------------------------------------
# Mock
# ---------------------------------------------------------------------------


class MockExecutor(Executor):
    """Deterministic executor for tests and ``--debug-mode``.

    Wall times come from *timings* (cycled per command) when given,
    else from a ``sleep <seconds>`` command line, else 0.0.  Exit codes
    come from *exit_codes*, default 0.  Nothing is spawned and no time
    passes.
    """

    def __init__(
        self,
        timings: Mapping[str, Sequence[float]] | None = None,
        exit_codes: Mapping[str, int | None] | None = None,
    ) -> None:
        self._timings = {cmd: itertools.cycle(times) for cmd, times in (timings or {}).items()}
        self._exit_codes = dict(exit_codes or {})
        self.calls: list[str] = []

    @staticmethod
    def extract_time(command: str) -> float:
        parts = command.split()
        if len(parts) == 2 and parts[0] == "sleep":
            try:
                return float(parts[1])
            except ValueError:
                return 0.0
        return 0.0

    def run_once(self, command: str) -> RawSample:
        self.calls.append(command)
        times: Iterator[float] | None = self._timings.get(command)
        wall = next(times) if times is not None else self.extract_time(command)
        return RawSample(
            wall_time_s=wall,
            user_time_s=0.0,
            sys_time_s=0.0,
            exit_code=self._exit_codes.get(command, 0),
        )


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def make_executor(options: Options) -> Executor:
    """Build the single executor used for a whole run."""
    if options.executor_kind is ExecutorKind.RAW:
        return RawExecutor(options)
    if options.executor_kind is ExecutorKind.MOCK:
        return MockExecutor()
    return ShellExecutor(options)
