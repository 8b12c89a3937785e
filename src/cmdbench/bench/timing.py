"""Timing capture for single command executions.

Measures wall-clock time, user CPU time and system CPU time of one
child process.  CPU times come from ``resource.getrusage`` deltas over
``RUSAGE_CHILDREN``, which is exact because only one child runs at a
time.
"""

from __future__ import annotations

import logging
import os
import resource
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence

log = logging.getLogger("cmdbench")


# ---------------------------------------------------------------------------
# RawSample
# ---------------------------------------------------------------------------


@dataclass
class RawSample:
    """Measurements of one execution."""

    wall_time_s: float
    user_time_s: float
    sys_time_s: float
    exit_code: int | None  # None if killed by a signal

    @property
    def cpu_time_s(self) -> float:
        """Total CPU time (user + system)."""
        return self.user_time_s + self.sys_time_s

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


# ---------------------------------------------------------------------------
# Core timing implementation
# ---------------------------------------------------------------------------


def run_timed(
    argv: Sequence[str],
    *,
    show_output: bool = False,
) -> RawSample:
    """Execute *argv* once and capture its timing.

    Args:
        argv: Program and arguments; no shell is involved here.
        show_output: If True, the child inherits stdout/stderr.
            Otherwise both are discarded.

    Returns:
        RawSample with timing data and exit status.

    Raises:
        OSError: If the program cannot be spawned.
        KeyboardInterrupt: Re-raised after the child is killed.
    """
    output = None if show_output else subprocess.DEVNULL

    # Snapshot children's resource usage before.
    pre_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)
    wall_start = time.perf_counter()

    proc = subprocess.Popen(
        list(argv),
        stdin=subprocess.DEVNULL,
        stdout=output,
        stderr=output,
        start_new_session=True,
    )
    try:
        returncode = proc.wait()
    except KeyboardInterrupt:
        _kill_process_group(proc.pid)
        proc.wait()
        raise

    wall_time = time.perf_counter() - wall_start
    post_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)

    user_time = post_rusage.ru_utime - pre_rusage.ru_utime
    sys_time = post_rusage.ru_stime - pre_rusage.ru_stime

    return RawSample(
        wall_time_s=wall_time,
        user_time_s=max(user_time, 0.0),
        sys_time_s=max(sys_time, 0.0),
        exit_code=returncode if returncode >= 0 else None,
    )


def _kill_process_group(pid: int) -> None:
    """Kill the child's whole process group after an interrupt."""
    try:
        os.killpg(os.getpgid(pid), signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        log.debug("Process group of %d already gone", pid)
