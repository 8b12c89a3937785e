"""Benchmark result records and serialization.

One ``BenchmarkResult`` is produced per command by the benchmark
reduction step.  It is immutable and is read by the exporters and by
the relative speed comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BenchmarkResult:
    """Reduced outcome of benchmarking one command.

    All times are in seconds.  ``stddev`` is None when only one run
    was measured.  ``exit_codes`` holds one entry per measured run,
    None where the process reported no exit code (killed by a signal).
    """

    command: str
    command_with_unused_parameters: str
    mean: float
    stddev: float | None
    median: float
    user: float
    system: float
    min: float
    max: float
    times: list[float] | None = None
    exit_codes: list[int | None] = field(default_factory=list)
    parameters: dict[str, str] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def runs(self) -> int:
        """Number of measured runs."""
        return len(self.exit_codes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict.

        ``command_with_unused_parameters`` and ``warnings`` are display
        concerns and are not exported; parameters are only included
        when the command has any.
        """
        d: dict[str, Any] = {
            "command": self.command,
            "mean": self.mean,
            "stddev": self.stddev,
            "median": self.median,
            "user": self.user,
            "system": self.system,
            "min": self.min,
            "max": self.max,
            "times": self.times,
            "exit_codes": self.exit_codes,
        }
        if self.parameters:
            d["parameters"] = dict(self.parameters)
        return d
