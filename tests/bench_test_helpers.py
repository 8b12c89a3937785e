"""Shared test fixtures for benchmark tests."""

from __future__ import annotations

import statistics
from typing import Sequence

from cmdbench.bench.results import BenchmarkResult
from cmdbench.options import Options, SortOrder, options_from_profile


def make_result(
    command: str,
    mean: float,
    stddev: float | None = None,
    *,
    parameters: dict[str, str] | None = None,
    runs: int = 3,
) -> BenchmarkResult:
    """Create a BenchmarkResult around a given mean and stddev."""
    return BenchmarkResult(
        command=command,
        command_with_unused_parameters=command,
        mean=mean,
        stddev=stddev,
        median=mean,
        user=mean * 0.8,
        system=mean * 0.1,
        min=mean,
        max=mean,
        times=[mean] * runs,
        exit_codes=[0] * runs,
        parameters=dict(parameters or {}),
    )


def make_result_from_times(command: str, times: list[float]) -> BenchmarkResult:
    """Create a BenchmarkResult with statistics computed from wall times."""
    return BenchmarkResult(
        command=command,
        command_with_unused_parameters=command,
        mean=statistics.fmean(times),
        stddev=statistics.stdev(times) if len(times) > 1 else None,
        median=statistics.median(times),
        user=0.0,
        system=0.0,
        min=min(times),
        max=max(times),
        times=list(times),
        exit_codes=[0] * len(times),
    )


def make_options(**kwargs: object) -> Options:
    """Create Options for fast, quiet, mock-driven tests."""
    defaults: dict[str, object] = {
        "min_runs": 3,
        "min_benchmarking_time": 0.0,
        "output_style": "none",
    }
    defaults.update(kwargs)
    return options_from_profile({}, cli_overrides=defaults)


class RecordingExportManager:
    """Export manager stand-in recording every write_results call."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[BenchmarkResult], SortOrder, bool]] = []

    def write_results(
        self,
        results: Sequence[BenchmarkResult],
        sort_order: SortOrder,
        is_partial: bool,
    ) -> None:
        self.calls.append((list(results), sort_order, is_partial))
