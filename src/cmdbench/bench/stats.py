"""Statistical functions for benchmark reduction.

Provides summary statistics and IQR-based outlier detection in pure
Python.  A standard deviation is only reported for two or more
samples; for a single sample it is ``None`` rather than 0.0, so that
"not measured" stays distinguishable from "measured to be zero".
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


@dataclass
class DescriptiveStats:
    """Summary statistics for a sample."""

    n: int
    mean: float
    median: float
    stdev: float | None  # None if n < 2
    min: float
    max: float


def describe(values: Sequence[float]) -> DescriptiveStats:
    """Compute descriptive statistics for a non-empty sample.

    Raises:
        ValueError: If *values* is empty.
    """
    if not values:
        raise ValueError("Cannot describe an empty sample.")

    sorted_v = sorted(values)
    n = len(sorted_v)
    mean = statistics.fmean(sorted_v)

    # fmean can land a ulp outside [min, max] for near-identical values.
    mean = min(max(mean, sorted_v[0]), sorted_v[-1])

    return DescriptiveStats(
        n=n,
        mean=mean,
        median=statistics.median(sorted_v),
        stdev=statistics.stdev(sorted_v) if n >= 2 else None,
        min=sorted_v[0],
        max=sorted_v[-1],
    )


def _percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linearly interpolated p-th quantile (0 <= p <= 1) of sorted values."""
    if not sorted_values:
        return float("nan")
    position = (len(sorted_values) - 1) * p
    below = math.floor(position)
    above = min(below + 1, len(sorted_values) - 1)
    weight = position - below
    return sorted_values[below] + (sorted_values[above] - sorted_values[below]) * weight


# ---------------------------------------------------------------------------
# Outlier detection
# ---------------------------------------------------------------------------


def iqr_fences(values: Sequence[float], factor: float) -> tuple[float, float]:
    """Lower and upper outlier fences: Q1 - factor*IQR and Q3 + factor*IQR."""
    sorted_v = sorted(values)
    q1 = _percentile(sorted_v, 0.25)
    q3 = _percentile(sorted_v, 0.75)
    spread = factor * (q3 - q1)
    return q1 - spread, q3 + spread


def detect_outliers(
    values: Sequence[float],
    *,
    factor: float = 3.0,
) -> list[bool]:
    """Flag the values outside the IQR fences.

    Samples with fewer than four values are never flagged, since their
    quartiles say nothing about the spread.

    Args:
        values: Wall times in run order.
        factor: IQR multiplier.  3.0 only flags extreme outliers, which
            keeps ordinary scheduling jitter quiet.

    Returns:
        One boolean per value, in the same order.
    """
    if len(values) < 4:
        return [False] * len(values)
    lower, upper = iqr_fences(values, factor)
    return [not lower <= v <= upper for v in values]
