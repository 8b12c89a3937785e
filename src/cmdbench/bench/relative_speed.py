"""Relative speed comparison of benchmark results.

Every result is compared against the fastest one (minimum mean).  The
uncertainty of each ratio is propagated from both standard deviations
with the relative-error rule for a quotient of independent quantities::

    σ_ratio = ratio * sqrt((σ_a / μ_a)² + (σ_f / μ_f)²)

If the fastest mean is exactly zero no ratio is defined, and the
comparison returns None instead of producing infinities.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from cmdbench.bench.results import BenchmarkResult
from cmdbench.options import SortOrder


@dataclass(frozen=True)
class AnnotatedResult:
    """A result together with its speed relative to the fastest one."""

    result: BenchmarkResult
    relative_speed: float
    relative_speed_stddev: float | None
    is_fastest: bool


def fastest_index(results: Sequence[BenchmarkResult]) -> int:
    """Index of the result with the smallest mean.

    On exact ties the first result in command order wins.

    Raises:
        ValueError: If *results* is empty.
    """
    if not results:
        raise ValueError("Cannot find the fastest of zero results.")
    best = 0
    for i, result in enumerate(results):
        if result.mean < results[best].mean:
            best = i
    return best


def _ratio_stddev(
    result: BenchmarkResult,
    fastest: BenchmarkResult,
    ratio: float,
) -> float | None:
    if result.stddev is None or fastest.stddev is None:
        return None
    return ratio * math.sqrt(
        (result.stddev / result.mean) ** 2 + (fastest.stddev / fastest.mean) ** 2
    )


def compute_with_check(
    results: Sequence[BenchmarkResult],
    sort_order: SortOrder,
) -> list[AnnotatedResult] | None:
    """Annotate *results* with their speed relative to the fastest.

    Args:
        results: Results in command declaration order.
        sort_order: COMMAND keeps declaration order; MEAN_TIME sorts by
            ascending mean, keeping declaration order among ties.

    Returns:
        The annotated results, or None if the fastest mean is zero and
        the ratios are undefined.
    """
    if not results:
        return []

    reference = fastest_index(results)
    fastest = results[reference]
    if fastest.mean == 0.0:
        return None

    annotated: list[AnnotatedResult] = []
    for i, result in enumerate(results):
        if i == reference:
            annotated.append(AnnotatedResult(result, 1.0, None, is_fastest=True))
            continue
        ratio = result.mean / fastest.mean
        annotated.append(
            AnnotatedResult(
                result,
                ratio,
                _ratio_stddev(result, fastest, ratio),
                is_fastest=False,
            )
        )

    if sort_order is SortOrder.MEAN_TIME:
        annotated.sort(key=lambda a: a.result.mean)
    return annotated
