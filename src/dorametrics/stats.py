"""Statistics helpers for DORA metric derivation.

This module provides utilities for:
- Division that yields ``0`` instead of failing or producing ``NaN``.
- Arithmetic mean and the upper median of a sample.
- Counting samples into labelled half-open ``[low, high)`` buckets.

Every helper returns a finite zero baseline for empty input so that reports
built from partial API data always remain renderable.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import DistributionBucket

# (label, lower bound inclusive, upper bound exclusive or None for unbounded)
BucketSpec = Tuple[str, float, Optional[float]]


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning ``0.0`` when the denominator is zero or the result is not finite."""
    if denominator == 0:
        return 0.0

    result = numerator / denominator
    if not math.isfinite(result):
        return 0.0
    return result


def mean(values: Sequence[float]) -> float:
    """Return the arithmetic mean of ``values``, or ``0.0`` when empty."""
    if not values:
        return 0.0
    return safe_divide(math.fsum(values), len(values))


def upper_median(values: Iterable[float]) -> float:
    """Return the element at index ``n // 2`` of the ascending-sorted values.

    For an even number of samples this is the upper of the two middle values
    rather than their average, unlike :func:`statistics.median`.

    Args:
        values: Numeric samples in any order.

    Returns:
        The upper median, or ``0.0`` when ``values`` is empty.
    """
    sorted_values: List[float] = sorted(values)
    if not sorted_values:
        return 0.0
    return float(sorted_values[len(sorted_values) // 2])


def bucket_counts(values: Iterable[float], buckets: Sequence[BucketSpec]) -> Tuple[DistributionBucket, ...]:
    """Count ``values`` into labelled half-open buckets.

    Each bucket spec is ``(label, low, high)`` and matches ``low <= value < high``;
    ``high=None`` leaves the bucket unbounded above. Values below the first bound
    are counted in the first bucket so that every sample lands somewhere.
    Buckets are expected to be contiguous and listed in ascending order.

    Args:
        values: Numeric samples.
        buckets: Ordered bucket specifications.

    Returns:
        One :class:`DistributionBucket` per spec, in the same order.
    """
    counts = [0] * len(buckets)

    for value in values:
        for index, (_, _, high) in enumerate(buckets):
            if high is None or value < high:
                counts[index] += 1
                break

    return tuple(
        DistributionBucket(label=label, count=count)
        for (label, _, _), count in zip(buckets, counts)
    )
