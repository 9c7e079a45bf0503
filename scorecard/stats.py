"""Small statistics helpers used to summarize earnings."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, Tuple


def median(values: Sequence[float]) -> Optional[float]:
    """Return the median, or None for an empty sequence.

    Even-length inputs average the two middle values.
    """
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def percentile(values: Sequence[float], pct: float) -> Optional[float]:
    """Nearest-rank percentile (always an observed value)."""
    if not values:
        return None
    ordered = sorted(values)
    idx = math.ceil((pct / 100) * len(ordered)) - 1
    return ordered[max(0, idx)]


def weighted_average(pairs: Iterable[Tuple[float, float]]) -> Optional[float]:
    """Average of ``value`` weighted by ``weight`` over (value, weight) pairs."""
    total_weight = 0.0
    weighted_sum = 0.0
    for value, weight in pairs:
        weighted_sum += value * weight
        total_weight += weight
    if total_weight > 0:
        return weighted_sum / total_weight
    return None


def round_half_up(x: float) -> int:
    """Round to the nearest integer; .5 goes toward +infinity."""
    return math.floor(x + 0.5)


def growth_rate(median_1yr: Optional[float], median_5yr: Optional[float]) -> Optional[int]:
    """Whole-percent growth from the 1-year to the 5-year median."""
    if not median_1yr or not median_5yr:
        return None
    return round_half_up((median_5yr - median_1yr) / median_1yr * 100)
