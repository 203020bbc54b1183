"""Small numeric helpers shared by the calculators."""

from __future__ import annotations

from collections.abc import Sequence


def median(values: Sequence[float]) -> float | None:
    """Middle value; the mean of the two middle values for even sizes, None if empty."""
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return float(ordered[mid])


def mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def percent(part: int, whole: int) -> float:
    """part/whole as a percentage; 100.0 when there is nothing to measure."""
    if whole == 0:
        return 100.0
    return part / whole * 100.0
