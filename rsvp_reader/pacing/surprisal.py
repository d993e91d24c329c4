"""Robust normalization of per-item surprisal and the neighbor slowdown field."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .params import PacingParams

__all__ = ["MAD_SCALE", "excess_surprise", "mad", "median", "robust_sigma", "slowdown_field"]

# Makes the MAD a consistent estimator of the standard deviation for normal data.
MAD_SCALE = 1.4826
MIN_SIGMA = 1e-6


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def mad(values: Sequence[float], center: float) -> float:
    """Median absolute deviation of *values* around *center*."""

    if not values:
        return 0.0
    return median([abs(value - center) for value in values])


def robust_sigma(values: Sequence[float], center: Optional[float] = None) -> float:
    if center is None:
        center = median(values)
    return max(MIN_SIGMA, MAD_SCALE * mad(values, center))


def excess_surprise(surprisal: Sequence[float], params: Optional[PacingParams] = None) -> List[float]:
    """Map surprisal bits to a capped excess over a robust per-run baseline."""

    params = params or PacingParams()
    center = median(surprisal)
    sigma = robust_sigma(surprisal, center)
    threshold = center + params.alpha * sigma
    scale = params.beta * sigma
    return [min(max((value - threshold) / scale, 0.0), params.e_max) for value in surprisal]


def slowdown_field(excess: Sequence[float], kernel: Sequence[float]) -> List[float]:
    """Convolve *excess* with a symmetric odd-length *kernel*.

    Terms that fall outside the sequence are dropped without renormalizing, so
    items near either end receive a weaker field than interior items.
    """

    if len(kernel) % 2 != 1:
        raise ValueError(f"kernel must have odd length (got {len(kernel)})")
    radius = len(kernel) // 2
    n = len(excess)
    field: List[float] = []
    for i in range(n):
        total = 0.0
        for offset in range(-radius, radius + 1):
            j = i + offset
            if 0 <= j < n:
                total += excess[j] * kernel[offset + radius]
        field.append(total)
    return field
