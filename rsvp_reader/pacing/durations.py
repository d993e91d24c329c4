"""Turn the slowdown field into per-item display durations."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from .itemize import EndsWith, Item
from .params import PacingParams
from .surprisal import excess_surprise, slowdown_field

__all__ = [
    "base_duration_ms",
    "clamp_duration",
    "compute_durations",
    "effective_duration_ms",
    "punctuation_bonus",
    "round_half_up",
]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def base_duration_ms(wpm: float) -> int:
    if wpm <= 0:
        raise ValueError(f"wpm must be positive (got {wpm})")
    return round_half_up(60000 / wpm)


def punctuation_bonus(item: Item, params: PacingParams) -> int:
    if item.ends_with is EndsWith.PARA:
        return params.para_bonus_ms
    if item.ends_with is EndsWith.PERIOD:
        return params.period_bonus_ms
    if item.ends_with is EndsWith.COMMA:
        return params.comma_bonus_ms
    return 0


def clamp_duration(value: int, params: PacingParams) -> int:
    return min(max(value, params.min_ms), params.max_ms)


def compute_durations(
    items: Sequence[Item],
    surprisal: Optional[Sequence[float]],
    params: Optional[PacingParams] = None,
) -> List[int]:
    """Compute the clamped duration in milliseconds for every item.

    With no surprisal data the schedule is plain words-per-minute pacing plus
    punctuation bonuses. This is a pure function of its arguments.
    """

    params = params or PacingParams()
    base = base_duration_ms(params.target_wpm)
    if not surprisal:
        return [clamp_duration(base + punctuation_bonus(item, params), params) for item in items]
    if len(surprisal) != len(items):
        raise ValueError(
            f"surprisal has {len(surprisal)} entries but there are {len(items)} items"
        )

    field = slowdown_field(excess_surprise(surprisal, params), params.kernel_weights)
    durations: List[int] = []
    for item, strength in zip(items, field):
        multiplier = 1 + params.gamma * math.tanh(strength)
        duration = round_half_up(base * multiplier) + punctuation_bonus(item, params)
        durations.append(clamp_duration(duration, params))
    return durations


def effective_duration_ms(
    stored_ms: float,
    *,
    original_wpm: float,
    current_wpm: float,
    original_gamma: float,
    current_gamma: float,
) -> float:
    """Rescale a precomputed duration for live speed and intensity changes.

    The whole duration scales with ``original_wpm / current_wpm``. When the
    intensity differs from the one the schedule was computed with, only the
    part above the scaled base duration is rescaled by the gamma ratio, so an
    intensity of zero converges on plain words-per-minute pacing.
    """

    wpm_scale = original_wpm / current_wpm
    scaled = stored_ms * wpm_scale
    if current_gamma == original_gamma or original_gamma == 0:
        return scaled
    base = base_duration_ms(original_wpm) * wpm_scale
    slowdown = scaled - base
    return max(0.0, base + slowdown * (current_gamma / original_gamma))
