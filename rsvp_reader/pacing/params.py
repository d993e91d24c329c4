"""Tunable parameters for surprisal-driven pacing."""

from __future__ import annotations

from dataclasses import dataclass, field, replace as _replace
from typing import Any, Tuple

__all__ = ["DEFAULT_KERNEL", "MAX_GAMMA", "MAX_WPM", "MIN_GAMMA", "MIN_WPM", "PacingParams"]

MIN_WPM = 50
MAX_WPM = 1000
MIN_GAMMA = 0.0
MAX_GAMMA = 2.0

DEFAULT_KERNEL: Tuple[float, ...] = (0.15, 0.30, 0.60, 1.00, 0.60, 0.30, 0.15)


@dataclass(frozen=True)
class PacingParams:
    """Options that control how surprisal is turned into display durations."""

    target_wpm: int = 360
    chunk_size_words: int = 16
    chunk_overlap_context_words: int = 12
    alpha: float = 1.0
    beta: float = 2.0
    e_max: float = 2.0
    kernel_radius: int = 3
    kernel_weights: Tuple[float, ...] = field(default=DEFAULT_KERNEL)
    gamma: float = 0.6
    min_ms: int = 80
    max_ms: int = 800
    comma_bonus_ms: int = 60
    period_bonus_ms: int = 120
    para_bonus_ms: int = 180

    def __post_init__(self) -> None:
        object.__setattr__(self, "kernel_weights", tuple(float(w) for w in self.kernel_weights))
        if not MIN_WPM <= self.target_wpm <= MAX_WPM:
            raise ValueError(
                f"target_wpm must be between {MIN_WPM} and {MAX_WPM} (got {self.target_wpm})"
            )
        if not MIN_GAMMA <= self.gamma <= MAX_GAMMA:
            raise ValueError(
                f"gamma must be between {MIN_GAMMA} and {MAX_GAMMA} (got {self.gamma})"
            )
        if self.chunk_size_words < 1:
            raise ValueError(f"chunk_size_words must be at least 1 (got {self.chunk_size_words})")
        if self.chunk_overlap_context_words < 0:
            raise ValueError(
                "chunk_overlap_context_words must be zero or positive "
                f"(got {self.chunk_overlap_context_words})"
            )
        if self.beta <= 0:
            raise ValueError(f"beta must be positive (got {self.beta})")
        if self.e_max < 0:
            raise ValueError(f"e_max must be zero or positive (got {self.e_max})")
        if self.kernel_radius < 0:
            raise ValueError(f"kernel_radius must be zero or positive (got {self.kernel_radius})")
        expected = 2 * self.kernel_radius + 1
        if len(self.kernel_weights) != expected:
            raise ValueError(
                f"kernel_weights must have 2 * kernel_radius + 1 = {expected} entries "
                f"(got {len(self.kernel_weights)})"
            )
        if any(weight < 0 for weight in self.kernel_weights):
            raise ValueError("kernel_weights must all be zero or positive")
        if self.min_ms < 0 or self.max_ms < self.min_ms:
            raise ValueError(
                f"min_ms/max_ms must satisfy 0 <= min_ms <= max_ms (got {self.min_ms}/{self.max_ms})"
            )
        for name in ("comma_bonus_ms", "period_bonus_ms", "para_bonus_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be zero or positive (got {getattr(self, name)})")

    def replace(self, **changes: Any) -> "PacingParams":
        """Return a validated copy with *changes* applied."""

        return _replace(self, **changes)
