"""Adaptive pacing engine: text and token surprisal in, per-word durations out."""

from .align import ScoredToken, accumulate_surprisal, align_tokens
from .chunking import Chunk, chunk_text, context_text, plan_chunks
from .durations import (
    base_duration_ms,
    compute_durations,
    effective_duration_ms,
    punctuation_bonus,
)
from .itemize import EndsWith, Item, itemize
from .orchestrator import PacingResult, ScoreFn, chunk_layout, compute_schedule, durations_from_surprisal
from .params import MAX_GAMMA, MAX_WPM, MIN_GAMMA, MIN_WPM, PacingParams
from .surprisal import excess_surprise, mad, median, slowdown_field

__all__ = [
    "Chunk",
    "EndsWith",
    "Item",
    "MAX_GAMMA",
    "MAX_WPM",
    "MIN_GAMMA",
    "MIN_WPM",
    "PacingParams",
    "PacingResult",
    "ScoreFn",
    "ScoredToken",
    "accumulate_surprisal",
    "align_tokens",
    "base_duration_ms",
    "chunk_layout",
    "chunk_text",
    "compute_durations",
    "compute_schedule",
    "context_text",
    "durations_from_surprisal",
    "effective_duration_ms",
    "excess_surprise",
    "itemize",
    "mad",
    "median",
    "plan_chunks",
    "punctuation_bonus",
    "slowdown_field",
]
