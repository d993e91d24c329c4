"""Core package for the RSVP reader."""

from __future__ import annotations

from .pacing import PacingParams, PacingResult, compute_schedule, itemize
from .playback import PlaybackScheduler, SessionResult
from .session import PreparationOptions, PreparedSession, SessionPreparer

__all__ = [
    "PacingParams",
    "PacingResult",
    "PlaybackScheduler",
    "PreparationOptions",
    "PreparedSession",
    "SessionPreparer",
    "SessionResult",
    "compute_schedule",
    "itemize",
]

__version__ = "0.1.0"
