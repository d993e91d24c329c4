"""Drive chunk planning, external scoring, alignment and duration computation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from .align import ScoredToken, accumulate_surprisal, align_tokens
from .chunking import Chunk, chunk_text, context_text, plan_chunks
from .durations import compute_durations
from .itemize import Item, itemize
from .params import PacingParams

__all__ = [
    "PacingResult",
    "ProgressCallback",
    "ScoreFn",
    "chunk_layout",
    "compute_schedule",
    "durations_from_surprisal",
]

LOGGER = logging.getLogger(__name__)

ScoreFn = Callable[[str, str], Awaitable[Sequence[ScoredToken]]]
ProgressCallback = Callable[[int, int], None]


@dataclass
class PacingResult:
    """Items, their schedule and the raw surprisal the schedule came from."""

    items: List[Item]
    durations: List[int]
    surprisal: List[float]
    total_chunks: int = 0
    failed_chunks: int = 0
    from_cache: bool = False
    params: PacingParams = field(default_factory=PacingParams)

    @property
    def words(self) -> List[str]:
        return [item.text for item in self.items]

    @property
    def scored(self) -> bool:
        """True when at least one chunk contributed surprisal data."""

        return self.from_cache or self.failed_chunks < self.total_chunks


def durations_from_surprisal(
    items: List[Item],
    surprisal: List[float],
    params: Optional[PacingParams] = None,
    *,
    from_cache: bool = False,
) -> PacingResult:
    """Re-apply normalization and duration steps to an existing surprisal vector."""

    params = params or PacingParams()
    return PacingResult(
        items=list(items),
        durations=compute_durations(items, surprisal, params),
        surprisal=list(surprisal),
        from_cache=from_cache,
        params=params,
    )


def chunk_layout(items: Sequence[Item], chunk: Chunk) -> List[Item]:
    """Items of *chunk* re-spanned onto the space-joined text sent for scoring."""

    layout: List[Item] = []
    position = 0
    for item in items[chunk.start_item : chunk.end_item]:
        layout.append(replace(item, start_char=position, end_char=position + len(item.text)))
        position += len(item.text) + 1
    return layout


async def compute_schedule(
    text: str,
    score_fn: ScoreFn,
    params: Optional[PacingParams] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> PacingResult:
    """Score *text* chunk by chunk and return its duration schedule.

    Chunks are scored strictly one after another. A chunk whose scoring call
    raises keeps zero surprisal and the run carries on with the next chunk.
    """

    params = params or PacingParams()
    items = itemize(text)
    if not items:
        return PacingResult(items=[], durations=[], surprisal=[], params=params)

    chunks = plan_chunks(items, params)
    surprisal = [0.0] * len(items)
    failed = 0
    LOGGER.debug("Scoring %d items in %d chunks", len(items), len(chunks))

    for index, chunk in enumerate(chunks):
        if on_progress:
            on_progress(index, len(chunks))
        scored_text = chunk_text(items, chunk)
        if not scored_text.strip():
            continue
        try:
            tokens = await score_fn(context_text(items, chunk), scored_text)
        except Exception as exc:
            failed += 1
            LOGGER.warning("Scoring failed for chunk %d/%d: %s", index + 1, len(chunks), exc)
            continue
        if not tokens:
            LOGGER.debug("Chunk %d/%d returned no tokens", index + 1, len(chunks))
            continue
        mapping = [
            position + chunk.start_item if position >= 0 else -1
            for position in align_tokens(chunk_layout(items, chunk), tokens, 0)
        ]
        applied = accumulate_surprisal(surprisal, tokens, mapping)
        if applied < len(tokens):
            LOGGER.debug(
                "Dropped %d of %d tokens in chunk %d that matched no item",
                len(tokens) - applied,
                len(tokens),
                index + 1,
            )

    if on_progress:
        on_progress(len(chunks), len(chunks))

    return PacingResult(
        items=items,
        durations=compute_durations(items, surprisal, params),
        surprisal=surprisal,
        total_chunks=len(chunks),
        failed_chunks=failed,
        params=params,
    )
