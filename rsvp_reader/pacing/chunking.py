"""Partition items into scoring windows with trailing context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .itemize import Item
from .params import PacingParams

__all__ = ["Chunk", "chunk_text", "context_text", "plan_chunks"]


@dataclass(frozen=True)
class Chunk:
    """Half-open item range to score, plus the read-only context before it."""

    start_item: int
    end_item: int
    context_start_item: int

    def __len__(self) -> int:
        return self.end_item - self.start_item


def plan_chunks(items: Sequence[Item], params: Optional[PacingParams] = None) -> List[Chunk]:
    params = params or PacingParams()
    chunks: List[Chunk] = []
    start = 0
    while start < len(items):
        end = min(start + params.chunk_size_words, len(items))
        context_start = max(0, start - params.chunk_overlap_context_words)
        chunks.append(Chunk(start_item=start, end_item=end, context_start_item=context_start))
        start = end
    return chunks


def chunk_text(items: Sequence[Item], chunk: Chunk) -> str:
    return " ".join(item.text for item in items[chunk.start_item : chunk.end_item])


def context_text(items: Sequence[Item], chunk: Chunk) -> str:
    return " ".join(item.text for item in items[chunk.context_start_item : chunk.start_item])
