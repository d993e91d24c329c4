"""Map scored sub-word tokens back onto items."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
import math
from typing import List, MutableSequence, Sequence

from .itemize import Item

__all__ = ["ScoredToken", "accumulate_surprisal", "align_tokens", "token_bits"]

LN2 = math.log(2)


@dataclass(frozen=True)
class ScoredToken:
    """A token with its natural-log probability and chunk-relative offsets."""

    token: str
    logprob: float
    start_char: int
    end_char: int


def token_bits(token: ScoredToken) -> float:
    return -token.logprob / LN2


def align_tokens(
    items: Sequence[Item], tokens: Sequence[ScoredToken], text_start_char: int
) -> List[int]:
    """Return, per token, the index of the first overlapping item or ``-1``."""

    ends = [item.end_char for item in items]
    mapping: List[int] = []
    for token in tokens:
        start = text_start_char + token.start_char
        end = text_start_char + token.end_char
        # items are sorted and disjoint: the only candidate is the first item
        # that ends after the token starts
        index = bisect_right(ends, start)
        if index < len(items) and end > items[index].start_char:
            mapping.append(index)
        else:
            mapping.append(-1)
    return mapping


def accumulate_surprisal(
    surprisal: MutableSequence[float],
    tokens: Sequence[ScoredToken],
    mapping: Sequence[int],
) -> int:
    """Add each mapped token's bit cost to its item. Returns the count applied."""

    applied = 0
    for token, index in zip(tokens, mapping):
        if 0 <= index < len(surprisal):
            surprisal[index] += token_bits(token)
            applied += 1
    return applied
