from __future__ import annotations

import math

import pytest

from rsvp_reader.pacing.align import ScoredToken, accumulate_surprisal, align_tokens, token_bits
from rsvp_reader.pacing.chunking import chunk_text, context_text, plan_chunks
from rsvp_reader.pacing.itemize import itemize
from rsvp_reader.pacing.params import PacingParams


def _words(count: int) -> str:
    return " ".join(f"w{index}" for index in range(count))


def test_hundred_items_make_seven_chunks():
    items = itemize(_words(100))
    chunks = plan_chunks(items, PacingParams(chunk_size_words=16, chunk_overlap_context_words=12))

    assert len(chunks) == math.ceil(100 / 16) == 7
    assert chunks[0].start_item == 0
    assert chunks[0].context_start_item == 0
    assert (chunks[-1].start_item, chunks[-1].end_item) == (96, 100)


def test_chunks_partition_items_with_bounded_context():
    params = PacingParams(chunk_size_words=5, chunk_overlap_context_words=3)
    items = itemize(_words(23))
    chunks = plan_chunks(items, params)

    covered = [index for chunk in chunks for index in range(chunk.start_item, chunk.end_item)]
    assert covered == list(range(23))
    for chunk in chunks:
        assert 1 <= len(chunk) <= 5
        assert chunk.start_item - chunk.context_start_item <= 3
        assert chunk.context_start_item >= 0


def test_no_items_no_chunks():
    assert plan_chunks([]) == []


def test_chunk_and_context_text():
    items = itemize(_words(30))
    second = plan_chunks(items)[1]

    assert chunk_text(items, second) == " ".join(f"w{index}" for index in range(16, 30))
    assert context_text(items, second) == " ".join(f"w{index}" for index in range(4, 16))


def test_token_bits_converts_natural_log():
    token = ScoredToken(token="x", logprob=math.log(0.25), start_char=0, end_char=1)
    assert token_bits(token) == pytest.approx(2.0)


def test_align_tokens_maps_to_first_overlapping_item():
    text = "alpha beta gamma"
    items = itemize(text)
    tokens = [
        ScoredToken("alp", -1.0, 0, 3),
        ScoredToken("ha", -1.0, 3, 5),
        ScoredToken(" be", -1.0, 5, 8),
        ScoredToken("ta gam", -1.0, 8, 14),
        ScoredToken("ma", -1.0, 14, 16),
        ScoredToken("!!", -1.0, 16, 18),
    ]

    assert align_tokens(items, tokens, 0) == [0, 0, 1, 1, 2, -1]


def test_align_tokens_applies_text_offset():
    items = itemize("one two three")
    tokens = [ScoredToken("three", -1.0, 0, 5)]
    assert align_tokens(items, tokens, 8) == [2]


def test_whitespace_only_token_is_dropped():
    items = itemize("one  two")
    tokens = [ScoredToken("  ", -1.0, 3, 5)]
    assert align_tokens(items, tokens, 0) == [-1]


def test_accumulate_surprisal_sums_bits_and_skips_unmapped():
    surprisal = [0.0, 0.0]
    tokens = [
        ScoredToken("a", math.log(0.5), 0, 1),
        ScoredToken("b", math.log(0.5), 1, 2),
        ScoredToken("c", math.log(0.125), 3, 4),
        ScoredToken("?", math.log(0.5), 9, 10),
    ]

    applied = accumulate_surprisal(surprisal, tokens, [0, 0, 1, -1])

    assert applied == 3
    assert surprisal == pytest.approx([2.0, 3.0])
