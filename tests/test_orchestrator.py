from __future__ import annotations

import asyncio
import logging
import math

import pytest

from rsvp_reader.pacing.chunking import chunk_text, plan_chunks
from rsvp_reader.pacing.durations import compute_durations
from rsvp_reader.pacing.itemize import itemize
from rsvp_reader.pacing.orchestrator import chunk_layout, compute_schedule, durations_from_surprisal
from rsvp_reader.pacing.params import PacingParams
from rsvp_reader.scoring import tokens_with_offsets


def _text(count: int) -> str:
    return " ".join(f"word{index}" for index in range(count))


def make_score_fn(surprising=(), calls=None, fail_on=()):
    """Score every word at 1 bit, or 10 bits if it appears in *surprising*."""

    async def score_fn(context: str, chunk: str):
        if calls is not None:
            calls.append((context, chunk))
        if len(calls or ()) in fail_on:
            raise RuntimeError("provider unavailable")
        pairs = []
        for position, word in enumerate(chunk.split(" ")):
            bits = 10.0 if word in surprising else 1.0
            pairs.append(((" " if position else "") + word, -bits * math.log(2)))
        return tokens_with_offsets(pairs)

    return score_fn


def test_schedule_slows_down_around_surprising_word():
    result = asyncio.run(compute_schedule(_text(40), make_score_fn({"word20"}), PacingParams()))

    assert result.total_chunks == 3
    assert result.failed_chunks == 0
    assert result.scored
    assert result.surprisal[20] == pytest.approx(10.0)
    assert result.surprisal[0] == pytest.approx(1.0)
    assert result.durations[20] > result.durations[19] > result.durations[0]
    assert result.durations[0] == result.durations[39]


def test_progress_is_reported_per_chunk_and_at_the_end():
    progress = []
    asyncio.run(
        compute_schedule(
            _text(40), make_score_fn(), PacingParams(), lambda done, total: progress.append((done, total))
        )
    )

    assert progress == [(0, 3), (1, 3), (2, 3), (3, 3)]


def test_chunks_are_scored_in_order_with_context():
    calls = []
    asyncio.run(compute_schedule(_text(20), make_score_fn(calls=calls), PacingParams()))

    assert [chunk.split(" ")[0] for _, chunk in calls] == ["word0", "word16"]
    assert calls[0][0] == ""
    assert calls[1][0].split(" ") == [f"word{index}" for index in range(4, 16)]


def test_failed_chunk_keeps_zero_surprisal_and_run_completes(caplog):
    calls = []
    with caplog.at_level(logging.WARNING):
        result = asyncio.run(
            compute_schedule(_text(40), make_score_fn(calls=calls, fail_on=(2,)), PacingParams())
        )

    assert result.failed_chunks == 1
    assert result.scored
    assert result.surprisal[16:32] == [0.0] * 16
    assert len(result.durations) == 40
    assert "Scoring failed for chunk 2/3" in caplog.text


def test_all_chunks_failing_is_not_scored():
    async def broken(context, chunk):
        raise RuntimeError("down")

    result = asyncio.run(compute_schedule(_text(10), broken, PacingParams()))

    assert not result.scored
    assert result.durations == compute_durations(result.items, None, PacingParams())


def test_tokens_past_the_chunk_are_dropped():
    async def chatty(context, chunk):
        return tokens_with_offsets([(chunk, -1.0), (" and more", -50.0)])

    result = asyncio.run(compute_schedule("just two", chatty, PacingParams()))

    assert result.surprisal[0] == pytest.approx(1.0 / math.log(2))
    assert result.surprisal[1] == 0.0


def test_empty_text_gives_empty_result():
    result = asyncio.run(compute_schedule("   ", make_score_fn(), PacingParams()))
    assert result.items == [] and result.durations == [] and result.total_chunks == 0


def test_durations_from_surprisal_recomputes_for_new_params():
    result = asyncio.run(compute_schedule(_text(30), make_score_fn({"word5"}), PacingParams()))
    slower = durations_from_surprisal(result.items, result.surprisal, PacingParams(target_wpm=180))

    assert slower.durations == compute_durations(result.items, result.surprisal, PacingParams(target_wpm=180))
    assert slower.words == [f"word{index}" for index in range(30)]


def test_alignment_is_exact_across_paragraph_breaks():
    text = "First part ends.\n\n\nSecond   part starts here."

    async def score_last_word(context, chunk):
        head, _, last = chunk.rpartition(" ")
        return tokens_with_offsets([(head + " ", 0.0), (last, -8 * math.log(2))])

    result = asyncio.run(compute_schedule(text, score_last_word, PacingParams()))

    assert result.words[-1] == "here."
    assert result.surprisal[-1] == pytest.approx(8.0)
    assert result.surprisal[:-1] == pytest.approx([0.0] * 6)


def test_chunk_layout_matches_chunk_text():
    items = itemize("alpha\n\nbeta   gamma")
    chunk = plan_chunks(items)[0]
    joined = chunk_text(items, chunk)

    for item in chunk_layout(items, chunk):
        assert joined[item.start_char : item.end_char] == item.text
