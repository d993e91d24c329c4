from __future__ import annotations

import asyncio
import json

from rsvp_reader.cache import ResultCache
from rsvp_reader.pacing.durations import compute_durations
from rsvp_reader.pacing.itemize import itemize
from rsvp_reader.pacing.orchestrator import compute_schedule
from rsvp_reader.pacing.params import PacingParams
from rsvp_reader.scoring import tokens_with_offsets

TEXT = "The quick brown fox jumps over the lazy dog.\n\nIt was not amused, apparently."


async def _score(context, chunk):
    return tokens_with_offsets(
        ((" " if i else "") + word, -0.3 * (len(word) + i)) for i, word in enumerate(chunk.split(" "))
    )


def test_round_trip_reproduces_durations(tmp_path):
    params = PacingParams(gamma=1.1)
    cache = ResultCache(tmp_path)
    original = asyncio.run(compute_schedule(TEXT, _score, params))

    path = cache.put(TEXT, original.items, original.surprisal)
    entry = cache.get(TEXT)

    assert path is not None and path.exists()
    assert entry is not None
    assert entry.items == original.items
    assert compute_durations(entry.items, entry.surprisal, params) == original.durations


def test_key_is_content_addressed(tmp_path):
    cache = ResultCache(tmp_path)
    assert cache.key(TEXT) == cache.key(str(TEXT))
    assert cache.key(TEXT) != cache.key(TEXT + " ")
    assert len(cache.key(TEXT)) == 16


def test_missing_entry_is_a_miss(tmp_path):
    assert ResultCache(tmp_path / "absent").get(TEXT) is None


def test_length_mismatch_is_a_miss(tmp_path):
    cache = ResultCache(tmp_path)
    items = itemize(TEXT)
    path = cache.put(TEXT, items, [1.0] * len(items))
    data = json.loads(path.read_text(encoding="utf-8"))
    data["content_length"] += 1
    path.write_text(json.dumps(data), encoding="utf-8")

    assert cache.get(TEXT) is None


def test_corrupt_entry_is_a_miss(tmp_path, caplog):
    cache = ResultCache(tmp_path)
    cache.path_for(TEXT).write_text("{not json", encoding="utf-8")

    assert cache.get(TEXT) is None
    assert "unreadable cache entry" in caplog.text


def test_inconsistent_vectors_are_a_miss(tmp_path):
    cache = ResultCache(tmp_path)
    items = itemize(TEXT)
    cache.put(TEXT, items, [1.0] * (len(items) - 1))

    assert cache.get(TEXT) is None


def test_clear_removes_entries(tmp_path):
    cache = ResultCache(tmp_path)
    cache.put("one", itemize("one"), [1.0])
    cache.put("two", itemize("two"), [2.0])

    assert cache.clear() == 2
    assert cache.get("one") is None
    assert ResultCache(tmp_path / "never-created").clear() == 0


def test_default_directory_comes_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RSVP_READER_CACHE", str(tmp_path / "scores"))
    assert ResultCache().base_dir == tmp_path / "scores"
