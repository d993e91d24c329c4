"""Content-addressed store for per-item surprisal vectors."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import json
import logging
import os
from pathlib import Path
import time
from typing import List, Optional, Sequence

from .pacing.itemize import Item

__all__ = ["CacheEntry", "ResultCache", "default_cache_dir"]

LOGGER = logging.getLogger(__name__)


def default_cache_dir() -> Path:
    return Path(os.getenv("RSVP_READER_CACHE", Path.home() / ".cache" / "rsvp_reader"))


@dataclass
class CacheEntry:
    """A previously scored text: its items and raw surprisal in bits."""

    content_length: int
    timestamp: float
    items: List[Item]
    surprisal: List[float]


class ResultCache:
    """Filesystem cache keyed by a hash of the source text.

    Only surprisal is stored. Durations depend on the current parameters and
    are recomputed on every read.
    """

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else default_cache_dir()

    def key(self, text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]

    def path_for(self, text: str) -> Path:
        return self.base_dir / f"{self.key(text)}.json"

    def get(self, text: str) -> Optional[CacheEntry]:
        path = self.path_for(text)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if data.get("content_length") != len(text):
                LOGGER.debug("Ignoring cache entry %s with mismatched length", path.name)
                return None
            entry = CacheEntry(
                content_length=int(data["content_length"]),
                timestamp=float(data.get("timestamp", 0.0)),
                items=[Item.from_dict(raw) for raw in data["items"]],
                surprisal=[float(value) for value in data["surprisal"]],
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            LOGGER.warning("Ignoring unreadable cache entry %s: %s", path, exc)
            return None
        if len(entry.items) != len(entry.surprisal):
            LOGGER.warning("Ignoring inconsistent cache entry %s", path)
            return None
        LOGGER.debug("Cache hit for %s (%d items)", path.name, len(entry.items))
        return entry

    def put(self, text: str, items: Sequence[Item], surprisal: Sequence[float]) -> Optional[Path]:
        path = self.path_for(text)
        payload = {
            "content_length": len(text),
            "timestamp": time.time(),
            "items": [item.to_dict() for item in items],
            "surprisal": list(surprisal),
        }
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Could not write cache entry %s: %s", path, exc)
            return None
        LOGGER.debug("Stored %d items in cache entry %s", len(items), path.name)
        return path

    def clear(self) -> int:
        if not self.base_dir.exists():
            return 0
        removed = 0
        for path in self.base_dir.glob("*.json"):
            try:
                path.unlink()
            except OSError as exc:
                LOGGER.warning("Could not remove cache entry %s: %s", path, exc)
                continue
            removed += 1
        return removed
