"""Persisted reader preferences."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import json
import logging
import os
from pathlib import Path
from typing import Optional

from .pacing.params import MAX_GAMMA, MAX_WPM, MIN_GAMMA, MIN_WPM

__all__ = ["HIGHLIGHT_COLORS", "ReaderConfig", "config_path", "load_config", "save_config"]

LOGGER = logging.getLogger(__name__)

HIGHLIGHT_COLORS = ("red", "green", "yellow", "blue", "magenta", "cyan", "white")


def config_path() -> Path:
    return Path(os.getenv("RSVP_READER_CONFIG", Path.home() / ".rsvp_reader.json"))


@dataclass
class ReaderConfig:
    """Preferences that survive between sessions."""

    wpm: int = 300
    gamma: float = 0.6
    highlight_color: str = "red"

    def __post_init__(self) -> None:
        self.wpm = int(min(max(int(self.wpm), MIN_WPM), MAX_WPM))
        self.gamma = float(min(max(float(self.gamma), MIN_GAMMA), MAX_GAMMA))
        if self.highlight_color not in HIGHLIGHT_COLORS:
            LOGGER.warning("Unknown highlight colour %r; using red", self.highlight_color)
            self.highlight_color = "red"


def load_config(path: Optional[Path] = None) -> ReaderConfig:
    path = path or config_path()
    if not path.exists():
        return ReaderConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        known = {f.name for f in fields(ReaderConfig)}
        return ReaderConfig(**{key: value for key, value in data.items() if key in known})
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        LOGGER.warning("Ignoring unreadable config %s: %s", path, exc)
        return ReaderConfig()


def save_config(config: ReaderConfig, path: Optional[Path] = None) -> bool:
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("Could not save config to %s: %s", path, exc)
        return False
    return True
