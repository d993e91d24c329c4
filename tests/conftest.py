from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeTimer:
    """Records the armed delay and fires the callback on demand."""

    def __init__(self) -> None:
        self.delay_ms: Optional[float] = None
        self.callback: Optional[Callable[[], None]] = None
        self.history: List[Tuple[str, Optional[float]]] = []

    @property
    def armed(self) -> bool:
        return self.callback is not None

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.history.append(("start", delay_ms))

    def cancel(self) -> None:
        self.delay_ms = None
        self.callback = None
        self.history.append(("cancel", None))

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        self.delay_ms = None
        assert callback is not None, "timer fired while not armed"
        callback()


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
