"""Qt-backed one-shot timer for the playback scheduler."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer


class QtTimer:
    """Single-shot ``QTimer`` holding at most one pending callback."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.timeout.connect(self._fire)
        self._callback: Optional[Callable[[], None]] = None

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(max(0, int(round(delay_ms))))

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


__all__ = ["QtTimer"]
