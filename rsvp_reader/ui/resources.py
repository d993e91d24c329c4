"""Embedded resources for the RSVP reader GUI."""

from __future__ import annotations

from functools import lru_cache

from PySide6.QtGui import QColor, QIcon, QPainter, QPixmap


@lru_cache(maxsize=1)
def app_icon() -> QIcon:
    """Return a generated application icon: a word bar with a red focus mark."""

    size = 96
    pixmap = QPixmap(size, size)
    pixmap.fill(QColor("#111418"))

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(QColor("#e8e8e8"))
    painter.setBrush(QColor("#e8e8e8"))
    bar_height = size * 0.14
    painter.drawRoundedRect(
        size * 0.12,
        (size - bar_height) / 2,
        size * 0.76,
        bar_height,
        bar_height / 2,
        bar_height / 2,
    )
    painter.setPen(QColor("#e03c31"))
    painter.setBrush(QColor("#e03c31"))
    painter.drawRect(size * 0.46, size * 0.22, size * 0.08, size * 0.56)
    painter.end()

    return QIcon(pixmap)


__all__ = ["app_icon"]
