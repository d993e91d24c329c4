"""Qt window that renders playback and feeds key presses to the scheduler."""

from __future__ import annotations

import html
from typing import Dict, List, Optional, Sequence, Tuple

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCloseEvent, QFont, QKeyEvent
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QVBoxLayout,
    QWidget,
)

from ..pacing.itemize import Item
from ..pacing.params import PacingParams
from ..playback import (
    EventKind,
    InputEvent,
    Phase,
    PlaybackEvent,
    PlaybackScheduler,
    QuizItem,
    SessionResult,
    focus_index,
)
from .resources import app_icon
from .timer import QtTimer

HIGHLIGHT_HEX = {
    "red": "#e03c31",
    "green": "#3cb371",
    "yellow": "#e6c229",
    "blue": "#3d7de0",
    "magenta": "#c03cc0",
    "cyan": "#2bb5c4",
    "white": "#ffffff",
}

KEY_EVENTS: Dict[int, InputEvent] = {
    Qt.Key.Key_Left.value: InputEvent.PREVIOUS,
    Qt.Key.Key_Right.value: InputEvent.NEXT,
    Qt.Key.Key_Up.value: InputEvent.SPEED_UP,
    Qt.Key.Key_Down.value: InputEvent.SPEED_DOWN,
    Qt.Key.Key_BracketRight.value: InputEvent.INTENSITY_UP,
    Qt.Key.Key_Plus.value: InputEvent.INTENSITY_UP,
    Qt.Key.Key_BracketLeft.value: InputEvent.INTENSITY_DOWN,
    Qt.Key.Key_Minus.value: InputEvent.INTENSITY_DOWN,
    Qt.Key.Key_Space.value: InputEvent.TOGGLE_PAUSE,
    Qt.Key.Key_Escape.value: InputEvent.CANCEL,
}


def translate_key(
    key: int, modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier
) -> Optional[Tuple[InputEvent, Optional[int]]]:
    """Map a Qt key code onto a scheduler input event and optional answer index."""

    if key == Qt.Key.Key_C.value and modifiers & Qt.KeyboardModifier.ControlModifier:
        return InputEvent.CANCEL, None
    if Qt.Key.Key_1.value <= key <= Qt.Key.Key_9.value:
        return InputEvent.ANSWER, key - Qt.Key.Key_1.value
    if Qt.Key.Key_A.value <= key <= Qt.Key.Key_I.value:
        return InputEvent.ANSWER, key - Qt.Key.Key_A.value
    event = KEY_EVENTS.get(key)
    if event is None:
        return None
    return event, None


def word_markup(word: str, color: str) -> str:
    """Rich-text for *word* with its focus letter coloured and centred.

    Padding with non-breaking spaces on the shorter side keeps the focus letter
    in the middle of a monospace label.
    """

    focus = focus_index(word)
    before, after = focus, len(word) - focus - 1
    left_pad = "&nbsp;" * max(0, after - before)
    right_pad = "&nbsp;" * max(0, before - after)
    head = html.escape(word[:focus])
    letter = html.escape(word[focus : focus + 1])
    tail = html.escape(word[focus + 1 :])
    return f'{left_pad}{head}<span style="color:{color}">{letter}</span>{tail}{right_pad}'


class ReaderWindow(QMainWindow):
    """Presents one word at a time with status, progress and quiz prompts."""

    finished = Signal(object)

    def __init__(
        self,
        items: Sequence[Item],
        *,
        durations: Optional[Sequence[int]] = None,
        params: Optional[PacingParams] = None,
        quiz: Sequence[QuizItem] = (),
        max_items: int = 0,
        highlight_color: str = "red",
        show_progress: bool = True,
    ) -> None:
        super().__init__()
        self._highlight = HIGHLIGHT_HEX.get(highlight_color, HIGHLIGHT_HEX["red"])
        self._show_progress = show_progress
        self.timer = QtTimer(self)
        self.scheduler = PlaybackScheduler(
            items,
            self.timer,
            durations=durations,
            params=params,
            quiz=quiz,
            max_items=max_items,
        )
        self.scheduler.subscribe(self._on_playback_event)
        self._build_ui()
        self.setWindowIcon(app_icon())

    # ----- UI setup -----
    def _build_ui(self) -> None:
        self.setWindowTitle("RSVP Reader")
        self.resize(900, 420)
        central = QWidget(self)
        central.setStyleSheet("background-color: #111418; color: #e8e8e8;")
        self.setCentralWidget(central)
        root_layout = QVBoxLayout(central)

        top_row = QHBoxLayout()
        top_row.addStretch(1)
        self.statusLabel = QLabel(central)
        top_row.addWidget(self.statusLabel)
        root_layout.addLayout(top_row)

        root_layout.addStretch(1)
        self.wordLabel = QLabel(central)
        self.wordLabel.setTextFormat(Qt.TextFormat.RichText)
        self.wordLabel.setAlignment(Qt.AlignmentFlag.AlignCenter)
        font = QFont("Monospace")
        font.setStyleHint(QFont.StyleHint.TypeWriter)
        font.setPointSize(40)
        self.wordLabel.setFont(font)
        root_layout.addWidget(self.wordLabel)
        root_layout.addStretch(1)

        self.quizGroup = QGroupBox("Comprehension check", central)
        quiz_layout = QVBoxLayout(self.quizGroup)
        self.questionLabel = QLabel(self.quizGroup)
        self.questionLabel.setWordWrap(True)
        quiz_layout.addWidget(self.questionLabel)
        self.choiceLabels: List[QLabel] = []
        self.choicesLayout = QVBoxLayout()
        quiz_layout.addLayout(self.choicesLayout)
        self.quizGroup.hide()
        root_layout.addWidget(self.quizGroup)

        self.feedbackLabel = QLabel(central)
        self.feedbackLabel.setAlignment(Qt.AlignmentFlag.AlignCenter)
        root_layout.addWidget(self.feedbackLabel)

        self.progressBar = QProgressBar(central)
        self.progressBar.setRange(0, 1000)
        self.progressBar.setTextVisible(False)
        self.progressBar.setVisible(self._show_progress)
        root_layout.addWidget(self.progressBar)

        self.hintLabel = QLabel(
            "←/→ navigate   ↑/↓ speed   [/] intensity   space pause   esc quit",
            central,
        )
        self.hintLabel.setStyleSheet("color: #777;")
        root_layout.addWidget(self.hintLabel)

    # ----- Playback -----
    def start(self) -> None:
        self.scheduler.start()

    def result(self) -> Optional[SessionResult]:
        return self.scheduler.result

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        translated = translate_key(int(event.key()), event.modifiers())
        if translated is None:
            super().keyPressEvent(event)
            return
        input_event, choice = translated
        if input_event is InputEvent.ANSWER and self.scheduler.phase is not Phase.QUESTION:
            super().keyPressEvent(event)
            return
        self.scheduler.handle(input_event, choice)
        event.accept()

    def closeEvent(self, event: QCloseEvent) -> None:  # type: ignore[override]
        self.scheduler.stop()
        super().closeEvent(event)

    def _on_playback_event(self, event: PlaybackEvent) -> None:
        if event.kind is EventKind.ITEM_CHANGED:
            self._render_word()
        elif event.kind is EventKind.QUESTION_SHOWN and event.question is not None:
            self._render_question(event.question)
        elif event.kind is EventKind.QUESTION_ANSWERED:
            self.feedbackLabel.setText("Correct!" if event.correct else "Not quite.")
            self.quizGroup.hide()
        elif event.kind is EventKind.DONE:
            self.timer.cancel()
            self.finished.emit(self.scheduler.result)
            self.close()
            return
        self._render_status()

    def _render_word(self) -> None:
        item = self.scheduler.current_item
        if item is None:
            return
        self.wordLabel.setText(word_markup(item.text, self._highlight))
        self.progressBar.setValue(int(self.scheduler.progress * 1000))

    def _render_status(self) -> None:
        self.statusLabel.setText(self.scheduler.status_text())

    def _render_question(self, quiz_item: QuizItem) -> None:
        question = quiz_item.question
        self.questionLabel.setText(html.escape(question.prompt))
        for label in self.choiceLabels:
            self.choicesLayout.removeWidget(label)
            label.deleteLater()
        self.choiceLabels = []
        for number, choice in enumerate(question.choices, start=1):
            label = QLabel(f"{number}. {choice}", self.quizGroup)
            label.setTextFormat(Qt.TextFormat.PlainText)
            self.choicesLayout.addWidget(label)
            self.choiceLabels.append(label)
        self.feedbackLabel.clear()
        self.quizGroup.show()


__all__ = ["ReaderWindow", "translate_key", "word_markup"]
