"""Word-by-word playback driven by a single one-shot timer.

The scheduler owns all playback state and never renders anything itself. It
arms at most one timer at a time, reacts to timer fires and discrete input
events, and publishes :class:`PlaybackEvent` notifications for a renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import logging
import time
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from .pacing.durations import (
    base_duration_ms,
    clamp_duration,
    effective_duration_ms,
    punctuation_bonus,
)
from .pacing.itemize import Item
from .pacing.params import MAX_GAMMA, MAX_WPM, MIN_GAMMA, MIN_WPM, PacingParams

__all__ = [
    "EmptyInputError",
    "EventKind",
    "InputEvent",
    "PlaybackEvent",
    "PlaybackScheduler",
    "PlaybackState",
    "Phase",
    "Question",
    "QuizItem",
    "SessionResult",
    "Timer",
    "focus_index",
]

LOGGER = logging.getLogger(__name__)

WPM_STEP = 10
GAMMA_STEP = 0.1
END_DELAY_MS = 1000


class EmptyInputError(ValueError):
    """Raised when playback is started without anything to show."""


class Timer(Protocol):
    """One-shot timer. Starting it again replaces any pending callback."""

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        ...

    def cancel(self) -> None:
        ...


class Phase(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    QUESTION = "question"
    DONE = "done"


class EventKind(Enum):
    ITEM_CHANGED = "item_changed"
    PARAMS_CHANGED = "params_changed"
    PAUSE_CHANGED = "pause_changed"
    QUESTION_SHOWN = "question_shown"
    QUESTION_ANSWERED = "question_answered"
    DONE = "done"


class InputEvent(Enum):
    PREVIOUS = "previous"
    NEXT = "next"
    SPEED_UP = "speed_up"
    SPEED_DOWN = "speed_down"
    INTENSITY_UP = "intensity_up"
    INTENSITY_DOWN = "intensity_down"
    TOGGLE_PAUSE = "toggle_pause"
    ANSWER = "answer"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Question:
    prompt: str
    choices: Sequence[str]
    correct_index: int


@dataclass(frozen=True)
class QuizItem:
    """A question shown once playback reaches ``word_index``."""

    word_index: int
    question: Question


@dataclass(frozen=True)
class SessionResult:
    score: int
    total: int
    elapsed_seconds: float

    @property
    def percentage(self) -> int:
        if not self.total:
            return 0
        return int(round(100 * self.score / self.total))


@dataclass
class PlaybackState:
    current_index: int = 0
    running: bool = False
    paused: bool = False
    in_question_mode: bool = False
    current_question_index: int = 0
    score: int = 0
    elapsed: float = 0.0
    wpm: int = 0
    gamma: float = 0.0
    phase: Phase = Phase.IDLE


@dataclass(frozen=True)
class PlaybackEvent:
    kind: EventKind
    state: PlaybackState
    question: Optional[QuizItem] = None
    correct: Optional[bool] = None


Listener = Callable[[PlaybackEvent], None]


def focus_index(word: str) -> int:
    """Index of the letter to highlight: the middle one, leaning left."""

    if len(word) <= 2:
        return 0
    return (len(word) - 1) // 2


class PlaybackScheduler:
    """State machine presenting one item at a time.

    ``durations`` is the precomputed schedule for ``params``; when it is
    omitted each item is shown for the plain words-per-minute duration plus its
    punctuation bonus.
    """

    def __init__(
        self,
        items: Sequence[Item],
        timer: Timer,
        *,
        durations: Optional[Sequence[int]] = None,
        params: Optional[PacingParams] = None,
        quiz: Iterable[QuizItem] = (),
        max_items: int = 0,
        clock: Callable[[], float] = time.monotonic,
        end_delay_ms: float = END_DELAY_MS,
    ) -> None:
        if durations and len(durations) != len(items):
            raise ValueError(
                f"durations has {len(durations)} entries but there are {len(items)} items"
            )
        self.items: List[Item] = list(items)
        self.timer = timer
        self.params = params or PacingParams()
        self.durations: Optional[List[int]] = list(durations) if durations else None
        self.quiz: List[QuizItem] = sorted(quiz, key=lambda entry: entry.word_index)
        self.max_items = max_items
        self.end_delay_ms = end_delay_ms
        self._clock = clock
        self._original_wpm = self.params.target_wpm
        self._original_gamma = self.params.gamma
        self._state = PlaybackState(wpm=self.params.target_wpm, gamma=self.params.gamma)
        self._listeners: List[Listener] = []
        self._started_at: Optional[float] = None
        self._result: Optional[SessionResult] = None
        self._done_emitted = False

    # Observation -----------------------------------------------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def wpm(self) -> int:
        return self._state.wpm

    @property
    def gamma(self) -> float:
        return self._state.gamma

    @property
    def current_item(self) -> Optional[Item]:
        if not self.items:
            return None
        return self.items[self._state.current_index]

    @property
    def current_question(self) -> Optional[QuizItem]:
        if self._state.phase is not Phase.QUESTION:
            return None
        return self.quiz[self._state.current_question_index]

    @property
    def progress(self) -> float:
        if len(self.items) <= 1:
            return 1.0 if self._state.phase is Phase.DONE else 0.0
        return self._state.current_index / (len(self.items) - 1)

    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        if self._state.phase is Phase.DONE:
            return self._state.elapsed
        return self._clock() - self._started_at

    def status_text(self) -> str:
        text = f"{self._state.wpm} WPM  γ {self._state.gamma:.1f}"
        if self._state.phase is Phase.PAUSED:
            text += " [PAUSED]"
        if self.quiz:
            text += f"  Score {self._state.score}/{len(self.quiz)}"
        return text

    def current_delay_ms(self) -> float:
        """Display duration for the current item under the live parameters."""

        index = self._state.current_index
        if self.durations is not None:
            return effective_duration_ms(
                self.durations[index],
                original_wpm=self._original_wpm,
                current_wpm=self._state.wpm,
                original_gamma=self._original_gamma,
                current_gamma=self._state.gamma,
            )
        item = self.items[index]
        plain = base_duration_ms(self._state.wpm) + punctuation_bonus(item, self.params)
        return float(clamp_duration(plain, self.params))

    # Lifecycle -------------------------------------------------------------------
    def start(self) -> None:
        if not self.items:
            raise EmptyInputError("No words to display")
        if self._state.phase is not Phase.IDLE:
            LOGGER.debug("start() ignored in phase %s", self._state.phase.value)
            return
        self._started_at = self._clock()
        self._state.phase = Phase.PLAYING
        self._state.running = True
        self._emit(EventKind.ITEM_CHANGED)
        self._arm()

    def stop(self) -> Optional[SessionResult]:
        """End the session from any phase. Safe to call repeatedly."""

        if self._state.phase is not Phase.DONE:
            self._finish(delay_ms=0)
        elif not self._done_emitted:
            self.timer.cancel()
            self._emit_done()
        return self._result

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    # Input -----------------------------------------------------------------------
    def handle(self, event: InputEvent, choice: Optional[int] = None) -> bool:
        """Apply an abstract input event. Returns True if it changed anything."""

        if event is InputEvent.PREVIOUS:
            return self.previous()
        if event is InputEvent.NEXT:
            return self.next()
        if event is InputEvent.SPEED_UP:
            return self.adjust_wpm(WPM_STEP)
        if event is InputEvent.SPEED_DOWN:
            return self.adjust_wpm(-WPM_STEP)
        if event is InputEvent.INTENSITY_UP:
            return self.adjust_gamma(GAMMA_STEP)
        if event is InputEvent.INTENSITY_DOWN:
            return self.adjust_gamma(-GAMMA_STEP)
        if event is InputEvent.TOGGLE_PAUSE:
            return self.toggle_pause()
        if event is InputEvent.ANSWER:
            return self.answer(choice)
        if event is InputEvent.CANCEL:
            already_done = self._state.phase is Phase.DONE and self._done_emitted
            self.stop()
            return not already_done
        raise ValueError(f"Unknown input event: {event!r}")

    def pause(self) -> bool:
        if self._state.phase is not Phase.PLAYING:
            return False
        self.timer.cancel()
        self._state.phase = Phase.PAUSED
        self._state.paused = True
        self._emit(EventKind.PAUSE_CHANGED)
        return True

    def resume(self) -> bool:
        if self._state.phase is not Phase.PAUSED:
            return False
        self._state.phase = Phase.PLAYING
        self._state.paused = False
        self._emit(EventKind.PAUSE_CHANGED)
        self._arm()
        return True

    def toggle_pause(self) -> bool:
        if self._state.phase is Phase.PAUSED:
            return self.resume()
        return self.pause()

    def previous(self) -> bool:
        if not self._navigable() or self._state.current_index == 0:
            return False
        self._state.current_index -= 1
        self._emit(EventKind.ITEM_CHANGED)
        self._reschedule()
        return True

    def next(self) -> bool:
        if not self._navigable() or self._state.current_index >= len(self.items) - 1:
            return False
        self._state.current_index += 1
        self._emit(EventKind.ITEM_CHANGED)
        self._reschedule()
        return True

    def adjust_wpm(self, delta: int) -> bool:
        return self.set_wpm(self._state.wpm + delta)

    def set_wpm(self, value: float) -> bool:
        if not self._navigable():
            return False
        self._state.wpm = int(min(max(round(value), MIN_WPM), MAX_WPM))
        self._emit(EventKind.PARAMS_CHANGED)
        self._reschedule()
        return True

    def adjust_gamma(self, delta: float) -> bool:
        return self.set_gamma(self._state.gamma + delta)

    def set_gamma(self, value: float) -> bool:
        if not self._navigable():
            return False
        self._state.gamma = round(min(max(value, MIN_GAMMA), MAX_GAMMA), 2)
        self._emit(EventKind.PARAMS_CHANGED)
        self._reschedule()
        return True

    def answer(self, choice: Optional[int]) -> bool:
        """Answer the pending quiz prompt. Invalid choices are ignored."""

        if self._state.phase is not Phase.QUESTION:
            return False
        quiz_item = self.quiz[self._state.current_question_index]
        if isinstance(choice, bool) or not isinstance(choice, int):
            return False
        if not 0 <= choice < len(quiz_item.question.choices):
            return False
        correct = choice == quiz_item.question.correct_index
        if correct:
            self._state.score += 1
        self._state.current_question_index += 1
        self._emit(EventKind.QUESTION_ANSWERED, question=quiz_item, correct=correct)
        if self._question_due():
            self._emit(EventKind.QUESTION_SHOWN, question=self.current_question)
            return True
        self._state.phase = Phase.PLAYING
        self._state.in_question_mode = False
        self._advance()
        return True

    # Internals -------------------------------------------------------------------
    def _navigable(self) -> bool:
        return self._state.phase in (Phase.PLAYING, Phase.PAUSED)

    def _arm(self) -> None:
        self.timer.cancel()
        self.timer.start(self.current_delay_ms(), self._on_timer)

    def _reschedule(self) -> None:
        self.timer.cancel()
        if self._state.phase is Phase.PLAYING:
            self._arm()

    def _on_timer(self) -> None:
        if self._state.phase is not Phase.PLAYING:
            return
        if self._question_due():
            self.timer.cancel()
            self._state.phase = Phase.QUESTION
            self._state.in_question_mode = True
            self._emit(EventKind.QUESTION_SHOWN, question=self.current_question)
            return
        self._advance()

    def _advance(self) -> None:
        if self._at_end():
            self._finish(delay_ms=self.end_delay_ms)
            return
        self._state.current_index += 1
        self._emit(EventKind.ITEM_CHANGED)
        self._arm()

    def _at_end(self) -> bool:
        index = self._state.current_index
        if index >= len(self.items) - 1:
            return True
        return bool(self.max_items) and index >= self.max_items - 1

    def _question_due(self) -> bool:
        position = self._state.current_question_index
        return position < len(self.quiz) and self.quiz[position].word_index <= self._state.current_index

    def _finish(self, delay_ms: float) -> None:
        self.timer.cancel()
        if self._started_at is not None:
            self._state.elapsed = self._clock() - self._started_at
        self._state.phase = Phase.DONE
        self._state.running = False
        self._state.paused = False
        self._state.in_question_mode = False
        if self.quiz:
            self._result = SessionResult(
                score=self._state.score,
                total=len(self.quiz),
                elapsed_seconds=self._state.elapsed,
            )
        if delay_ms > 0:
            # the last word stays visible briefly before the session closes
            self.timer.start(delay_ms, self._emit_done)
        else:
            self._emit_done()

    def _emit_done(self) -> None:
        if self._done_emitted:
            return
        self._done_emitted = True
        self._emit(EventKind.DONE)

    def _emit(
        self,
        kind: EventKind,
        *,
        question: Optional[QuizItem] = None,
        correct: Optional[bool] = None,
    ) -> None:
        event = PlaybackEvent(kind=kind, state=self.state, question=question, correct=correct)
        for listener in list(self._listeners):
            listener(event)
