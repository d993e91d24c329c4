from __future__ import annotations

import pytest

from rsvp_reader.pacing.durations import base_duration_ms, compute_durations
from rsvp_reader.pacing.itemize import itemize
from rsvp_reader.pacing.params import PacingParams
from rsvp_reader.playback import (
    EmptyInputError,
    EventKind,
    InputEvent,
    Phase,
    PlaybackScheduler,
    Question,
    QuizItem,
    SessionResult,
    focus_index,
)

TEXT = "One two, three. Four five six seven.\n\nEight nine ten."


def _question(correct: int = 0) -> Question:
    return Question(prompt="Which?", choices=("a", "b", "c"), correct_index=correct)


def _scheduler(timer, clock=None, **kwargs):
    items = kwargs.pop("items", itemize(TEXT))
    if clock is not None:
        kwargs["clock"] = clock
    scheduler = PlaybackScheduler(items, timer, **kwargs)
    events = []
    scheduler.subscribe(events.append)
    return scheduler, events


def _kinds(events):
    return [event.kind for event in events]


def test_single_item_finishes_on_first_fire(timer):
    scheduler, events = _scheduler(timer, items=itemize("Solo."))

    scheduler.start()
    timer.fire()

    assert scheduler.phase is Phase.DONE
    assert scheduler.stop() is None
    assert _kinds(events).count(EventKind.DONE) == 1


def test_done_notification_follows_a_short_delay(timer):
    scheduler, events = _scheduler(timer, items=itemize("Solo."), end_delay_ms=1000)
    scheduler.start()
    timer.fire()

    assert EventKind.DONE not in _kinds(events)
    assert timer.delay_ms == 1000
    timer.fire()
    assert _kinds(events)[-1] is EventKind.DONE


def test_start_without_items_raises(timer):
    scheduler, _ = _scheduler(timer, items=[])
    with pytest.raises(EmptyInputError):
        scheduler.start()


def test_plays_through_every_item(timer):
    scheduler, events = _scheduler(timer, end_delay_ms=0)
    scheduler.start()
    for _ in range(len(scheduler.items)):
        timer.fire()

    shown = [event.state.current_index for event in events if event.kind is EventKind.ITEM_CHANGED]
    assert shown == list(range(len(scheduler.items)))
    assert scheduler.phase is Phase.DONE
    assert not timer.armed


def test_delay_without_schedule_is_base_plus_bonus(timer):
    params = PacingParams(target_wpm=300)
    scheduler, _ = _scheduler(timer, params=params)
    scheduler.start()
    assert timer.delay_ms == base_duration_ms(300)

    scheduler.next()
    assert timer.delay_ms == base_duration_ms(300) + params.comma_bonus_ms


@pytest.mark.parametrize("wpm", [50, 1000])
def test_delay_without_schedule_is_clamped_at_speed_extremes(timer, wpm):
    params = PacingParams(target_wpm=wpm)
    items = itemize("Hello, world.\n\nNew paragraph here.")
    scheduler, _ = _scheduler(timer, items=items, params=params)
    scheduler.start()

    delays = [timer.delay_ms]
    for _ in range(len(items) - 1):
        scheduler.next()
        delays.append(timer.delay_ms)

    assert delays == compute_durations(items, None, params)
    assert all(params.min_ms <= delay <= params.max_ms for delay in delays)


def test_doubling_wpm_halves_the_pending_delay(timer):
    params = PacingParams(target_wpm=300)
    items = itemize(TEXT)
    surprisal = [1.0, 9.0, 1.0, 1.0, 2.0, 1.0, 1.0, 1.0, 12.0, 1.0]
    durations = compute_durations(items, surprisal, params)
    assert len(set(durations)) > 2
    scheduler, events = _scheduler(timer, items=items, durations=durations, params=params)

    scheduler.start()
    scheduler.next()
    before = timer.delay_ms
    assert scheduler.set_wpm(600)

    assert timer.delay_ms == before / 2
    assert events[-1].kind is EventKind.PARAMS_CHANGED
    assert events[-1].state.wpm == 600


def test_intensity_change_rescales_only_the_slowdown(timer):
    params = PacingParams(target_wpm=300, gamma=0.6)
    items = itemize("calm surprising calm")
    durations = compute_durations(items, [1.0, 20.0, 1.0], params)
    scheduler, _ = _scheduler(timer, items=items, durations=durations, params=params)
    scheduler.start()
    scheduler.next()

    scheduler.set_gamma(0.0)
    assert timer.delay_ms == pytest.approx(base_duration_ms(300))
    scheduler.set_gamma(1.2)
    assert timer.delay_ms == pytest.approx(base_duration_ms(300) + 2 * (durations[1] - base_duration_ms(300)))


def test_parameter_steps_are_clamped(timer):
    scheduler, _ = _scheduler(timer, params=PacingParams(target_wpm=995, gamma=1.95))
    scheduler.start()

    scheduler.handle(InputEvent.SPEED_UP)
    scheduler.handle(InputEvent.INTENSITY_UP)

    assert scheduler.wpm == 1000
    assert scheduler.gamma == 2.0
    scheduler.handle(InputEvent.INTENSITY_DOWN)
    assert scheduler.gamma == 1.9


def test_pause_cancels_and_resume_rearms_full_duration(timer):
    scheduler, events = _scheduler(timer)
    scheduler.start()
    full = timer.delay_ms

    assert scheduler.handle(InputEvent.TOGGLE_PAUSE)
    assert scheduler.phase is Phase.PAUSED
    assert not timer.armed
    assert "[PAUSED]" in scheduler.status_text()

    assert scheduler.handle(InputEvent.TOGGLE_PAUSE)
    assert scheduler.phase is Phase.PLAYING
    assert timer.delay_ms == full
    assert _kinds(events).count(EventKind.PAUSE_CHANGED) == 2


def test_navigation_while_paused_does_not_arm_timer(timer):
    scheduler, _ = _scheduler(timer)
    scheduler.start()
    scheduler.pause()

    assert scheduler.next()
    assert scheduler.state.current_index == 1
    assert not timer.armed
    assert scheduler.previous()
    assert not scheduler.previous()
    assert scheduler.state.current_index == 0


def test_next_stops_at_last_item(timer):
    scheduler, _ = _scheduler(timer, items=itemize("a b"))
    scheduler.start()
    assert scheduler.next()
    assert not scheduler.next()


def test_quiz_flow_scores_answers_and_ignores_invalid_input(timer, clock):
    quiz = [QuizItem(word_index=1, question=_question(0)), QuizItem(word_index=3, question=_question(2))]
    scheduler, events = _scheduler(timer, clock=clock, quiz=quiz, items=itemize("a b c d e"), end_delay_ms=0)

    scheduler.start()
    timer.fire()
    timer.fire()
    assert scheduler.phase is Phase.QUESTION
    assert not timer.armed
    assert events[-1].kind is EventKind.QUESTION_SHOWN
    assert events[-1].question == quiz[0]

    assert not scheduler.handle(InputEvent.NEXT)
    assert not scheduler.handle(InputEvent.SPEED_UP)
    assert not scheduler.answer(None)
    assert not scheduler.answer(5)
    assert not scheduler.answer(True)
    assert scheduler.phase is Phase.QUESTION

    assert scheduler.handle(InputEvent.ANSWER, 0)
    assert scheduler.state.score == 1
    assert scheduler.state.current_index == 2
    assert scheduler.phase is Phase.PLAYING

    timer.fire()
    timer.fire()
    assert scheduler.phase is Phase.QUESTION
    scheduler.answer(1)
    answered = [event for event in events if event.kind is EventKind.QUESTION_ANSWERED]
    assert [event.correct for event in answered] == [True, False]

    clock.now += 12.5
    timer.fire()
    assert scheduler.result == SessionResult(score=1, total=2, elapsed_seconds=12.5)
    assert scheduler.stop() == scheduler.result
    assert scheduler.result.percentage == 50


def test_consecutive_questions_on_one_word(timer):
    quiz = [QuizItem(word_index=0, question=_question()), QuizItem(word_index=0, question=_question())]
    scheduler, events = _scheduler(timer, quiz=quiz, items=itemize("a b"))
    scheduler.start()
    timer.fire()

    scheduler.answer(0)
    assert scheduler.phase is Phase.QUESTION
    assert scheduler.current_question == quiz[1]
    scheduler.answer(0)
    assert scheduler.phase is Phase.PLAYING
    assert scheduler.state.score == 2


def test_stop_is_idempotent(timer, clock):
    quiz = [QuizItem(word_index=4, question=_question())]
    scheduler, events = _scheduler(timer, clock=clock, quiz=quiz)
    scheduler.start()
    clock.now += 3

    first = scheduler.stop()
    second = scheduler.stop()

    assert first == second == SessionResult(score=0, total=1, elapsed_seconds=3)
    assert _kinds(events).count(EventKind.DONE) == 1
    assert not timer.armed
    assert not scheduler.handle(InputEvent.CANCEL)


def test_cancel_event_stops_playback(timer):
    scheduler, events = _scheduler(timer)
    scheduler.start()
    assert scheduler.handle(InputEvent.CANCEL)
    assert scheduler.phase is Phase.DONE
    assert events[-1].kind is EventKind.DONE


def test_max_items_cuts_playback_short(timer):
    scheduler, _ = _scheduler(timer, max_items=3, end_delay_ms=0)
    scheduler.start()
    timer.fire()
    timer.fire()
    assert scheduler.state.current_index == 2
    timer.fire()
    assert scheduler.phase is Phase.DONE


def test_durations_length_must_match_items(timer):
    with pytest.raises(ValueError):
        PlaybackScheduler(itemize("a b"), timer, durations=[100])


def test_state_is_a_snapshot(timer):
    scheduler, _ = _scheduler(timer)
    scheduler.start()
    snapshot = scheduler.state
    scheduler.next()
    assert snapshot.current_index == 0


@pytest.mark.parametrize("word, expected", [("a", 0), ("to", 0), ("the", 1), ("word", 1), ("reading", 3)])
def test_focus_index(word, expected):
    assert focus_index(word) == expected
