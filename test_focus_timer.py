import pytest

from dreamseeker.scheduling.exceptions import TimerStateError
from dreamseeker.scheduling.focus_timer import FocusTimer, TimerStatus


@pytest.fixture
def timer(loop, clock):
    timer = FocusTimer(duration=100, loop=loop, clock=clock)
    yield timer
    timer.dispose()


def test_starts_idle_with_full_duration(timer):
    assert timer.status == TimerStatus.IDLE
    assert timer.remaining == 100
    assert timer.progress == 0


def test_default_duration_is_twenty_five_minutes(loop, clock):
    assert FocusTimer(loop=loop, clock=clock).duration == 25 * 60


def test_ticks_once_per_second_while_running(timer, loop):
    timer.start()
    loop.advance(3_000)

    assert timer.status == TimerStatus.RUNNING
    assert timer.remaining == 97
    assert timer.progress == pytest.approx(0.03)
    assert len(loop.pending) == 1


def test_pause_stops_ticking_and_resume_continues(timer, loop):
    timer.start()
    loop.advance(10_000)
    timer.pause()
    loop.advance(30_000)

    assert timer.status == TimerStatus.PAUSED
    assert timer.remaining == 90
    assert loop.pending == []

    timer.resume()
    loop.advance(5_000)
    assert timer.remaining == 85


def test_background_time_is_subtracted_in_one_step(timer, loop, clock):
    timer.start()
    timer.on_app_state("background")
    assert loop.pending == []

    clock.now += 40_000
    timer.on_app_state("active")

    assert timer.remaining == 60
    assert timer.status == TimerStatus.RUNNING
    assert len(loop.pending) == 1


def test_inactive_then_background_keeps_first_capture(timer, clock):
    timer.start()
    timer.on_app_state("inactive")
    clock.now += 5_000
    timer.on_app_state("background")
    clock.now += 5_500
    timer.on_app_state("active")

    assert timer.remaining == 90


def test_pause_while_backgrounded_settles_suspended_time(timer, loop, clock):
    timer.start()
    timer.on_app_state("background")
    clock.now += 10_000
    timer.pause()

    assert timer.status == TimerStatus.PAUSED
    assert timer.remaining == 90

    clock.now += 60_000
    timer.resume()
    timer.on_app_state("active")
    assert timer.remaining == 90

    # A fresh suspension is captured after the resume
    timer.on_app_state("background")
    clock.now += 5_000
    timer.on_app_state("active")
    assert timer.remaining == 85
    assert len(loop.pending) == 1


def test_pause_after_suspension_past_the_end_completes(timer, loop, clock):
    timer.start()
    timer.on_app_state("background")
    clock.now += 150_000
    timer.pause()

    assert timer.status == TimerStatus.COMPLETE
    assert timer.remaining == 0
    assert loop.pending == []


def test_resume_after_deadline_clamps_and_completes(timer, loop, clock):
    timer.start()
    timer.on_app_state("background")
    clock.now += 10 * 60_000
    timer.on_app_state("active")

    assert timer.remaining == 0
    assert timer.status == TimerStatus.COMPLETE
    assert timer.progress == 1
    assert loop.pending == []


def test_reaching_zero_completes_and_stops_ticking(loop, clock):
    timer = FocusTimer(duration=3, loop=loop, clock=clock)
    timer.start()
    loop.advance(10_000)

    assert timer.remaining == 0
    assert timer.status == TimerStatus.COMPLETE
    assert loop.pending == []


def test_app_state_changes_are_ignored_unless_running(timer, clock):
    timer.on_app_state("background")
    clock.now += 50_000
    timer.on_app_state("active")
    assert timer.remaining == 100

    timer.start()
    timer.pause()
    timer.on_app_state("background")
    clock.now += 50_000
    timer.on_app_state("active")
    assert timer.remaining == 100


def test_reset_returns_to_idle_from_any_state(timer, loop):
    timer.start()
    loop.advance(5_000)
    timer.reset()

    assert timer.status == TimerStatus.IDLE
    assert timer.remaining == 100
    assert loop.pending == []


def test_set_duration_only_when_not_running(timer, loop):
    timer.start()
    with pytest.raises(TimerStateError):
        timer.set_duration(300)

    timer.pause()
    timer.set_duration(300)
    assert timer.status == TimerStatus.IDLE
    assert timer.duration == 300
    assert timer.remaining == 300
    assert loop.pending == []


@pytest.mark.parametrize("seconds", [0, -5, 8 * 60 * 60 + 1])
def test_rejects_out_of_range_durations(timer, seconds):
    with pytest.raises(ValueError):
        timer.set_duration(seconds)


def test_invalid_transitions_raise(timer):
    with pytest.raises(TimerStateError):
        timer.pause()
    with pytest.raises(TimerStateError):
        timer.resume()
    timer.start()
    with pytest.raises(TimerStateError):
        timer.start()


def test_on_change_is_notified(loop, clock):
    seen = []
    timer = FocusTimer(duration=2, on_change=lambda t: seen.append((t.status, t.remaining)), loop=loop, clock=clock)
    timer.start()
    loop.advance(2_000)

    assert seen == [
        (TimerStatus.RUNNING, 2),
        (TimerStatus.RUNNING, 1),
        (TimerStatus.COMPLETE, 0),
    ]


def test_dispose_cancels_the_tick(timer, loop):
    timer.start()
    timer.dispose()
    assert loop.pending == []
