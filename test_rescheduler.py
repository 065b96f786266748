import pytest

from dreamseeker.scheduling.deadline import DeadlineLabel
from dreamseeker.scheduling.rescheduler import AdaptiveRescheduler
from dreamseeker.utils.timeutils import MINUTE_MS, HOUR_MS


def make_rescheduler(loop, clock):
    rendered = []
    rescheduler = AdaptiveRescheduler(rendered.append, loop=loop, clock=clock)
    return rescheduler, rendered


def test_watch_returns_current_label_and_arms_one_timer(loop, clock):
    rescheduler, rendered = make_rescheduler(loop, clock)

    label = rescheduler.watch(clock.now + 5 * MINUTE_MS)

    assert label == DeadlineLabel("Due in 5m", False)
    assert len(loop.pending) == 1
    assert loop.pending[0].when == clock.now + MINUTE_MS
    assert rendered == []


def test_rearms_from_the_clock_after_each_firing(loop, clock):
    deadline = clock.now + 2 * MINUTE_MS + 30_000
    rescheduler, rendered = make_rescheduler(loop, clock)
    rescheduler.watch(deadline)

    delays = [loop.run_next() for _ in range(4)]

    assert [r.label for r in rendered] == ["Due in 2m", "Due in 1m", "Overdue 1m", "Overdue 2m"]
    assert delays == [MINUTE_MS, MINUTE_MS, 30_100, MINUTE_MS]
    assert len(loop.pending) == 1


def test_far_deadline_checks_hourly_then_tightens(loop, clock):
    rescheduler, rendered = make_rescheduler(loop, clock)
    rescheduler.watch(clock.now + 25 * HOUR_MS)

    assert loop.run_next() == HOUR_MS
    assert rendered[-1].label == "Due tomorrow"
    assert loop.run_next() == HOUR_MS
    assert rendered[-1].label == "Due in 23h"
    assert loop.run_next() == 30 * MINUTE_MS


def test_changing_the_deadline_cancels_the_pending_timer(loop, clock):
    rescheduler, _ = make_rescheduler(loop, clock)
    rescheduler.watch(clock.now + 3 * HOUR_MS)
    first = loop.pending[0]

    rescheduler.watch(clock.now + 10 * MINUTE_MS)

    assert first.cancelled
    assert rescheduler.deadline == clock.now + 10 * MINUTE_MS
    assert len(loop.pending) == 1
    assert loop.pending[0].when == clock.now + MINUTE_MS


def test_clearing_the_deadline_stops_rendering(loop, clock):
    rescheduler, rendered = make_rescheduler(loop, clock)
    rescheduler.watch(clock.now + 10 * MINUTE_MS)

    assert rescheduler.watch(None) is None
    assert rescheduler.deadline is None
    assert loop.pending == []
    assert rescheduler.pending is False
    loop.advance(HOUR_MS)
    assert rendered == []


def test_dispose_cancels_and_rejects_reuse(loop, clock):
    rescheduler, rendered = make_rescheduler(loop, clock)
    rescheduler.watch(clock.now + 10 * MINUTE_MS)

    rescheduler.dispose()

    assert loop.pending == []
    loop.advance(HOUR_MS)
    assert rendered == []
    with pytest.raises(RuntimeError):
        rescheduler.watch(clock.now + MINUTE_MS)


def test_context_manager_disposes(loop, clock):
    with AdaptiveRescheduler(lambda label: None, loop=loop, clock=clock) as rescheduler:
        rescheduler.watch(clock.now + MINUTE_MS * 3)
        assert len(loop.pending) == 1
    assert loop.pending == []
