"""
Tests for the discrete-event scheduler.
"""

from core.scheduler import Scheduler


def test_events_fire_in_time_order():
    """Test that events fire by due time, not by scheduling order."""
    scheduler = Scheduler()
    fired = []
    scheduler.schedule(300, lambda: fired.append("late"))
    scheduler.schedule(100, lambda: fired.append("early"))

    assert scheduler.advance(200) == 1
    assert fired == ["early"]
    assert scheduler.now == 200

    scheduler.advance(100)
    assert fired == ["early", "late"]


def test_ties_fire_in_scheduling_order():
    """Test that events due at the same time keep FIFO order."""
    scheduler = Scheduler()
    fired = []
    for label in ("a", "b", "c"):
        scheduler.schedule(50, lambda label=label: fired.append(label))

    scheduler.advance(50)
    assert fired == ["a", "b", "c"]


def test_callbacks_can_schedule_zero_delay_events():
    """Test that an event scheduled from a callback fires in the same advance."""
    scheduler = Scheduler()
    fired = []

    def first():
        fired.append("first")
        scheduler.schedule(0, lambda: fired.append("second"))

    scheduler.schedule(10, first)
    assert scheduler.advance(10) == 2
    assert fired == ["first", "second"]


def test_cancel_prevents_firing():
    """Test that a cancelled event is dropped and not counted as pending."""
    scheduler = Scheduler()
    fired = []
    handle = scheduler.schedule(10, lambda: fired.append("x"))

    assert scheduler.pending == 1
    assert scheduler.cancel(handle) is True
    assert scheduler.cancel(handle) is False
    assert scheduler.pending == 0

    scheduler.advance(100)
    assert fired == []


def test_run_until_idle_drains_chained_events():
    """Test that run_until_idle follows chains of scheduled callbacks."""
    scheduler = Scheduler()
    fired = []

    def chain(remaining: int) -> None:
        fired.append(remaining)
        if remaining:
            scheduler.schedule(100, lambda: chain(remaining - 1))

    scheduler.schedule(100, lambda: chain(3))
    assert scheduler.run_until_idle() == 4
    assert fired == [3, 2, 1, 0]
    assert scheduler.now == 400
    assert scheduler.pending == 0


def test_run_until_idle_respects_the_event_limit():
    """Test that a self-rescheduling callback stops at the limit."""
    scheduler = Scheduler()

    def forever() -> None:
        scheduler.schedule(1, forever)

    scheduler.schedule(1, forever)
    assert scheduler.run_until_idle(max_events=25) == 25
    assert scheduler.pending == 1


def test_clear_drops_everything():
    """Test that clear removes pending events without firing them."""
    scheduler = Scheduler()
    fired = []
    scheduler.schedule(5, lambda: fired.append(1))
    scheduler.clear()

    assert scheduler.run_until_idle() == 0
    assert fired == []
