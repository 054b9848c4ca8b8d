import threading
import time

import pytest

from interview.timer import ManualScheduler, ThreadingScheduler, Timer


def test_five_ticks_expire_exactly_once(scheduler: ManualScheduler):
    fired = []
    timer = Timer(scheduler=scheduler, on_expire=lambda: fired.append(True))

    timer.start(5)
    scheduler.advance(4)
    assert fired == []
    assert timer.is_active is True
    assert timer.time_remaining == 1

    scheduler.advance(1)
    assert fired == [True]
    assert timer.time_spent == 5
    assert timer.time_remaining == 0
    assert timer.is_active is False

    # a sixth tick changes nothing
    scheduler.advance(1)
    timer.tick()
    assert fired == [True]
    assert timer.time_remaining == 0
    assert timer.time_spent == 5


@pytest.mark.parametrize("duration", [0, -3])
def test_start_rejects_non_positive_duration(scheduler, duration):
    timer = Timer(scheduler=scheduler)
    with pytest.raises(ValueError):
        timer.start(duration)
    assert scheduler.jobs == []


def test_stop_is_idempotent_and_suppresses_ticks(scheduler):
    fired = []
    timer = Timer(scheduler=scheduler, on_expire=lambda: fired.append(True))

    timer.start(3)
    scheduler.advance(1)
    timer.stop()
    timer.stop()
    scheduler.advance(5)

    assert fired == []
    assert timer.time_remaining == 2
    assert timer.time_spent == 1
    assert scheduler.active_jobs == []


def test_restart_cancels_pending_expiry(scheduler):
    first, second = [], []
    timer = Timer(scheduler=scheduler)

    timer.start(3, on_expire=lambda: first.append(True))
    scheduler.advance(2)
    timer.start(3, on_expire=lambda: second.append(True))
    scheduler.advance(3)

    assert first == []
    assert second == [True]
    assert len(scheduler.active_jobs) == 0


def test_on_tick_reports_remaining(scheduler):
    seen = []
    timer = Timer(scheduler=scheduler, on_tick=seen.append)
    timer.start(3)
    scheduler.advance(3)
    assert seen == [2, 1, 0]


def test_time_spent_before_start_is_zero():
    timer = Timer(scheduler=ManualScheduler())
    assert timer.time_spent == 0
    assert timer.is_active is False


def test_threading_scheduler_runs_until_cancelled():
    calls = []
    done = threading.Event()

    def _cb():
        calls.append(1)
        if len(calls) >= 3:
            done.set()

    job = ThreadingScheduler().schedule_repeating(0.01, _cb)
    assert done.wait(timeout=2.0)
    job.cancel()
    time.sleep(0.05)
    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count
