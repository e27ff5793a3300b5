import time

import pytest

from ztools.delayfunc import DelayFunc
from ztools.timer import (
    HOUR_INTERVAL,
    HOUR_NAME,
    HOUR_SCALES,
    MINUTE_INTERVAL,
    MINUTE_NAME,
    MINUTE_SCALES,
    SECOND_INTERVAL,
    SECOND_NAME,
    SECOND_SCALES,
    TIMERS_MAX_CAP,
    Timer,
    unix_milli,
)
from ztools.timewheel import TimeWheel


@pytest.fixture
def wheels():
    second = TimeWheel(SECOND_NAME, SECOND_INTERVAL, SECOND_SCALES, TIMERS_MAX_CAP)
    minute = TimeWheel(MINUTE_NAME, MINUTE_INTERVAL, MINUTE_SCALES, TIMERS_MAX_CAP)
    hour = TimeWheel(HOUR_NAME, HOUR_INTERVAL, HOUR_SCALES, TIMERS_MAX_CAP)
    hour.add_time_wheel(minute)
    minute.add_time_wheel(second)
    return hour, minute, second


def _df(calls, *args):
    return DelayFunc(calls.append, [args])


def test_hierarchy_links(wheels):
    hour, minute, second = wheels
    assert hour.next_wheel is minute
    assert minute.next_wheel is second
    assert second.next_wheel is None


def test_future_timers_not_yet_due(wheels):
    hour, _, _ = wheels
    calls = []
    for i in range(1, 6):
        hour.add_timer(i, Timer.after(_df(calls, i, 10 * i), 10 * i))
    assert hour.timers_within(1) == {}


def test_due_timer_reaches_leaf_and_is_taken_once(wheels):
    hour, _, _ = wheels
    calls = []
    timer = Timer(_df(calls, 1), unix_milli())
    hour.add_timer(7, timer)
    due = hour.timers_within(1)
    assert due == {7: timer}
    for t in due.values():
        t.delay_func.call()
    assert calls == [(1,)]
    assert hour.timers_within(1) == {}


def test_remove_timer(wheels):
    hour, minute, second = wheels
    hour.add_timer(3, Timer(_df([]), unix_milli()))
    for wheel in wheels:
        wheel.remove_timer(3)
    assert hour.timers_within(1) == {}


def test_tick_brings_timer_into_current_slot():
    wheel = TimeWheel("T", 1000, 60, 16)
    timer = Timer(_df([]), unix_milli() + 1500)
    wheel.add_timer(1, timer)
    assert wheel.timers_within(2) == {}
    wheel.tick()
    assert wheel.current_index == 1
    assert wheel.timers_within(2) == {1: timer}


def test_tick_wraps_around():
    wheel = TimeWheel("T", 1000, 3, 16)
    for _ in range(4):
        wheel.tick()
    assert wheel.current_index == 1


def test_overdue_timer_kept_reachable_by_tick():
    wheel = TimeWheel("T", 1000, 10, 16)
    timer = Timer(_df([]), unix_milli() - 10)
    wheel.add_timer(4, timer)
    wheel.tick()
    assert wheel.timers_within(1) == {4: timer}


def test_run_and_stop_turns_wheel():
    wheel = TimeWheel("FAST", 20, 1000, 16)
    wheel.run()
    time.sleep(0.2)
    wheel.stop()
    turned = wheel.current_index
    assert turned > 0
    time.sleep(0.1)
    assert wheel.current_index == turned