import time

from ztools.delayfunc import DelayFunc
from ztools.timer import Timer, unix_milli


def test_unix_milli_tracks_wall_clock():
    before = time.time_ns() // 1_000_000
    value = unix_milli()
    after = time.time_ns() // 1_000_000
    assert before <= value <= after


def test_at_converts_nanoseconds_to_milliseconds():
    timer = Timer.at(DelayFunc(print), 5_000_000_000)
    assert timer.unix_ms == 5000


def test_after_sets_due_time():
    start = unix_milli()
    timer = Timer.after(DelayFunc(print), 2)
    end = unix_milli()
    assert start + 2000 <= timer.unix_ms <= end + 2000


def test_run_calls_after_delay():
    calls = []

    def my_func(no, delay):
        calls.append((no, delay, unix_milli()))

    start = unix_milli()
    timers = [Timer.after(DelayFunc(my_func, [i, 2 * i]), 0.05 * i) for i in range(3)]
    assert timers[0].unix_ms < timers[1].unix_ms < timers[2].unix_ms
    threads = [timer.run() for timer in timers]
    for thread in threads:
        thread.join(timeout=5)
    assert [thread.is_alive() for thread in threads] == [False, False, False]
    assert sorted((no, delay) for no, delay, _ in calls) == [(0, 0), (1, 2), (2, 4)]
    called_at = {no: at for no, _, at in calls}
    assert called_at[1] - start >= 49
    assert called_at[2] - start >= 99


def test_run_past_timer_fires_immediately():
    calls = []
    timer = Timer(DelayFunc(calls.append, ["done"]), unix_milli() - 1000)
    thread = timer.run()
    thread.join(timeout=5)
    assert thread.is_alive() is False
    assert calls == ["done"]