"""A scheduler driving a three-level hour/minute/second time wheel."""

from __future__ import annotations

import logging
import queue
import threading

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

logger = logging.getLogger(__name__)

MAX_CHAN_BUFF = 2048
MAX_TIME_DELAY = 100  # milliseconds

_POLL = 0.05


class TimerScheduler:
    """Hands out timer IDs and pushes due callbacks onto ``triggers``."""

    def __init__(self) -> None:
        second = TimeWheel(SECOND_NAME, SECOND_INTERVAL, SECOND_SCALES, TIMERS_MAX_CAP)
        minute = TimeWheel(MINUTE_NAME, MINUTE_INTERVAL, MINUTE_SCALES, TIMERS_MAX_CAP)
        hour = TimeWheel(HOUR_NAME, HOUR_INTERVAL, HOUR_SCALES, TIMERS_MAX_CAP)
        hour.add_time_wheel(minute)
        minute.add_time_wheel(second)
        for wheel in (second, minute, hour):
            wheel.run()

        self.wheel = hour
        self.triggers: queue.Queue[DelayFunc] = queue.Queue(maxsize=MAX_CHAN_BUFF)
        self._last_id = 0
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _add(self, timer: Timer) -> int:
        with self._lock:
            self._last_id += 1
            self.wheel.add_timer(self._last_id, timer)
            return self._last_id

    def create_timer_at(self, delay_func: DelayFunc, unix_nano: int) -> int:
        """Schedule a call at an absolute time; return the timer ID."""
        return self._add(Timer.at(delay_func, unix_nano))

    def create_timer_after(self, delay_func: DelayFunc, seconds: float) -> int:
        """Schedule a call ``seconds`` from now; return the timer ID."""
        return self._add(Timer.after(delay_func, seconds))

    def cancel_timer(self, timer_id: int) -> None:
        """Remove a timer from every wheel."""
        with self._lock:
            wheel: TimeWheel | None = self.wheel
            while wheel is not None:
                wheel.remove_timer(timer_id)
                wheel = wheel.next_wheel

    def _put(self, delay_func: DelayFunc) -> None:
        while not self._stop_event.is_set():
            try:
                self.triggers.put(delay_func, timeout=_POLL)
                return
            except queue.Full:
                continue

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            now = unix_milli()
            for timer in self.wheel.timers_within(MAX_TIME_DELAY / 1000).values():
                if abs(now - timer.unix_ms) > MAX_TIME_DELAY:
                    logger.error(
                        "want call at %d; real call at %d; delay %d",
                        timer.unix_ms, now, now - timer.unix_ms,
                    )
                self._put(timer.delay_func)
            self._stop_event.wait(MAX_TIME_DELAY / 2 / 1000)

    def start(self) -> None:
        """Start collecting due timers in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._loop, name="timer-scheduler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the scheduler thread and all wheels."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
        wheel: TimeWheel | None = self.wheel
        while wheel is not None:
            wheel.stop()
            wheel = wheel.next_wheel


def new_auto_exec_timer_scheduler() -> TimerScheduler:
    """Return a started scheduler that calls each due function in its own thread."""
    scheduler = TimerScheduler()
    scheduler.start()

    def _consume() -> None:
        while not scheduler.stopped:
            try:
                delay_func = scheduler.triggers.get(timeout=_POLL)
            except queue.Empty:
                continue
            threading.Thread(target=delay_func.call, daemon=True).start()

    threading.Thread(target=_consume, name="timer-auto-exec", daemon=True).start()
    return scheduler