"""One-shot timers with millisecond precision."""

from __future__ import annotations

import threading
import time

from ztools.delayfunc import DelayFunc

HOUR_NAME = "HOUR"
HOUR_INTERVAL = 60 * 60 * 1000
HOUR_SCALES = 12

MINUTE_NAME = "MINUTE"
MINUTE_INTERVAL = 60 * 1000
MINUTE_SCALES = 60

SECOND_NAME = "SECOND"
SECOND_INTERVAL = 1000
SECOND_SCALES = 60

TIMERS_MAX_CAP = 2048


def unix_milli() -> int:
    """Return milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


class Timer:
    """A delayed call due at an absolute time in Unix milliseconds."""

    def __init__(self, delay_func: DelayFunc, unix_ms: int) -> None:
        self.delay_func = delay_func
        self.unix_ms = unix_ms

    @classmethod
    def at(cls, delay_func: DelayFunc, unix_nano: int) -> "Timer":
        """Create a timer due at ``unix_nano`` nanoseconds since the epoch."""
        return cls(delay_func, unix_nano // 1_000_000)

    @classmethod
    def after(cls, delay_func: DelayFunc, seconds: float) -> "Timer":
        """Create a timer due ``seconds`` from now."""
        return cls.at(delay_func, time.time_ns() + int(seconds * 1_000_000_000))

    def run(self) -> threading.Thread:
        """Wait in a background thread until due, then call; return the thread."""

        def _wait_and_call() -> None:
            now = unix_milli()
            if self.unix_ms > now:
                time.sleep((self.unix_ms - now) / 1000)
            self.delay_func.call()

        thread = threading.Thread(target=_wait_and_call, daemon=True)
        thread.start()
        return thread