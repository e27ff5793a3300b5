"""Hierarchical time wheels for managing many timers cheaply."""

from __future__ import annotations

import logging
import threading

from ztools.timer import Timer, unix_milli

logger = logging.getLogger(__name__)


class TimeWheel:
    """A ring of slots, each holding the timers due within that slot.

    ``interval`` is the slot width in milliseconds and ``scales`` the number
    of slots. A wheel may hand finer-grained timers to a lower wheel.
    """

    def __init__(self, name: str, interval: int, scales: int, max_cap: int) -> None:
        self.name = name
        self.interval = interval
        self.scales = scales
        self.max_cap = max_cap
        self.next_wheel: TimeWheel | None = None
        self._cur_index = 0
        self._queue: list[dict[int, Timer]] = [{} for _ in range(scales)]
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        logger.info("Init timerWhell name = %s is Done!", name)

    @property
    def current_index(self) -> int:
        """The slot the wheel's pointer is on."""
        return self._cur_index

    def _add_timer(self, timer_id: int, timer: Timer, force_next: bool) -> None:
        delay = timer.unix_ms - unix_milli()
        if delay >= self.interval:
            steps = delay // self.interval
            self._queue[(self._cur_index + steps) % self.scales][timer_id] = timer
            return
        if self.next_wheel is None:
            if force_next:
                # The current slot is being passed; keep the timer reachable.
                self._queue[(self._cur_index + 1) % self.scales][timer_id] = timer
            else:
                self._queue[self._cur_index][timer_id] = timer
            return
        self.next_wheel.add_timer(timer_id, timer)

    def add_timer(self, timer_id: int, timer: Timer) -> None:
        """Place a timer on this wheel or on a lower one."""
        with self._lock:
            self._add_timer(timer_id, timer, False)

    def remove_timer(self, timer_id: int) -> None:
        """Remove a timer from every slot of this wheel."""
        with self._lock:
            for slot in self._queue:
                slot.pop(timer_id, None)

    def add_time_wheel(self, next_wheel: "TimeWheel") -> None:
        """Attach the finer-grained wheel below this one."""
        self.next_wheel = next_wheel
        logger.info("Add timerWhell[%s]'s next [%s] is succ!", self.name, next_wheel.name)

    def tick(self) -> None:
        """Advance the pointer one slot, redistributing timers near it."""
        with self._lock:
            current = self._queue[self._cur_index]
            self._queue[self._cur_index] = {}
            for timer_id, timer in current.items():
                self._add_timer(timer_id, timer, True)

            nxt = (self._cur_index + 1) % self.scales
            pending = self._queue[nxt]
            self._queue[nxt] = {}
            for timer_id, timer in pending.items():
                self._add_timer(timer_id, timer, True)

            self._cur_index = nxt

    def run(self) -> None:
        """Start turning the wheel in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        stop_event = threading.Event()
        self._stop_event = stop_event

        def _loop() -> None:
            while not stop_event.wait(self.interval / 1000):
                self.tick()

        self._thread = threading.Thread(target=_loop, name=f"timewheel-{self.name}", daemon=True)
        self._thread.start()
        logger.info("timerwheel name = %s is running...", self.name)

    def stop(self) -> None:
        """Stop the background thread started by ``run``."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
        self._thread = None
        self._stop_event = None

    def timers_within(self, seconds: float) -> dict[int, Timer]:
        """Take and return the lowest wheel's current timers due within ``seconds``."""
        leaf = self
        while leaf.next_wheel is not None:
            leaf = leaf.next_wheel

        limit = int(seconds * 1000)
        with leaf._lock:
            now = unix_milli()
            slot = leaf._queue[leaf._cur_index]
            due = {tid: timer for tid, timer in slot.items() if timer.unix_ms - now < limit}
            for tid in due:
                del slot[tid]
            return due