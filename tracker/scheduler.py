from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


log = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run `fn` once immediately and then every `interval_s` seconds on a
    single daemon thread until cancelled.

    Runs never overlap. If a run overruns the interval, the missed
    deadlines are dropped and the schedule resumes on the next slot.

    Usage:
        handle = PeriodicTask(tracker.tick, 5.0).start()
        ...
        handle.cancel(); handle.join()
    """

    def __init__(self, fn: Callable[[], object], interval_s: float, *, name: str = "periodic-task"):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.fn = fn
        self.interval_s = float(interval_s)
        self.name = name
        self.ticks = 0
        self.dropped = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "PeriodicTask":
        if self._thread is not None:
            raise RuntimeError(f"{self.name} already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        next_due = time.monotonic()
        while not self._stop.is_set():
            try:
                self.fn()
            except Exception:
                log.exception("%s: run raised; schedule continues", self.name)
            self.ticks += 1

            next_due += self.interval_s
            now = time.monotonic()
            if next_due <= now:
                missed = int((now - next_due) // self.interval_s) + 1
                next_due += missed * self.interval_s
                self.dropped += missed
                log.warning("%s: run overran the interval, dropped %d tick(s)", self.name, missed)
            self._stop.wait(next_due - now)
        log.info("%s stopped after %d tick(s)", self.name, self.ticks)
