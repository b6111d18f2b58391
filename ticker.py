"""Cancellable repeating timer used for the recording duration display."""

from __future__ import annotations

import threading
from typing import Callable, Optional


class RepeatingTicker:
    def __init__(self, interval_s: float, callback: Callable[[], None]) -> None:
        self._interval_s = interval_s
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval_s + 0.5)

    def _run(self) -> None:
        # wait() returns True as soon as cancel() sets the event
        while not self._stop_event.wait(self._interval_s):
            self._callback()
