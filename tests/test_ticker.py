from __future__ import annotations

import threading
import time

from ticker import RepeatingTicker


def test_ticker_fires_repeatedly_until_cancelled() -> None:
    count = 0
    fired = threading.Event()

    def _tick() -> None:
        nonlocal count
        count += 1
        if count >= 3:
            fired.set()

    ticker = RepeatingTicker(0.02, _tick)
    ticker.start()
    assert fired.wait(timeout=2.0)
    ticker.cancel()
    seen = count
    time.sleep(0.1)

    assert count == seen
    assert ticker.active is False


def test_cancel_before_first_tick_never_fires() -> None:
    calls: list[int] = []
    ticker = RepeatingTicker(0.5, lambda: calls.append(1))
    ticker.start()
    ticker.cancel()
    time.sleep(0.05)
    assert calls == []


def test_cancel_from_callback_does_not_deadlock() -> None:
    calls: list[int] = []
    holder: list[RepeatingTicker] = []

    def _tick() -> None:
        calls.append(1)
        holder[0].cancel()

    ticker = RepeatingTicker(0.01, _tick)
    holder.append(ticker)
    ticker.start()
    time.sleep(0.1)

    assert calls == [1]


def test_cancel_without_start_is_safe() -> None:
    RepeatingTicker(1.0, lambda: None).cancel()
