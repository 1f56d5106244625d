"""Timer back-ends: Qt event loop timers and a manual virtual clock."""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable

from PyQt6.QtCore import QObject, QTimer

from chessbench.live.interfaces import IScheduler, ITimer


class _QtTimer(ITimer):
    """Owns one QTimer; cancelling releases it."""

    __slots__ = ("_timer",)

    def __init__(self, timer: QTimer) -> None:
        self._timer: QTimer | None = timer

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()


class QtScheduler(IScheduler):
    """Schedules callbacks with ``QTimer`` on the current Qt event loop."""

    __slots__ = ("_parent",)

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ITimer:
        return self._start(delay_ms, callback, single_shot=True)

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ITimer:
        return self._start(interval_ms, callback, single_shot=False)

    def _start(
        self, interval_ms: int, callback: Callable[[], None], *, single_shot: bool
    ) -> ITimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(single_shot)
        handle = _QtTimer(timer)
        if single_shot:

            def fire() -> None:
                handle.cancel()
                callback()

            timer.timeout.connect(fire)
        else:
            timer.timeout.connect(callback)
        timer.start(interval_ms)
        return handle


class _ManualTimer(ITimer):
    __slots__ = ("_active", "interval_ms", "callback")

    def __init__(self, interval_ms: int | None, callback: Callable[[], None]) -> None:
        self._active = True
        self.interval_ms = interval_ms  # None for single-shot
        self.callback = callback

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


class ManualScheduler(IScheduler):
    """Deterministic scheduler driven by :meth:`advance`.

    Due timers fire in deadline order; timers sharing a deadline fire in
    the order they were scheduled. Callbacks may schedule or cancel other
    timers while the clock is advancing.
    """

    __slots__ = ("_now_ms", "_queue", "_sequence")

    def __init__(self) -> None:
        self._now_ms = 0
        self._queue: list[tuple[int, int, _ManualTimer]] = []
        self._sequence = itertools.count()

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        """Number of timers that are still active."""
        return sum(1 for _, _, timer in self._queue if timer.active)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ITimer:
        timer = _ManualTimer(None, callback)
        self._push(self._now_ms + max(0, delay_ms), timer)
        return timer

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ITimer:
        if interval_ms <= 0:
            raise ValueError("Repeating timer interval must be positive")
        timer = _ManualTimer(interval_ms, callback)
        self._push(self._now_ms + interval_ms, timer)
        return timer

    def advance(self, ms: int) -> None:
        """Move the virtual clock forward by *ms*, firing due timers."""
        target = self._now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            self._now_ms = deadline
            if timer.interval_ms is None:
                timer.cancel()
            else:
                self._push(deadline + timer.interval_ms, timer)
            timer.callback()
        self._now_ms = target

    def _push(self, deadline: int, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (deadline, next(self._sequence), timer))
