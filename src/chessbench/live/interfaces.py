"""Abstract interfaces for the live layer.

The session depends on these ABCs, not on Qt timers or network replies,
so tests can drive it with a manual clock and stub sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

# ── Session FSM states ───────────────────────────────────────────────────────


class SessionStatus(str, Enum):
    """Finite-state-machine states of a live session."""

    IDLE = "idle"
    LOADING = "loading"  # setup request in flight
    CONNECTING = "connecting"
    RUNNING = "running"
    RECONNECTING = "reconnecting"
    FINISHED = "finished"
    ERROR = "error"

    @property
    def is_live(self) -> bool:
        """True while an event source is (or is about to be) attached."""
        return self in (
            SessionStatus.CONNECTING,
            SessionStatus.RUNNING,
            SessionStatus.RECONNECTING,
        )


# ── Abstract interfaces ─────────────────────────────────────────────────────


class ITimer(ABC):
    """Handle to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """Will the callback still fire?"""


class IScheduler(ABC):
    """Source of cancellable timers on the caller's event loop."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ITimer:
        """Run *callback* once after *delay_ms*."""

    @abstractmethod
    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ITimer:
        """Run *callback* every *interval_ms* until cancelled."""


class IEventSource(ABC):
    """A producer of stream events (live feed or simulator)."""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering events. Idempotent."""

    @property
    @abstractmethod
    def closed(self) -> bool: ...
