"""Offline match simulator that replays a scripted game.

Emits exactly the event vocabulary of the live feed, so a session driven
by the simulator behaves the same as one attached to a real server.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from chessbench.core.board import apply_move, start_grid
from chessbench.core.notation import STARTING_FEN, append_move_text, fen_from_grid
from chessbench.live.events import (
    ClockUpdate,
    MatchFinished,
    MatchResult,
    MatchStarted,
    MovePlayed,
    StreamHandlers,
)
from chessbench.live.interfaces import IEventSource, IScheduler, ITimer

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScriptedMove:
    uci: str
    san: str


# Sicilian, Scheveningen: 10 moves per side.
SCRIPTED_MOVES: tuple[ScriptedMove, ...] = (
    ScriptedMove("e2e4", "e4"),
    ScriptedMove("c7c5", "c5"),
    ScriptedMove("g1f3", "Nf3"),
    ScriptedMove("d7d6", "d6"),
    ScriptedMove("d2d4", "d4"),
    ScriptedMove("c5d4", "cxd4"),
    ScriptedMove("f3d4", "Nxd4"),
    ScriptedMove("g8f6", "Nf6"),
    ScriptedMove("b1c3", "Nc3"),
    ScriptedMove("a7a6", "a6"),
    ScriptedMove("f1e2", "Be2"),
    ScriptedMove("e7e6", "e6"),
    ScriptedMove("e1g1", "O-O"),
    ScriptedMove("f8e7", "Be7"),
    ScriptedMove("f2f4", "f4"),
    ScriptedMove("e8g8", "O-O"),
    ScriptedMove("c1e3", "Be3"),
    ScriptedMove("d8c7", "Qc7"),
    ScriptedMove("a2a4", "a4"),
    ScriptedMove("b8c6", "Nc6"),
)

SCRIPTED_RESULT = MatchResult(outcome="1-0", reason="checkmate")


class MatchSimulator(IEventSource):
    """Single-shot scripted match on two independent timers.

    The clock ticker takes ``clock_interval_ms`` off both sides on every
    tick; the move ticker plays one scripted move per tick and, once the
    script is exhausted, reports the fixed result and stops for good.
    """

    __slots__ = (
        "_handlers",
        "_scheduler",
        "_match_id",
        "_clock_interval_ms",
        "_move_interval_ms",
        "_script",
        "_result",
        "_white_ms",
        "_black_ms",
        "_move_index",
        "_side_to_move",
        "_grid",
        "_moves_text",
        "_clock_timer",
        "_move_timer",
        "_started",
        "_closed",
    )

    def __init__(
        self,
        initial_clock_ms: int,
        handlers: StreamHandlers,
        scheduler: IScheduler,
        *,
        match_id: str = "mock",
        clock_interval_ms: int = 200,
        move_interval_ms: int = 1200,
        script: Sequence[ScriptedMove] = SCRIPTED_MOVES,
        result: MatchResult = SCRIPTED_RESULT,
    ) -> None:
        if initial_clock_ms < 0:
            raise ValueError("Initial clock must not be negative")
        if clock_interval_ms <= 0 or move_interval_ms <= 0:
            raise ValueError("Simulator intervals must be positive")

        self._handlers = handlers
        self._scheduler = scheduler
        self._match_id = match_id
        self._clock_interval_ms = clock_interval_ms
        self._move_interval_ms = move_interval_ms
        self._script = tuple(script)
        self._result = result

        self._white_ms = initial_clock_ms
        self._black_ms = initial_clock_ms
        self._move_index = 0
        self._side_to_move = "w"
        self._grid = start_grid()
        self._moves_text = ""
        self._clock_timer: ITimer | None = None
        self._move_timer: ITimer | None = None
        self._started = False
        self._closed = False

    # ── Lifecycle ────────────────────────────────────────────────────────

    def open(self) -> MatchSimulator:
        """Announce the match and start both tickers.

        ``on_open`` and ``MatchStarted`` are delivered before this returns.
        """
        if self._started:
            raise RuntimeError("MatchSimulator is single-shot; create a new instance")
        self._started = True
        if self._closed:
            return self

        self._handlers.open()
        if self._closed:
            return self
        self._handlers.dispatch(MatchStarted(match_id=self._match_id, start_fen=STARTING_FEN))
        if self._closed:
            return self

        self._clock_timer = self._scheduler.call_every(self._clock_interval_ms, self._on_clock_tick)
        self._move_timer = self._scheduler.call_every(self._move_interval_ms, self._on_move_tick)
        _LOGGER.debug("Simulated match %s started", self._match_id)
        return self

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        if self._clock_timer is not None:
            self._clock_timer.cancel()
        if self._move_timer is not None:
            self._move_timer.cancel()

    # ── Tickers ──────────────────────────────────────────────────────────

    def _on_clock_tick(self) -> None:
        if self._closed:
            return
        self._white_ms = max(0, self._white_ms - self._clock_interval_ms)
        self._black_ms = max(0, self._black_ms - self._clock_interval_ms)
        self._handlers.dispatch(ClockUpdate(white_ms=self._white_ms, black_ms=self._black_ms))

    def _on_move_tick(self) -> None:
        if self._closed:
            return

        if self._move_index >= len(self._script):
            # Nothing may fire after the result.
            self.close()
            _LOGGER.debug("Simulated match %s finished: %s", self._match_id, self._result)
            self._handlers.dispatch(
                MatchFinished(result=self._result.outcome, reason=self._result.reason)
            )
            return

        move = self._script[self._move_index]
        apply_move(self._grid, move.uci)
        self._moves_text = append_move_text(self._moves_text, self._move_index, move.san)
        self._side_to_move = "b" if self._side_to_move == "w" else "w"
        self._move_index += 1

        self._handlers.dispatch(
            MovePlayed(
                ply=self._move_index,
                uci=move.uci,
                san=move.san,
                fen=fen_from_grid(self._grid, self._side_to_move),
                pgn=self._moves_text,
            )
        )
