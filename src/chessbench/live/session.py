"""LiveSession: the single writer of the client-side match state.

Folds events from either the live feed or the simulator into one
:class:`SessionState`, and owns the reconnect policy: a transport error
closes the current source and schedules exactly one retry after a fixed
delay, forever, until a result arrives or the caller stops the session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from chessbench.api import ApiError, EngineInfo, IMatchApi, MatchCreateRequest, MatchCreateResponse
from chessbench.api.mock import MockMatchApi
from chessbench.core.notation import STARTING_FEN
from chessbench.live.events import (
    ClockUpdate,
    MatchFinished,
    MatchResult,
    MatchStarted,
    MovePlayed,
    StreamHandlers,
)
from chessbench.live.interfaces import IEventSource, IScheduler, ITimer, SessionStatus
from chessbench.live.stream import StreamOpenError

_LOGGER = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY_MS = 1500

StreamFactory = Callable[[str, StreamHandlers], IEventSource]  # match id, handlers
SimulatorFactory = Callable[[str, int, StreamHandlers], IEventSource]  # + initial ms


class SessionPreconditionError(ValueError):
    """Raised synchronously when a match cannot be requested with the given arguments."""


# ── State ────────────────────────────────────────────────────────────────────


@dataclass
class SessionState:
    """What the UI currently believes about the match."""

    match_id: str | None = None
    status: SessionStatus = SessionStatus.IDLE
    position: str = STARTING_FEN
    moves_text: str = ""
    clocks: ClockUpdate | None = None
    last_move: str | None = None
    result: MatchResult | None = None
    error: str | None = None

    def reset(self) -> None:
        """Restore every field to its default."""
        self.match_id = None
        self.status = SessionStatus.IDLE
        self.position = STARTING_FEN
        self.moves_text = ""
        self.clocks = None
        self.last_move = None
        self.result = None
        self.error = None

    def snapshot(self) -> SessionState:
        return replace(self)


StateCallback = Callable[[SessionState], None]
StatusCallback = Callable[[SessionStatus], None]


@dataclass
class SessionEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_state_changed: list[StateCallback] = field(default_factory=list)
    on_status_changed: list[StatusCallback] = field(default_factory=list)


# ── Session ──────────────────────────────────────────────────────────────────


class LiveSession:
    """Owns the session state, the current event source and the retry timer.

    All methods must be called from the thread that runs the scheduler's
    event loop; handlers are plain field replacements, so clock and move
    events may interleave in any order.
    """

    __slots__ = (
        "__weakref__",
        "_scheduler",
        "_stream_factory",
        "_simulator_factory",
        "_api",
        "_mock_api",
        "_reconnect_delay_ms",
        "_state",
        "_source",
        "_source_generation",
        "_simulated",
        "_initial_ms",
        "_reconnect_timer",
        "_pending_request_id",
        "_next_request_id",
        "events",
    )

    def __init__(
        self,
        *,
        scheduler: IScheduler,
        stream_factory: StreamFactory,
        simulator_factory: SimulatorFactory,
        api: IMatchApi | None = None,
        mock_api: IMatchApi | None = None,
        reconnect_delay_ms: int = DEFAULT_RECONNECT_DELAY_MS,
    ) -> None:
        if reconnect_delay_ms <= 0:
            raise ValueError("Reconnect delay must be positive")
        self._scheduler = scheduler
        self._stream_factory = stream_factory
        self._simulator_factory = simulator_factory
        self._api = api
        self._mock_api = mock_api if mock_api is not None else MockMatchApi()
        self._reconnect_delay_ms = reconnect_delay_ms

        self._state = SessionState()
        self._source: IEventSource | None = None
        self._source_generation = 0
        self._simulated = False
        self._initial_ms = 0
        self._reconnect_timer: ITimer | None = None
        self._pending_request_id: int | None = None
        self._next_request_id = 0
        self.events = SessionEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        """A copy of the current state; mutate through the session only."""
        return self._state.snapshot()

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None and self._reconnect_timer.active

    # ── Setup requests ───────────────────────────────────────────────────

    def load_engines(
        self,
        on_loaded: Callable[[list[EngineInfo]], None],
        *,
        simulated: bool = False,
    ) -> None:
        """List available engines; failure leaves the session in ``ERROR``.

        Not allowed while attached to a match feed.
        """
        if self._state.status.is_live:
            raise SessionPreconditionError("Stop the current match before reloading engines")
        api = self._select_api(simulated)
        request_id = self._begin_request()

        def succeeded(engines: list[EngineInfo]) -> None:
            if request_id != self._pending_request_id:
                return
            self._pending_request_id = None
            self._set_status(SessionStatus.IDLE)
            on_loaded(engines)

        api.list_engines(succeeded, lambda exc: self._on_request_failed(request_id, exc))

    def launch(
        self,
        white_engine_id: str,
        black_engine_id: str,
        initial_ms: int,
        *,
        simulated: bool = False,
    ) -> None:
        """Create a match and attach to its feed.

        Raises :class:`SessionPreconditionError` before touching any state
        when an engine is missing or the time control is not positive.
        """
        if not white_engine_id.strip() or not black_engine_id.strip():
            raise SessionPreconditionError("Select an engine for both sides")
        if isinstance(initial_ms, bool) or not isinstance(initial_ms, int) or initial_ms <= 0:
            raise SessionPreconditionError("Initial time must be a positive number of milliseconds")

        api = self._select_api(simulated)
        self._teardown()
        request_id = self._begin_request()
        request = MatchCreateRequest(
            white_engine_id=white_engine_id,
            black_engine_id=black_engine_id,
            initial_ms=initial_ms,
        )
        _LOGGER.info(
            "Requesting match %s vs %s (%d ms, simulated=%s)",
            white_engine_id,
            black_engine_id,
            initial_ms,
            simulated,
        )

        def created(response: MatchCreateResponse) -> None:
            if request_id != self._pending_request_id:
                return
            self._pending_request_id = None
            self.start(response.match_id, simulated=simulated, initial_ms=initial_ms)

        api.create_match(
            request,
            created,
            lambda exc: self._on_request_failed(request_id, exc),
        )

    # ── Live lifecycle ───────────────────────────────────────────────────

    def start(self, match_id: str, *, simulated: bool = False, initial_ms: int = 300_000) -> None:
        """Attach to the feed of *match_id* with a clean move list."""
        self._teardown()
        self._pending_request_id = None
        self._simulated = simulated
        self._initial_ms = initial_ms

        state = self._state
        state.match_id = match_id
        state.moves_text = ""
        state.last_move = None
        state.result = None
        state.error = None
        self._set_status(SessionStatus.CONNECTING)
        self._open_source()

    def stop(self) -> None:
        """Detach from everything and return to defaults."""
        self._teardown()
        self._pending_request_id = None
        previous = self._state.status
        self._state.reset()
        _LOGGER.info("Session stopped")
        if previous != SessionStatus.IDLE:
            self._emit_status(SessionStatus.IDLE)
        self._emit_state()

    # ── Source handling ──────────────────────────────────────────────────

    def _open_source(self) -> None:
        match_id = self._state.match_id
        if match_id is None:
            return
        self._source_generation += 1
        generation = self._source_generation
        handlers = self._handlers_for(generation)

        try:
            if self._simulated:
                source = self._simulator_factory(match_id, self._initial_ms, handlers)
            else:
                source = self._stream_factory(match_id, handlers)
        except StreamOpenError as exc:
            _LOGGER.warning("Could not open feed for %s: %s", match_id, exc)
            self._fail(str(exc))
            return

        # Synchronous sources may already have finished or failed.
        if generation != self._source_generation:
            source.close()
            return
        self._source = source

    def _handlers_for(self, generation: int) -> StreamHandlers:
        def guard(callback: Callable[..., None]) -> Callable[..., None]:
            def handler(*args: object) -> None:
                if generation != self._source_generation:
                    return
                callback(*args)

            return handler

        return StreamHandlers(
            on_open=guard(self._on_open),
            on_match_started=guard(self._on_match_started),
            on_clock=guard(self._on_clock),
            on_move=guard(self._on_move),
            on_result=guard(self._on_result),
            on_error=guard(self._on_error),
        )

    def _close_source(self) -> None:
        # Bumping the generation silences any late callback from the old source.
        self._source_generation += 1
        source = self._source
        self._source = None
        if source is not None:
            source.close()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _teardown(self) -> None:
        self._cancel_reconnect()
        self._close_source()

    def _reconnect(self) -> None:
        self._reconnect_timer = None
        if self._state.status != SessionStatus.RECONNECTING:
            return
        _LOGGER.info("Reconnecting to match %s", self._state.match_id)
        self._open_source()

    # ── Event handlers ───────────────────────────────────────────────────

    def _on_open(self) -> None:
        if self._state.status in (SessionStatus.CONNECTING, SessionStatus.RECONNECTING):
            self._set_status(SessionStatus.RUNNING)

    def _on_match_started(self, event: MatchStarted) -> None:
        if not self._state.status.is_live:
            return
        if event.match_id != self._state.match_id:
            _LOGGER.debug("Feed reports match id %s for %s", event.match_id, self._state.match_id)
        state = self._state
        state.position = event.start_fen
        state.moves_text = ""
        state.last_move = None
        state.result = None
        if state.status != SessionStatus.RUNNING:
            self._set_status(SessionStatus.RUNNING)
        else:
            self._emit_state()

    def _on_clock(self, event: ClockUpdate) -> None:
        if not self._state.status.is_live:
            return
        self._state.clocks = event
        self._emit_state()

    def _on_move(self, event: MovePlayed) -> None:
        if not self._state.status.is_live:
            return
        # Ply is informational; ordering is the transport's responsibility.
        state = self._state
        state.position = event.fen
        state.moves_text = event.pgn
        state.last_move = event.uci
        _LOGGER.debug("Ply %d: %s", event.ply, event.san)
        self._emit_state()

    def _on_result(self, event: MatchFinished) -> None:
        if not self._state.status.is_live:
            return
        self._teardown()
        self._state.result = event.match_result
        _LOGGER.info("Match %s finished %s (%s)", self._state.match_id, event.result, event.reason)
        self._set_status(SessionStatus.FINISHED)

    def _on_error(self) -> None:
        if not self._state.status.is_live:
            return
        self._teardown()
        _LOGGER.info(
            "Feed for %s interrupted; retrying in %d ms",
            self._state.match_id,
            self._reconnect_delay_ms,
        )
        self._reconnect_timer = self._scheduler.call_later(self._reconnect_delay_ms, self._reconnect)
        if self._state.status != SessionStatus.RECONNECTING:
            self._set_status(SessionStatus.RECONNECTING)

    # ── Setup helpers ────────────────────────────────────────────────────

    def _select_api(self, simulated: bool) -> IMatchApi:
        if simulated:
            return self._mock_api
        if self._api is None:
            raise SessionPreconditionError("No match server configured")
        return self._api

    def _begin_request(self) -> int:
        self._next_request_id += 1
        self._pending_request_id = self._next_request_id
        self._set_status(SessionStatus.LOADING)
        return self._next_request_id

    def _on_request_failed(self, request_id: int, exc: ApiError) -> None:
        if request_id != self._pending_request_id:
            return
        self._pending_request_id = None
        self._fail(str(exc))

    def _fail(self, message: str) -> None:
        self._teardown()
        self._state.error = message
        self._set_status(SessionStatus.ERROR)

    # ── Notifications ────────────────────────────────────────────────────

    def _set_status(self, status: SessionStatus) -> None:
        previous = self._state.status
        self._state.status = status
        if previous != status:
            _LOGGER.info("Session %s -> %s", previous.value, status.value)
            self._emit_status(status)
        self._emit_state()

    def _emit_status(self, status: SessionStatus) -> None:
        for cb in self.events.on_status_changed:
            cb(status)

    def _emit_state(self) -> None:
        if not self.events.on_state_changed:
            return
        snapshot = self._state.snapshot()
        for cb in self.events.on_state_changed:
            cb(snapshot)
