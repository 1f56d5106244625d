"""Headless live monitor: follows one match and logs what the session sees."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING

from chessbench.api import HttpMatchApi
from chessbench.config import LiveSettings
from chessbench.core import format_grid, parse_placement
from chessbench.live import (
    IScheduler,
    MatchSimulator,
    MatchStream,
    SessionStatus,
    StreamHandlers,
    StreamOpenError,
)
from chessbench.live.session import LiveSession, SessionPreconditionError, SessionState

if TYPE_CHECKING:
    from PyQt6.QtNetwork import QNetworkAccessManager

_LOGGER = logging.getLogger(__name__)


def build_session(
    settings: LiveSettings,
    scheduler: IScheduler,
    network: QNetworkAccessManager | None = None,
) -> LiveSession:
    """Wire a :class:`LiveSession` to the simulator and, given *network*, the server."""
    settings.validate()

    def open_simulator(match_id: str, initial_ms: int, handlers: StreamHandlers) -> MatchSimulator:
        simulator = MatchSimulator(
            initial_ms,
            handlers,
            scheduler,
            match_id=match_id,
            clock_interval_ms=settings.clock_interval_ms,
            move_interval_ms=settings.move_interval_ms,
        )
        return simulator.open()

    def open_stream(match_id: str, handlers: StreamHandlers) -> MatchStream:
        if network is None:
            raise StreamOpenError("No network access manager configured")
        return MatchStream.open(network, settings.base_url, match_id, handlers)

    return LiveSession(
        scheduler=scheduler,
        stream_factory=open_stream,
        simulator_factory=open_simulator,
        api=HttpMatchApi(network, settings.base_url) if network is not None else None,
        reconnect_delay_ms=settings.reconnect_delay_ms,
    )


def format_clock(ms: int) -> str:
    """``m:ss`` from ten minutes up, ``m:ss.t`` below."""
    ms = max(0, ms)
    mins, secs = divmod(ms // 1000, 60)
    tenths = (ms // 100) % 10
    if mins >= 10:
        return f"{mins}:{secs:02d}"
    return f"{mins}:{secs:02d}.{tenths}"


class ConsoleMonitor:
    """Logs moves, results and status changes of one session."""

    __slots__ = ("_last_move", "_on_done")

    def __init__(
        self,
        session: LiveSession,
        on_done: Callable[[int], None] | None = None,
    ) -> None:
        self._last_move: str | None = None
        self._on_done = on_done
        session.events.on_status_changed.append(self._on_status)
        session.events.on_state_changed.append(self._on_state)

    def _on_status(self, status: SessionStatus) -> None:
        _LOGGER.info("Status: %s", status.value)

    def _on_state(self, state: SessionState) -> None:
        if state.last_move is not None and state.last_move != self._last_move:
            self._last_move = state.last_move
            clocks = ""
            if state.clocks is not None:
                clocks = (
                    f" [{format_clock(state.clocks.white_ms)}"
                    f" | {format_clock(state.clocks.black_ms)}]"
                )
            _LOGGER.info("%s%s\n%s", state.moves_text, clocks, format_grid(parse_placement(state.position)))

        if state.status == SessionStatus.FINISHED and state.result is not None:
            _LOGGER.info("Result: %s (%s)", state.result.outcome, state.result.reason)
            self._finish(0)
        elif state.status == SessionStatus.ERROR:
            _LOGGER.error("Session failed: %s", state.error)
            self._finish(1)

    def _finish(self, code: int) -> None:
        if self._on_done is not None:
            on_done, self._on_done = self._on_done, None
            on_done(code)


def run_application(argv: list[str] | None = None) -> int:
    """Run the monitor until the match finishes.

    With no arguments the built-in simulator plays; a single argument is
    taken as the match server base URL.
    """
    from PyQt6.QtCore import QCoreApplication, QTimer
    from PyQt6.QtNetwork import QNetworkAccessManager

    from chessbench.live import QtScheduler

    args = sys.argv if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = LiveSettings()
    if len(args) > 1:
        settings.base_url = args[1]
        settings.simulated = False

    app = QCoreApplication(args)
    app.setApplicationName("Chessbench")
    network = QNetworkAccessManager(app)
    session = build_session(settings, QtScheduler(app), network)
    ConsoleMonitor(session, on_done=app.exit)

    def launch() -> None:
        try:
            session.launch(
                settings.white_engine_id,
                settings.black_engine_id,
                settings.initial_ms,
                simulated=settings.simulated,
            )
        except SessionPreconditionError as exc:
            _LOGGER.error("Cannot launch match: %s", exc)
            app.exit(1)

    QTimer.singleShot(0, launch)
    code = app.exec()
    session.stop()
    return code


def main() -> None:
    """Launch the Chessbench monitor."""
    sys.exit(run_application())


if __name__ == "__main__":
    main()
