"""Tests for the scripted match simulator."""

from __future__ import annotations

import pytest

from chessbench.core import STARTING_FEN, parse_placement, side_to_move, square_to_coordinate
from chessbench.live import ManualScheduler, MatchSimulator, ScriptedMove, StreamHandlers
from chessbench.live.events import ClockUpdate, MatchFinished, MatchResult, MatchStarted, MovePlayed
from chessbench.live.simulator import SCRIPTED_MOVES

_FULL_PGN = (
    "1. e4 c5 2. Nf3 d6 3. d4 cxd4 4. Nxd4 Nf6 5. Nc3 a6 "
    "6. Be2 e6 7. O-O Be7 8. f4 O-O 9. Be3 Qc7 10. a4 Nc6"
)


def _recording_handlers(log: list[object]) -> StreamHandlers:
    return StreamHandlers(
        on_open=lambda: log.append("open"),
        on_match_started=log.append,
        on_clock=log.append,
        on_move=log.append,
        on_result=log.append,
        on_error=lambda: log.append("error"),
    )


def _piece_at(fen: str, square: str) -> str | None:
    col, row = square_to_coordinate(square)
    return parse_placement(fen)[row][col]


class TestSimulatorOpen:
    def test_open_announces_match(self) -> None:
        log: list[object] = []
        MatchSimulator(300_000, _recording_handlers(log), ManualScheduler(), match_id="mock-1").open()
        assert log == ["open", MatchStarted(match_id="mock-1", start_fen=STARTING_FEN)]

    def test_open_is_single_shot(self) -> None:
        sim = MatchSimulator(1000, StreamHandlers(), ManualScheduler())
        sim.open()
        with pytest.raises(RuntimeError):
            sim.open()

    def test_close_inside_on_open_starts_nothing(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        handlers = _recording_handlers(log)
        handlers.on_open = lambda: sim.close()
        sim = MatchSimulator(1000, handlers, scheduler)
        sim.open()
        scheduler.advance(5000)
        assert log == []
        assert scheduler.pending == 0

    @pytest.mark.parametrize(
        "kwargs",
        [{"initial_clock_ms": -1}, {"clock_interval_ms": 0}, {"move_interval_ms": -5}],
    )
    def test_invalid_arguments(self, kwargs: dict[str, int]) -> None:
        args = {"initial_clock_ms": 1000, **kwargs}
        initial = args.pop("initial_clock_ms")
        with pytest.raises(ValueError):
            MatchSimulator(initial, StreamHandlers(), ManualScheduler(), **args)


class TestSimulatorTimeline:
    def test_first_clock_tick(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        MatchSimulator(300_000, _recording_handlers(log), scheduler).open()
        scheduler.advance(200)
        assert log[-1] == ClockUpdate(white_ms=299_800, black_ms=299_800)

    def test_first_move_at_move_interval(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        MatchSimulator(300_000, _recording_handlers(log), scheduler).open()
        scheduler.advance(1199)
        assert not any(isinstance(e, MovePlayed) for e in log)

        scheduler.advance(1)
        moves = [e for e in log if isinstance(e, MovePlayed)]
        assert len(moves) == 1
        move = moves[0]
        assert (move.ply, move.uci, move.san, move.pgn) == (1, "e2e4", "e4", "1. e4")
        assert move.fen == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - - 0 1"

    def test_move_and_clock_on_shared_deadline(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        MatchSimulator(300_000, _recording_handlers(log), scheduler).open()
        scheduler.advance(1200)
        assert isinstance(log[-2], MovePlayed)
        assert log[-1] == ClockUpdate(298_800, 298_800)

    def test_clocks_clamp_at_zero(self) -> None:
        scheduler = ManualScheduler()
        clocks: list[ClockUpdate] = []
        MatchSimulator(300, StreamHandlers(on_clock=clocks.append), scheduler).open()
        scheduler.advance(600)
        assert [c.white_ms for c in clocks] == [100, 0, 0]
        assert [c.black_ms for c in clocks] == [100, 0, 0]

    def test_full_script_then_single_result(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        sim = MatchSimulator(300_000, _recording_handlers(log), scheduler)
        sim.open()
        scheduler.advance(len(SCRIPTED_MOVES) * 1200 + 1200)

        moves = [e for e in log if isinstance(e, MovePlayed)]
        results = [e for e in log if isinstance(e, MatchFinished)]
        assert [m.ply for m in moves] == list(range(1, 21))
        assert moves[-1].pgn == _FULL_PGN
        assert results == [MatchFinished(result="1-0", reason="checkmate")]
        assert log[-1] == results[0]
        assert sim.closed

        final = moves[-1].fen
        assert side_to_move(final) == "w"
        assert _piece_at(final, "g1") == "K"
        assert _piece_at(final, "f1") == "R"
        assert _piece_at(final, "g8") == "k"
        assert _piece_at(final, "f8") == "r"
        assert _piece_at(final, "c6") == "n"

        count = len(log)
        scheduler.advance(60_000)
        assert len(log) == count
        assert scheduler.pending == 0

    def test_custom_script_and_result(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        MatchSimulator(
            10_000,
            _recording_handlers(log),
            scheduler,
            clock_interval_ms=5000,
            move_interval_ms=500,
            script=[ScriptedMove("g1f3", "Nf3")],
            result=MatchResult("0-1", "resignation"),
        ).open()
        scheduler.advance(1000)
        assert log[2:] == [
            MovePlayed(1, "g1f3", "Nf3", "rnbqkbnr/pppppppp/8/8/8/5N2/PPPPPPPP/RNBQKB1R b - - 0 1", "1. Nf3"),
            MatchFinished("0-1", "resignation"),
        ]

    def test_close_stops_all_events(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        sim = MatchSimulator(300_000, _recording_handlers(log), scheduler)
        sim.open()
        scheduler.advance(1200)
        count = len(log)
        sim.close()
        sim.close()
        scheduler.advance(30_000)
        assert len(log) == count
        assert scheduler.pending == 0


class TestSimulatorClosedBeforeOpen:
    def test_no_handlers_fire(self) -> None:
        scheduler = ManualScheduler()
        log: list[object] = []
        sim = MatchSimulator(1000, _recording_handlers(log), scheduler)
        sim.close()
        assert sim.open() is sim
        scheduler.advance(5000)
        assert log == []
        assert scheduler.pending == 0
