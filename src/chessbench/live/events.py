"""Typed stream events: the wire contract shared by every event source.

Both :class:`~chessbench.live.stream.MatchStream` and
:class:`~chessbench.live.simulator.MatchSimulator` report these four events
through a :class:`StreamHandlers` object, so the session cannot tell which
one produced them.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, TypeAlias

from chessbench.core.notation import PGN_RESULT_TOKENS


class MalformedEventError(ValueError):
    """Raised when a wire message body does not match its event shape."""


class ResultReason(str, Enum):
    """Known termination reasons reported by the match server."""

    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    TIMEOUT = "timeout"
    ILLEGAL = "illegal"
    RESIGNATION = "resignation"
    DRAW = "draw"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Final outcome of a match: a PGN result token plus a free-text reason."""

    outcome: str
    reason: str

    @property
    def known_reason(self) -> ResultReason | None:
        try:
            return ResultReason(self.reason)
        except ValueError:
            return None


# ── Field readers ────────────────────────────────────────────────────────────


def _require(body: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in body:
        raise MalformedEventError(f"{kind} event missing field {key!r}")
    return body[key]


def _str_field(body: Mapping[str, Any], key: str, kind: str) -> str:
    value = _require(body, key, kind)
    if not isinstance(value, str):
        raise MalformedEventError(f"{kind} field {key!r} must be a string")
    return value


def _int_field(body: Mapping[str, Any], key: str, kind: str) -> int:
    value = _require(body, key, kind)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedEventError(f"{kind} field {key!r} must be an integer")
    return value


# ── Events ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MatchStarted:
    KIND: ClassVar[str] = "match_started"

    match_id: str
    start_fen: str

    @classmethod
    def from_dict(cls, body: Mapping[str, Any]) -> MatchStarted:
        return cls(
            match_id=_str_field(body, "match_id", cls.KIND),
            start_fen=_str_field(body, "start_fen", cls.KIND),
        )


@dataclass(frozen=True, slots=True)
class ClockUpdate:
    """Remaining time for both sides in milliseconds, never negative."""

    KIND: ClassVar[str] = "clock"

    white_ms: int
    black_ms: int

    @classmethod
    def from_dict(cls, body: Mapping[str, Any]) -> ClockUpdate:
        return cls(
            white_ms=max(0, _int_field(body, "white_ms", cls.KIND)),
            black_ms=max(0, _int_field(body, "black_ms", cls.KIND)),
        )


@dataclass(frozen=True, slots=True)
class MovePlayed:
    KIND: ClassVar[str] = "move"

    ply: int
    uci: str
    san: str
    fen: str
    pgn: str

    @classmethod
    def from_dict(cls, body: Mapping[str, Any]) -> MovePlayed:
        uci = _str_field(body, "uci", cls.KIND)
        if len(uci) not in (4, 5):
            raise MalformedEventError(f"move field 'uci' has bad length: {uci!r}")
        return cls(
            ply=_int_field(body, "ply", cls.KIND),
            uci=uci,
            san=_str_field(body, "san", cls.KIND),
            fen=_str_field(body, "fen", cls.KIND),
            pgn=_str_field(body, "pgn", cls.KIND),
        )


@dataclass(frozen=True, slots=True)
class MatchFinished:
    KIND: ClassVar[str] = "result"

    result: str
    reason: str

    @property
    def match_result(self) -> MatchResult:
        return MatchResult(outcome=self.result, reason=self.reason)

    @classmethod
    def from_dict(cls, body: Mapping[str, Any]) -> MatchFinished:
        result = _str_field(body, "result", cls.KIND)
        if result not in PGN_RESULT_TOKENS:
            raise MalformedEventError(f"result field 'result' is not a result token: {result!r}")
        return cls(result=result, reason=_str_field(body, "reason", cls.KIND))


StreamEvent: TypeAlias = MatchStarted | ClockUpdate | MovePlayed | MatchFinished

EVENT_TYPES: dict[str, type[StreamEvent]] = {
    MatchStarted.KIND: MatchStarted,
    ClockUpdate.KIND: ClockUpdate,
    MovePlayed.KIND: MovePlayed,
    MatchFinished.KIND: MatchFinished,
}


def decode_event(kind: str, data: str) -> StreamEvent | None:
    """Parse a wire message into a typed event.

    Returns ``None`` for event kinds outside the vocabulary. Raises
    :class:`MalformedEventError` when the body is not JSON or does not
    match the expected shape.
    """
    event_type = EVENT_TYPES.get(kind)
    if event_type is None:
        return None
    try:
        body = json.loads(data)
    except json.JSONDecodeError as exc:
        raise MalformedEventError(f"{kind} event body is not valid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise MalformedEventError(f"{kind} event body must be a JSON object")
    return event_type.from_dict(body)


def encode_event(event: StreamEvent) -> tuple[str, str]:
    """Serialise *event* to its ``(kind, json body)`` wire form."""
    return event.KIND, json.dumps(asdict(event), separators=(",", ":"))


# ── Handler set ──────────────────────────────────────────────────────────────


@dataclass(slots=True)
class StreamHandlers:
    """Optional callbacks for one event source.

    Missing callbacks are skipped. Sources report transport state through
    :meth:`open` / :meth:`error` and typed events through :meth:`dispatch`.
    """

    on_open: Callable[[], None] | None = None
    on_match_started: Callable[[MatchStarted], None] | None = None
    on_clock: Callable[[ClockUpdate], None] | None = None
    on_move: Callable[[MovePlayed], None] | None = None
    on_result: Callable[[MatchFinished], None] | None = None
    on_error: Callable[[], None] | None = None

    def open(self) -> None:
        if self.on_open is not None:
            self.on_open()

    def error(self) -> None:
        if self.on_error is not None:
            self.on_error()

    def dispatch(self, event: StreamEvent) -> None:
        """Route *event* to the callback registered for its kind."""
        if isinstance(event, MatchStarted):
            if self.on_match_started is not None:
                self.on_match_started(event)
        elif isinstance(event, ClockUpdate):
            if self.on_clock is not None:
                self.on_clock(event)
        elif isinstance(event, MovePlayed):
            if self.on_move is not None:
                self.on_move(event)
        elif isinstance(event, MatchFinished):
            if self.on_result is not None:
                self.on_result(event)
