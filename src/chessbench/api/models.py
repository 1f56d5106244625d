"""Request/response payloads of the match server's setup endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from chessbench.live.events import ClockUpdate, MatchResult


class ApiError(Exception):
    """A setup request failed (transport, HTTP status or payload shape)."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


def _field(data: Mapping[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ApiError(f"Unexpected response: {key!r} must be {kind.__name__}")
    return value


@dataclass(frozen=True, slots=True)
class EngineInfo:
    id: str
    name: str
    author: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineInfo:
        return cls(
            id=_field(data, "id", str),
            name=_field(data, "name", str),
            author=_field(data, "author", str),
        )


@dataclass(frozen=True, slots=True)
class MatchCreateRequest:
    white_engine_id: str
    black_engine_id: str
    initial_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "white_engine_id": self.white_engine_id,
            "black_engine_id": self.black_engine_id,
            "time_control": {"initial_ms": self.initial_ms},
        }


@dataclass(frozen=True, slots=True)
class MatchCreateResponse:
    match_id: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MatchCreateResponse:
        return cls(match_id=_field(data, "match_id", str))


@dataclass(frozen=True, slots=True)
class MatchStatusResponse:
    """Point-in-time snapshot of a match as reported by ``GET /api/match/<id>``."""

    match_id: str
    status: str  # "running" | "finished" | "error"
    current_fen: str
    pgn: str
    clocks: ClockUpdate
    result: MatchResult | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MatchStatusResponse:
        clocks = _field(data, "clocks", dict)
        raw_result = data.get("result")
        result = None
        if raw_result is not None:
            if not isinstance(raw_result, dict):
                raise ApiError("Unexpected response: 'result' must be dict")
            result = MatchResult(
                outcome=_field(raw_result, "result", str),
                reason=_field(raw_result, "reason", str),
            )
        return cls(
            match_id=_field(data, "match_id", str),
            status=_field(data, "status", str),
            current_fen=_field(data, "current_fen", str),
            pgn=_field(data, "pgn", str),
            clocks=ClockUpdate(
                white_ms=max(0, _field(clocks, "white_ms", int)),
                black_ms=max(0, _field(clocks, "black_ms", int)),
            ),
            result=result,
        )


def engines_from_payload(data: Any) -> list[EngineInfo]:
    if not isinstance(data, dict) or not isinstance(data.get("engines"), list):
        raise ApiError("Unexpected response: missing 'engines' list")
    engines = []
    for entry in data["engines"]:
        if not isinstance(entry, dict):
            raise ApiError("Unexpected response: engine entry must be an object")
        engines.append(EngineInfo.from_dict(entry))
    return engines
