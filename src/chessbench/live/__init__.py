"""Live layer: event sources, timers and the wire contract.

Quick start::

    from chessbench.live import ManualScheduler, MatchSimulator, StreamHandlers
    from chessbench.live.session import LiveSession

``LiveSession`` lives in :mod:`chessbench.live.session`; it depends on the
setup API, which in turn builds on the event types exported here.
"""

from chessbench.live.events import (
    ClockUpdate,
    MalformedEventError,
    MatchFinished,
    MatchResult,
    MatchStarted,
    MovePlayed,
    ResultReason,
    StreamEvent,
    StreamHandlers,
    decode_event,
    encode_event,
)
from chessbench.live.interfaces import IEventSource, IScheduler, ITimer, SessionStatus
from chessbench.live.scheduler import ManualScheduler, QtScheduler
from chessbench.live.simulator import SCRIPTED_MOVES, MatchSimulator, ScriptedMove
from chessbench.live.stream import MatchStream, SseDecoder, StreamOpenError

__all__ = [
    # Interfaces
    "IEventSource",
    "IScheduler",
    "ITimer",
    "SessionStatus",
    # Wire contract
    "ClockUpdate",
    "MalformedEventError",
    "MatchFinished",
    "MatchResult",
    "MatchStarted",
    "MovePlayed",
    "ResultReason",
    "StreamEvent",
    "StreamHandlers",
    "decode_event",
    "encode_event",
    # Sources / timers
    "SCRIPTED_MOVES",
    "ManualScheduler",
    "MatchSimulator",
    "MatchStream",
    "QtScheduler",
    "ScriptedMove",
    "SseDecoder",
    "StreamOpenError",
]
