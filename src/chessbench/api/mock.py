"""In-process stand-in for the setup endpoints, paired with the simulator."""

from __future__ import annotations

import time
from collections.abc import Callable

from chessbench.api.client import CreatedCallback, EnginesCallback, FailureCallback, IMatchApi
from chessbench.api.models import EngineInfo, MatchCreateRequest, MatchCreateResponse

MOCK_ENGINES: tuple[EngineInfo, ...] = (
    EngineInfo(id="stockfish-16", name="Stockfish 16", author="SF Team"),
    EngineInfo(id="lc0-0.30", name="Leela Chess Zero", author="Lc0 Team"),
    EngineInfo(id="ethereal-14", name="Ethereal 14", author="Andrew Grant"),
)


class MockMatchApi(IMatchApi):
    """Answers setup requests synchronously with canned data.

    Match ids are ``mock-<epoch ms>``; *clock* returns seconds and defaults
    to :func:`time.time`.
    """

    __slots__ = ("_engines", "_clock")

    def __init__(
        self,
        engines: tuple[EngineInfo, ...] = MOCK_ENGINES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engines = engines
        self._clock = clock

    def list_engines(self, on_success: EnginesCallback, on_failure: FailureCallback) -> None:
        on_success(list(self._engines))

    def create_match(
        self,
        request: MatchCreateRequest,
        on_success: CreatedCallback,
        on_failure: FailureCallback,
    ) -> None:
        on_success(MatchCreateResponse(match_id=f"mock-{int(self._clock() * 1000)}"))
