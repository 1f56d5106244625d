"""Setup API: engine listing and match creation, over HTTP or mocked."""

from chessbench.api.client import HttpMatchApi, IMatchApi, decode_response
from chessbench.api.mock import MOCK_ENGINES, MockMatchApi
from chessbench.api.models import (
    ApiError,
    EngineInfo,
    MatchCreateRequest,
    MatchCreateResponse,
    MatchStatusResponse,
)

__all__ = [
    "ApiError",
    "EngineInfo",
    "HttpMatchApi",
    "IMatchApi",
    "MOCK_ENGINES",
    "MatchCreateRequest",
    "MatchCreateResponse",
    "MatchStatusResponse",
    "MockMatchApi",
    "decode_response",
]
