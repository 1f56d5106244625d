"""HTTP client for the match server's one-shot setup endpoints."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

from PyQt6.QtCore import QUrl
from PyQt6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from chessbench.api.models import (
    ApiError,
    EngineInfo,
    MatchCreateRequest,
    MatchCreateResponse,
    MatchStatusResponse,
    engines_from_payload,
)

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

EnginesCallback = Callable[[list[EngineInfo]], None]
CreatedCallback = Callable[[MatchCreateResponse], None]
FailureCallback = Callable[[ApiError], None]


class IMatchApi(ABC):
    """Setup operations a session needs before it can attach to a feed."""

    @abstractmethod
    def list_engines(self, on_success: EnginesCallback, on_failure: FailureCallback) -> None:
        """Fetch the engines the server can pit against each other."""

    @abstractmethod
    def create_match(
        self,
        request: MatchCreateRequest,
        on_success: CreatedCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Ask the server to start a match."""


def decode_response(
    status: int | None,
    body: bytes,
    parse: Callable[[Any], T],
    failure_message: str,
) -> T:
    """Turn a finished HTTP exchange into a payload or an :class:`ApiError`.

    Non-2xx answers carry the server's ``{"error": ...}`` text when present.
    """
    if status is None:
        raise ApiError(failure_message)

    try:
        data = json.loads(body.decode("utf-8")) if body else None
    except (UnicodeDecodeError, json.JSONDecodeError):
        data = None

    if not 200 <= status < 300:
        detail = data.get("error") if isinstance(data, dict) else None
        message = f"{failure_message}: {detail}" if detail else failure_message
        raise ApiError(message, status=status)

    if data is None:
        raise ApiError(f"{failure_message}: response is not JSON", status=status)
    try:
        return parse(data)
    except ApiError as exc:
        raise ApiError(f"{failure_message}: {exc}", status=status) from exc


class HttpMatchApi(IMatchApi):
    """Setup endpoints over ``QNetworkAccessManager`` (non-blocking)."""

    __slots__ = ("_network", "_base_url")

    def __init__(self, network: QNetworkAccessManager, base_url: str) -> None:
        self._network = network
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def list_engines(self, on_success: EnginesCallback, on_failure: FailureCallback) -> None:
        reply = self._network.get(self._request("/api/engines"))
        self._watch(reply, engines_from_payload, "Failed to load engines", on_success, on_failure)

    def create_match(
        self,
        request: MatchCreateRequest,
        on_success: CreatedCallback,
        on_failure: FailureCallback,
    ) -> None:
        body = json.dumps(request.to_dict()).encode("utf-8")
        http_request = self._request("/api/match")
        http_request.setHeader(
            QNetworkRequest.KnownHeaders.ContentTypeHeader, "application/json"
        )
        reply = self._network.post(http_request, body)
        self._watch(
            reply,
            _match_created_from_payload,
            "Failed to create match",
            on_success,
            on_failure,
        )

    def get_match(
        self,
        match_id: str,
        on_success: Callable[[MatchStatusResponse], None],
        on_failure: FailureCallback,
    ) -> None:
        reply = self._network.get(self._request(f"/api/match/{quote(match_id, safe='')}"))
        self._watch(
            reply,
            _match_status_from_payload,
            "Failed to load match",
            on_success,
            on_failure,
        )

    # ── Internal ─────────────────────────────────────────────────────────

    def _request(self, path: str) -> QNetworkRequest:
        request = QNetworkRequest(QUrl(f"{self._base_url}{path}"))
        request.setRawHeader(b"Accept", b"application/json")
        return request

    def _watch(
        self,
        reply: QNetworkReply,
        parse: Callable[[Any], T],
        failure_message: str,
        on_success: Callable[[T], None],
        on_failure: FailureCallback,
    ) -> None:
        def finished() -> None:
            status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
            body = reply.readAll().data()
            if status is None and reply.error() != QNetworkReply.NetworkError.NoError:
                _LOGGER.info("%s: %s", failure_message, reply.errorString())
            reply.deleteLater()
            try:
                payload = decode_response(status, body, parse, failure_message)
            except ApiError as exc:
                _LOGGER.warning("%s", exc)
                on_failure(exc)
                return
            on_success(payload)

        reply.finished.connect(finished)


def _match_created_from_payload(data: Any) -> MatchCreateResponse:
    if not isinstance(data, dict):
        raise ApiError("Unexpected response: expected an object")
    return MatchCreateResponse.from_dict(data)


def _match_status_from_payload(data: Any) -> MatchStatusResponse:
    if not isinstance(data, dict):
        raise ApiError("Unexpected response: expected an object")
    return MatchStatusResponse.from_dict(data)
