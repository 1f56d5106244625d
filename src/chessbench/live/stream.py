"""Live match feed over Server-Sent Events."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterator
from urllib.parse import quote

from PyQt6.QtCore import QUrl
from PyQt6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from chessbench.live.events import (
    MalformedEventError,
    MatchFinished,
    StreamHandlers,
    decode_event,
)
from chessbench.live.interfaces import IEventSource

_LOGGER = logging.getLogger(__name__)


class StreamOpenError(Exception):
    """Raised when a stream request cannot even be issued."""


class SseDecoder:
    """Incremental ``text/event-stream`` decoder.

    Feed raw bytes in arbitrary chunks; complete messages come back as
    ``(event kind, data)`` pairs. Messages without an ``event:`` field get
    the default kind ``"message"``.
    """

    __slots__ = ("_text_decoder", "_buffer", "_event", "_data", "last_event_id")

    def __init__(self) -> None:
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._event = ""
        self._data: list[str] = []
        self.last_event_id = ""

    def feed(self, chunk: bytes) -> Iterator[tuple[str, str]]:
        self._buffer += self._text_decoder.decode(chunk)
        while True:
            line, sep, rest = self._split_line(self._buffer)
            if not sep:
                return
            self._buffer = rest
            message = self._process_line(line)
            if message is not None:
                yield message

    @staticmethod
    def _split_line(text: str) -> tuple[str, str, str]:
        for idx, ch in enumerate(text):
            if ch == "\n":
                return text[:idx], "\n", text[idx + 1 :]
            if ch == "\r":
                # Lone CR at the chunk edge may be the first half of CRLF.
                if idx + 1 == len(text):
                    return text, "", ""
                sep_len = 2 if text[idx + 1] == "\n" else 1
                return text[:idx], text[idx : idx + sep_len], text[idx + sep_len :]
        return text, "", ""

    def _process_line(self, line: str) -> tuple[str, str] | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id" and "\0" not in value:
            self.last_event_id = value
        return None

    def _dispatch(self) -> tuple[str, str] | None:
        kind = self._event or "message"
        data = self._data
        self._event = ""
        self._data = []
        if not data:
            return None
        return kind, "\n".join(data)


def stream_url(base_url: str, match_id: str) -> str:
    return f"{base_url.rstrip('/')}/api/match/{quote(match_id, safe='')}/stream"


class MatchStream(IEventSource):
    """One live feed connection for one match.

    Owns exactly one network reply and never reconnects by itself; a
    transport failure is reported once through ``handlers.on_error`` and the
    owner decides what to do next.
    """

    __slots__ = (
        "_handlers",
        "_decoder",
        "_reply",
        "_opened",
        "_closed",
        "_error_reported",
        "_saw_result",
    )

    def __init__(self, handlers: StreamHandlers) -> None:
        self._handlers = handlers
        self._decoder = SseDecoder()
        self._reply: QNetworkReply | None = None
        self._opened = False
        self._closed = False
        self._error_reported = False
        self._saw_result = False

    @classmethod
    def open(
        cls,
        network: QNetworkAccessManager,
        base_url: str,
        match_id: str,
        handlers: StreamHandlers,
    ) -> MatchStream:
        """Issue ``GET /api/match/<id>/stream`` and return the live handle."""
        if not match_id:
            raise StreamOpenError("Match id must not be empty")
        url = QUrl(stream_url(base_url, match_id))
        if not url.isValid() or url.scheme() not in ("http", "https"):
            raise StreamOpenError(f"Invalid stream URL: {url.toString()}")

        request = QNetworkRequest(url)
        request.setRawHeader(b"Accept", b"text/event-stream")
        request.setRawHeader(b"Cache-Control", b"no-cache")

        stream = cls(handlers)
        stream.attach(network.get(request))
        _LOGGER.debug("Opening match stream %s", url.toString())
        return stream

    def attach(self, reply: QNetworkReply) -> None:
        self._reply = reply
        reply.metaDataChanged.connect(self._on_meta_data_changed)
        reply.readyRead.connect(self._on_ready_read)
        reply.errorOccurred.connect(self._on_network_error)
        reply.finished.connect(self._on_finished)

    # ── IEventSource ─────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        reply = self._reply
        self._reply = None
        if reply is not None:
            reply.abort()
            reply.deleteLater()

    # ── Reply slots ──────────────────────────────────────────────────────

    def _on_meta_data_changed(self) -> None:
        if self._closed or self._opened or self._reply is None:
            return
        status = self._reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
        self._handle_status(status)

    def _on_ready_read(self) -> None:
        if self._closed or self._reply is None:
            return
        self._on_bytes(self._reply.readAll().data())

    def _on_network_error(self, code: QNetworkReply.NetworkError) -> None:
        if self._closed:
            return
        _LOGGER.info("Match stream transport error: %s", code)
        self._report_error()

    def _on_finished(self) -> None:
        if self._closed:
            return
        if not self._saw_result:
            _LOGGER.info("Match stream ended before a result")
            self._report_error()

    # ── Protocol handling ────────────────────────────────────────────────

    def _handle_status(self, status: int | None) -> None:
        if status is None:
            return
        if not 200 <= status < 300:
            _LOGGER.warning("Match stream rejected with HTTP %s", status)
            self._report_error()
            return
        self._opened = True
        self._handlers.open()

    def _on_bytes(self, chunk: bytes) -> None:
        for kind, data in self._decoder.feed(chunk):
            if self._closed:
                return
            self._on_message(kind, data)

    def _on_message(self, kind: str, data: str) -> None:
        try:
            event = decode_event(kind, data)
        except MalformedEventError as exc:
            _LOGGER.warning("Dropping malformed %s message: %s", kind, exc)
            return
        if event is None:
            _LOGGER.debug("Ignoring unknown stream event %r", kind)
            return
        if isinstance(event, MatchFinished):
            self._saw_result = True
        _LOGGER.debug("Stream event %s", event)
        self._handlers.dispatch(event)

    def _report_error(self) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        self._handlers.error()
