"""Tests for the SSE decoder and the match stream handle."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from chessbench.live.events import ClockUpdate, MatchFinished, StreamHandlers
from chessbench.live.stream import MatchStream, SseDecoder, StreamOpenError, stream_url


class TestSseDecoder:
    def test_single_message(self) -> None:
        decoder = SseDecoder()
        assert list(decoder.feed(b"event: clock\ndata: {}\n\n")) == [("clock", "{}")]

    def test_default_kind(self) -> None:
        assert list(SseDecoder().feed(b"data: hi\n\n")) == [("message", "hi")]

    def test_byte_at_a_time(self) -> None:
        decoder = SseDecoder()
        raw = b"event: move\ndata: {\"a\": 1}\n\n"
        out = []
        for idx in range(len(raw)):
            out.extend(decoder.feed(raw[idx : idx + 1]))
        assert out == [("move", '{"a": 1}')]

    def test_multiline_data_joined(self) -> None:
        assert list(SseDecoder().feed(b"data: a\ndata: b\n\n")) == [("message", "a\nb")]

    def test_crlf_and_cr_line_endings(self) -> None:
        decoder = SseDecoder()
        out = list(decoder.feed(b"event: clock\r\ndata: 1\r\n\r\nevent: move\rdata: 2\r\r\n"))
        assert out == [("clock", "1"), ("move", "2")]

    def test_crlf_split_across_chunks(self) -> None:
        decoder = SseDecoder()
        assert list(decoder.feed(b"data: x\r")) == []
        assert list(decoder.feed(b"\n\r\n")) == [("message", "x")]

    def test_comments_and_blank_blocks_ignored(self) -> None:
        decoder = SseDecoder()
        assert list(decoder.feed(b": keep-alive\n\n\nevent: clock\n\n")) == []

    def test_event_name_resets_after_dispatch(self) -> None:
        out = list(SseDecoder().feed(b"event: clock\ndata: 1\n\ndata: 2\n\n"))
        assert out == [("clock", "1"), ("message", "2")]

    def test_id_field(self) -> None:
        decoder = SseDecoder()
        list(decoder.feed(b"id: 42\ndata: x\n\n"))
        assert decoder.last_event_id == "42"

    def test_field_without_space(self) -> None:
        assert list(SseDecoder().feed(b"data:x\n\n")) == [("message", "x")]

    def test_utf8_split_across_chunks(self) -> None:
        decoder = SseDecoder()
        raw = "data: Réti\n\n".encode()
        split = raw.index(b"\xc3") + 1
        assert list(decoder.feed(raw[:split])) == []
        assert list(decoder.feed(raw[split:])) == [("message", "Réti")]


class _StubSignal:
    def __init__(self) -> None:
        self._slots: list[Callable[..., object]] = []

    def connect(self, slot: Callable[..., object]) -> None:
        self._slots.append(slot)

    def emit(self, *args: object) -> None:
        for slot in list(self._slots):
            slot(*args)


class _StubBytes:
    def __init__(self, raw: bytes) -> None:
        self._raw = raw

    def data(self) -> bytes:
        return self._raw


class _StubReply:
    def __init__(self) -> None:
        self.metaDataChanged = _StubSignal()
        self.readyRead = _StubSignal()
        self.errorOccurred = _StubSignal()
        self.finished = _StubSignal()
        self.status: int | None = None
        self.pending = b""
        self.aborted = False
        self.deleted = False

    def attribute(self, _attr: object) -> int | None:
        return self.status

    def readAll(self) -> _StubBytes:
        chunk, self.pending = self.pending, b""
        return _StubBytes(chunk)

    def abort(self) -> None:
        self.aborted = True

    def deleteLater(self) -> None:
        self.deleted = True

    def push(self, raw: bytes) -> None:
        self.pending += raw
        self.readyRead.emit()


class _StubNetwork:
    def __init__(self) -> None:
        self.requests: list[object] = []
        self.reply = _StubReply()

    def get(self, request: object) -> _StubReply:
        self.requests.append(request)
        return self.reply


class _Recorder:
    def __init__(self) -> None:
        self.log: list[object] = []

    def handlers(self) -> StreamHandlers:
        return StreamHandlers(
            on_open=lambda: self.log.append("open"),
            on_match_started=self.log.append,
            on_clock=self.log.append,
            on_move=self.log.append,
            on_result=self.log.append,
            on_error=lambda: self.log.append("error"),
        )


def _open(recorder: _Recorder) -> tuple[MatchStream, _StubReply, _StubNetwork]:
    network = _StubNetwork()
    stream = MatchStream.open(network, "http://127.0.0.1:3000/", "m1", recorder.handlers())
    return stream, network.reply, network


class TestStreamUrl:
    def test_quotes_match_id(self) -> None:
        assert stream_url("http://h:1/", "a/b c") == "http://h:1/api/match/a%2Fb%20c/stream"


class TestMatchStreamOpen:
    def test_issues_event_stream_request(self, qapp) -> None:
        _, _, network = _open(_Recorder())
        request = network.requests[0]
        assert request.url().toString() == "http://127.0.0.1:3000/api/match/m1/stream"
        assert request.rawHeader(b"Accept").data() == b"text/event-stream"

    def test_empty_match_id(self, qapp) -> None:
        with pytest.raises(StreamOpenError):
            MatchStream.open(_StubNetwork(), "http://127.0.0.1:3000", "", StreamHandlers())

    def test_non_http_url(self, qapp) -> None:
        with pytest.raises(StreamOpenError):
            MatchStream.open(_StubNetwork(), "ftp://127.0.0.1", "m1", StreamHandlers())


class TestMatchStreamEvents:
    def test_open_on_success_status(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.status = 200
        reply.metaDataChanged.emit()
        reply.metaDataChanged.emit()
        assert recorder.log == ["open"]

    def test_error_on_rejected_status(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.status = 404
        reply.metaDataChanged.emit()
        reply.finished.emit()
        assert recorder.log == ["error"]

    def test_decodes_events_across_chunks(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.push(b'event: clock\ndata: {"white_ms": 1,')
        reply.push(b' "black_ms": 2}\n\n')
        assert recorder.log == [ClockUpdate(1, 2)]

    def test_malformed_and_unknown_dropped(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.push(b"event: clock\ndata: {oops\n\nevent: ping\ndata: {}\n\n")
        reply.push(b'event: clock\ndata: {"white_ms": 3, "black_ms": 4}\n\n')
        assert recorder.log == [ClockUpdate(3, 4)]

    def test_end_without_result_is_error(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.errorOccurred.emit(object())
        reply.finished.emit()
        assert recorder.log == ["error"]

    def test_end_after_result_is_clean(self, qapp) -> None:
        recorder = _Recorder()
        _, reply, _ = _open(recorder)
        reply.push(b'event: result\ndata: {"result": "1-0", "reason": "checkmate"}\n\n')
        reply.finished.emit()
        assert recorder.log == [MatchFinished("1-0", "checkmate")]

    def test_close_is_idempotent_and_silences(self, qapp) -> None:
        recorder = _Recorder()
        stream, reply, _ = _open(recorder)
        stream.close()
        stream.close()
        assert stream.closed
        assert reply.aborted and reply.deleted
        reply.finished.emit()
        stream._on_bytes(b'event: clock\ndata: {"white_ms": 1, "black_ms": 1}\n\n')
        assert recorder.log == []

    def test_close_from_handler_stops_remaining_messages(self, qapp) -> None:
        log: list[object] = []
        stream = MatchStream(StreamHandlers(on_clock=lambda e: (log.append(e), stream.close())))
        stream._on_bytes(
            b'event: clock\ndata: {"white_ms": 1, "black_ms": 1}\n\n'
            b'event: clock\ndata: {"white_ms": 2, "black_ms": 2}\n\n'
        )
        assert log == [ClockUpdate(1, 1)]
