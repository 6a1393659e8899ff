"""
Tests for request/response tracing.
"""

import logging

import pytest

from request_pipeline.errors import ResponseFailure, TransportFailure
from request_pipeline.logging import REDACTED
from request_pipeline.models import Request, Response
from request_pipeline.stages import TraceStage
from request_pipeline.types import TransportFailureKind


class ExplodingSink:
    def record(self, level, message, extra=None):
        raise RuntimeError("sink down")


class TestTraceStage:

    @pytest.mark.asyncio
    async def test_request_line(self, sink):
        stage = TraceStage(sink)
        await stage.on_build(Request("POST", "/goals"))

        assert "REQUEST[POST] => /goals" in sink.messages(logging.INFO)

    @pytest.mark.asyncio
    async def test_headers_redacted(self, sink):
        stage = TraceStage(sink)
        request = Request(
            "GET",
            "/goals",
            headers={"authorization": "Bearer secret", "Cookie": "sid=1", "Accept": "json"},
        )

        await stage.on_build(request)

        header_records = [
            extra["headers"] for lvl, msg, extra in sink.records if msg.startswith("Headers:")
        ]
        assert header_records == [
            {"authorization": REDACTED, "Cookie": REDACTED, "Accept": "json"}
        ]
        assert not any("secret" in msg for msg in sink.messages())

    @pytest.mark.asyncio
    async def test_does_not_mutate_request_headers(self, sink):
        stage = TraceStage(sink)
        request = Request("GET", "/goals", headers={"Authorization": "Bearer secret"})

        await stage.on_build(request)

        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_request_body_only_when_enabled(self, sink):
        request = Request("POST", "/goals", body={"title": "Run"})

        await TraceStage(sink).on_build(request)
        assert not sink.has("Body:")

        await TraceStage(sink, log_request_body=True).on_build(request)
        assert sink.has("Body:", level=logging.DEBUG)

    @pytest.mark.asyncio
    async def test_response_line_with_duration(self, sink):
        stage = TraceStage(sink)
        request = Request("GET", "/goals")
        await stage.on_build(request)
        response = Response(status_code=200, body={"items": []})

        result = await stage.on_response(request, response)

        assert result is response
        records = [r for r in sink.records if r[1] == "RESPONSE[200] => /goals"]
        assert len(records) == 1
        assert records[0][0] == logging.INFO
        assert records[0][2]["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_error_line_with_status(self, sink):
        stage = TraceStage(sink)
        request = Request("GET", "/goals/9")
        failure = ResponseFailure(Response(status_code=404, body="missing"))

        outcome = await stage.on_error(request, failure)

        assert outcome is None
        assert sink.has("ERROR[404] => /goals/9", level=logging.ERROR)
        assert not sink.has("Error Response")

    @pytest.mark.asyncio
    async def test_error_line_without_status(self, sink):
        stage = TraceStage(sink)
        failure = TransportFailure(TransportFailureKind.TIMEOUT, "Request timeout after 30s")

        await stage.on_error(Request("GET", "/goals"), failure)

        assert sink.has("ERROR[N/A] => /goals: Request timeout after 30s")
        extra = sink.records[-1][2]
        assert extra["failure_kind"] == "timeout"

    @pytest.mark.asyncio
    async def test_verbose_error_body_truncated(self, sink):
        stage = TraceStage(sink, verbose=True)
        failure = ResponseFailure(Response(status_code=500, body="x" * 800))

        await stage.on_error(Request("GET", "/goals"), failure)

        body_messages = [m for m in sink.messages() if m.startswith("Error Response: ")]
        assert len(body_messages) == 1
        logged = body_messages[0][len("Error Response: "):]
        assert logged == "x" * 500 + "...(truncated)"

    @pytest.mark.asyncio
    async def test_sink_errors_never_escape(self):
        stage = TraceStage(ExplodingSink(), verbose=True)
        request = Request("GET", "/goals")
        response = Response(status_code=200)

        await stage.on_build(request)
        assert await stage.on_response(request, response) is response
        assert await stage.on_error(
            request, ResponseFailure(Response(status_code=500, body="x"))
        ) is None

    @pytest.mark.asyncio
    async def test_sink_errors_logged_at_debug(self, caplog):
        stage = TraceStage(ExplodingSink())

        with caplog.at_level(logging.DEBUG, logger="request_pipeline.stages.trace"):
            await stage.on_build(Request("GET", "/goals"))

        record = caplog.records[-1]
        assert record.getMessage() == "Trace stage failed to record request"
        assert record.levelno == logging.DEBUG
        assert record.path == "/goals"
        assert record.error_message == "sink down"
