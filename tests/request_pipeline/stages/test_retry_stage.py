"""
Tests for the retry stage re-entering the pipeline.
"""

import asyncio
import logging

import pytest

from request_pipeline.errors import (
    ClassifiedError,
    RequestTimeoutError,
    ResponseFailure,
    TransportFailure,
)
from request_pipeline.models import CancellationToken, Request, Response
from request_pipeline.pipeline import RequestPipeline
from request_pipeline.resilience import IDEMPOTENT_RETRY_POLICY, RetryPolicy
from request_pipeline.stages import ClassificationStage, RetryStage
from request_pipeline.types import ErrorKind, TransportFailureKind


def make_pipeline(transport, sink, policy):
    return RequestPipeline(transport, [RetryStage(sink, policy), ClassificationStage()])


class TestRetryStage:

    @pytest.mark.asyncio
    async def test_unattached_stage_raises(self, sink):
        stage = RetryStage(sink, RetryPolicy(delay_ms=0))
        failure = TransportFailure(TransportFailureKind.TIMEOUT)

        with pytest.raises(RuntimeError, match="outside of a RequestPipeline"):
            await stage.on_error(Request("GET", "/goals"), failure)

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(
        self, fake_transport, sink, fast_retry_policy, timeout_failure
    ):
        transport = fake_transport(timeout_failure(), 200)
        pipeline = make_pipeline(transport, sink, fast_retry_policy)

        response = await pipeline.execute(Request("GET", "/goals"))

        assert response.status_code == 200
        assert transport.call_count == 2
        assert sink.has("Retrying request (1/2): /goals", level=logging.WARNING)

    @pytest.mark.asyncio
    async def test_attempt_context_carries_retry_count(
        self, fake_transport, sink, fast_retry_policy
    ):
        transport = fake_transport(503, 503, 200)
        pipeline = make_pipeline(transport, sink, fast_retry_policy)

        await pipeline.execute(Request("GET", "/goals"))

        assert [call.retry_count for call in transport.calls] == [0, 1, 2]
        request_ids = {call.attempt_context["request_id"] for call in transport.calls}
        assert len(request_ids) == 1

    @pytest.mark.asyncio
    async def test_exhausts_attempts(self, fake_transport, sink, fast_retry_policy, timeout_failure):
        transport = fake_transport(timeout_failure())
        pipeline = make_pipeline(transport, sink, fast_retry_policy)

        with pytest.raises(RequestTimeoutError):
            await pipeline.execute(Request("GET", "/goals"))

        assert transport.call_count == 3
        assert sink.has("Max retries exhausted for /goals", level=logging.ERROR)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422, 429])
    async def test_non_retryable_status_single_call(
        self, fake_transport, sink, fast_retry_policy, status
    ):
        transport = fake_transport(status)
        pipeline = make_pipeline(transport, sink, fast_retry_policy)

        with pytest.raises(ClassifiedError):
            await pipeline.execute(Request("GET", "/goals"))

        assert transport.call_count == 1
        assert not sink.has("Retrying")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [408, 500, 502, 503, 504])
    async def test_retryable_status_bounded(self, fake_transport, sink, status):
        transport = fake_transport(status)
        pipeline = make_pipeline(transport, sink, RetryPolicy(max_attempts=4, delay_ms=0))

        with pytest.raises(ClassifiedError):
            await pipeline.execute(Request("GET", "/goals"))

        assert transport.call_count == 4

    @pytest.mark.asyncio
    async def test_excluded_method_not_retried(self, fake_transport, sink):
        transport = fake_transport(503)
        policy = RetryPolicy(delay_ms=0, retryable_methods=IDEMPOTENT_RETRY_POLICY.retryable_methods)
        pipeline = make_pipeline(transport, sink, policy)

        with pytest.raises(ClassifiedError) as exc_info:
            await pipeline.execute(Request("POST", "/goals", body={"title": "Run"}))

        assert exc_info.value.kind == ErrorKind.SERVER_ERROR
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_retry_sends_same_body(self, fake_transport, sink, fast_retry_policy):
        transport = fake_transport(502, 201)
        pipeline = make_pipeline(transport, sink, fast_retry_policy)
        body = {"title": "Run 5k"}

        response = await pipeline.execute(Request("POST", "/goals", body=body))

        assert response.status_code == 201
        assert [call.body for call in transport.calls] == [body, body]

    @pytest.mark.asyncio
    async def test_cancel_during_delay_ends_as_cancelled(
        self, fake_transport, sink, timeout_failure
    ):
        transport = fake_transport(timeout_failure())
        pipeline = make_pipeline(transport, sink, RetryPolicy(max_attempts=3, delay_ms=5000))
        token = CancellationToken()

        task = asyncio.create_task(pipeline.execute(Request("GET", "/goals", cancel_token=token)))
        await asyncio.sleep(0.05)
        token.cancel("user left")

        with pytest.raises(ClassifiedError) as exc_info:
            await asyncio.wait_for(task, timeout=1)

        assert exc_info.value.kind == ErrorKind.CANCELLED
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_pre_cancelled_request_never_sent(self, fake_transport, sink, fast_retry_policy):
        transport = fake_transport(200)
        pipeline = make_pipeline(transport, sink, fast_retry_policy)
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ClassifiedError) as exc_info:
            await pipeline.execute(Request("GET", "/goals", cancel_token=token))

        assert exc_info.value.kind == ErrorKind.CANCELLED
        assert transport.call_count == 0

    @pytest.mark.asyncio
    async def test_nested_resolution_returns_response(self, fake_transport, sink, fast_retry_policy):
        stage = RetryStage(sink, fast_retry_policy)
        transport = fake_transport(200)
        RequestPipeline(transport, [stage, ClassificationStage()])

        failure = ResponseFailure(Response(status_code=503))
        outcome = await stage.on_error(Request("GET", "/goals"), failure)

        assert isinstance(outcome, Response)
        assert outcome.status_code == 200
        assert transport.calls[0].retry_count == 1
