"""
Bounded fixed-delay retry.

Per logical call the stage walks Attempt(n) -> Waiting -> Attempt(n+1) until
a response arrives, the failure stops being retryable, or the policy's
attempt budget is spent. The retry count lives in the request's attempt
context so a re-entered call is recognized as the same logical call.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from request_pipeline.errors.exceptions import (
    ClassifiedError,
    RequestFailure,
    TransportFailure,
)
from request_pipeline.errors.classifiers import classify_failure
from request_pipeline.models import RETRY_COUNT_KEY, CancellationToken, Request
from request_pipeline.resilience.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from request_pipeline.stages.base import ErrorOutcome, Stage
from request_pipeline.types import LogSink, TransportFailureKind

if TYPE_CHECKING:
    from request_pipeline.pipeline import RequestPipeline


async def _wait(delay: float, token: Optional[CancellationToken]) -> bool:
    """
    Sleep for delay seconds unless the token fires first.

    Returns:
        True if the wait was interrupted by cancellation
    """
    if token is None:
        await asyncio.sleep(delay)
        return False
    if token.is_cancelled:
        return True
    try:
        await asyncio.wait_for(token.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True


class RetryStage(Stage):
    """
    Re-submits retryable failures to the pipeline.

    Args:
        sink: Log sink for retry diagnostics
        policy: Retry policy (default: 3 attempts, 1s fixed delay)
    """

    name = "retry"

    def __init__(self, sink: LogSink, policy: RetryPolicy = DEFAULT_RETRY_POLICY):
        self.sink = sink
        self.policy = policy
        self._pipeline: Optional["RequestPipeline"] = None

    def attach(self, pipeline: "RequestPipeline") -> None:
        self._pipeline = pipeline

    async def on_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        if self._pipeline is None:
            raise RuntimeError("RetryStage used outside of a RequestPipeline")

        retry_count = request.retry_count
        attempt = retry_count + 1

        if not self.policy.should_retry(failure, request.method, attempt):
            if attempt > 1 and self.policy.is_retryable(failure):
                self.sink.record(
                    logging.ERROR,
                    f"Max retries exhausted for {request.path}",
                    {
                        "path": request.path,
                        "attempt": attempt,
                        "max_attempts": self.policy.max_attempts,
                        "error_message": failure.message,
                    },
                )
            return None

        self.sink.record(
            logging.WARNING,
            f"Retrying request ({attempt}/{self.policy.max_attempts - 1}): {request.path}",
            {
                "path": request.path,
                "attempt": attempt,
                "max_attempts": self.policy.max_attempts,
                "delay_ms": self.policy.delay_ms,
                "error_message": failure.message,
            },
        )

        if await _wait(self.policy.delay_seconds, request.cancel_token):
            cancelled = TransportFailure(
                TransportFailureKind.CANCELLED,
                "Request cancelled while waiting to retry",
                cause=failure,
            )
            return classify_failure(cancelled)

        retry_request = request.clone(**{RETRY_COUNT_KEY: retry_count + 1})
        try:
            return await self._pipeline.execute(retry_request)
        except ClassifiedError as e:
            return e

    def __repr__(self) -> str:
        return f"RetryStage(policy={self.policy!r})"


__all__ = ["RetryStage"]
