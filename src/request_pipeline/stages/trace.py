"""
Request/response tracing.

Pure observer: records what went out and what came back, with credentials
redacted. Every hook swallows its own errors and never changes control flow.
"""

import logging
import time
from typing import Optional

from request_pipeline.errors.exceptions import RequestFailure
from request_pipeline.logging.utilities import log_exception, redact_headers, truncate
from request_pipeline.models import Request, Response
from request_pipeline.stages.base import ErrorOutcome, Stage
from request_pipeline.types import LogSink

STARTED_AT_KEY = "trace_started_at"
BODY_LOG_LIMIT = 500

logger = logging.getLogger(__name__)


class TraceStage(Stage):
    """
    Logs request metadata, response status and failures.

    Args:
        sink: Log sink for trace records
        verbose: Include truncated failure bodies in error records
        log_request_body: Include request bodies at DEBUG
        log_response_body: Include truncated response bodies at DEBUG
    """

    name = "trace"

    def __init__(
        self,
        sink: LogSink,
        verbose: bool = False,
        log_request_body: bool = False,
        log_response_body: bool = False,
    ):
        self.sink = sink
        self.verbose = verbose
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body

    @staticmethod
    def _elapsed_ms(request: Request) -> Optional[float]:
        started = request.attempt_context.get(STARTED_AT_KEY)
        if started is None:
            return None
        return round((time.monotonic() - started) * 1000, 2)

    def _emit_request(self, request: Request) -> None:
        request.attempt_context[STARTED_AT_KEY] = time.monotonic()
        method = request.method.value
        fields = {
            "http_method": method,
            "path": request.path,
            "retry_count": request.retry_count,
        }
        self.sink.record(logging.INFO, f"REQUEST[{method}] => {request.path}", fields)
        self.sink.record(
            logging.DEBUG,
            f"Headers: {redact_headers(request.headers)}",
            {**fields, "headers": redact_headers(request.headers)},
        )
        if self.log_request_body and request.body is not None:
            self.sink.record(logging.DEBUG, f"Body: {truncate(request.body, BODY_LOG_LIMIT)}", fields)

    def _emit_response(self, request: Request, response: Response) -> None:
        fields = {
            "http_method": request.method.value,
            "path": request.path,
            "status_code": response.status_code,
            "duration_ms": self._elapsed_ms(request),
        }
        self.sink.record(
            logging.INFO,
            f"RESPONSE[{response.status_code}] => {request.path}",
            fields,
        )
        if (self.log_response_body or self.verbose) and response.body is not None:
            self.sink.record(
                logging.DEBUG,
                f"Response Data: {truncate(response.body, BODY_LOG_LIMIT)}",
                fields,
            )

    def _emit_error(self, request: Request, failure: RequestFailure) -> None:
        status = failure.status_code if failure.status_code is not None else "N/A"
        fields = {
            "http_method": request.method.value,
            "path": request.path,
            "status_code": status,
            "duration_ms": self._elapsed_ms(request),
            "error_type": type(failure).__name__,
            "error_message": failure.message,
            "retry_count": request.retry_count,
        }
        kind = getattr(failure, "kind", None)
        if kind is not None:
            fields["failure_kind"] = kind.value

        self.sink.record(
            logging.ERROR,
            f"ERROR[{status}] => {request.path}: {failure.message}",
            fields,
        )
        if self.verbose and failure.body is not None:
            self.sink.record(
                logging.ERROR,
                f"Error Response: {truncate(failure.body, BODY_LOG_LIMIT)}",
                fields,
            )

    async def on_build(self, request: Request) -> None:
        try:
            self._emit_request(request)
        except Exception as e:
            log_exception(
                logger,
                e,
                "Trace stage failed to record request",
                level=logging.DEBUG,
                path=request.path,
            )

    async def on_response(self, request: Request, response: Response) -> Response:
        try:
            self._emit_response(request, response)
        except Exception as e:
            log_exception(
                logger,
                e,
                "Trace stage failed to record response",
                level=logging.DEBUG,
                path=request.path,
            )
        return response

    async def on_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        try:
            self._emit_error(request, failure)
        except Exception as e:
            log_exception(
                logger,
                e,
                "Trace stage failed to record error",
                level=logging.DEBUG,
                path=request.path,
            )
        return None

    def __repr__(self) -> str:
        return f"TraceStage(verbose={self.verbose})"


__all__ = ["TraceStage", "BODY_LOG_LIMIT"]
