"""
Request pipeline orchestrator.

Runs a request through an ordered chain of stages around a single transport:

    on_build (each stage) -> transport.send -> on_response (each stage)
                                  |
                                  v  failure
                           on_error (each stage, until one resolves or rejects)

Callers get either a Response or one ClassifiedError; transport exceptions and
HTTP error statuses never escape raw.
"""

import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from request_pipeline.errors.classifiers import classify_failure
from request_pipeline.errors.exceptions import (
    ClassifiedError,
    RequestFailure,
    ResponseFailure,
    TransportFailure,
)
from request_pipeline.logging.context_managers import LogContext
from request_pipeline.logging.setup import generate_request_id
from request_pipeline.logging.sink import LoggingSink
from request_pipeline.logging.utilities import log_with_context
from request_pipeline.models import REQUEST_ID_KEY, RETRY_COUNT_KEY, Request, Response
from request_pipeline.stages.auth import AuthStage
from request_pipeline.stages.base import ErrorOutcome, Stage
from request_pipeline.stages.classification import ClassificationStage
from request_pipeline.stages.connectivity import ConnectivityStage
from request_pipeline.stages.retry import RetryStage
from request_pipeline.stages.trace import TraceStage
from request_pipeline.types import (
    ConnectivityProbe,
    CredentialSource,
    LogSink,
    Transport,
    TransportFailureKind,
)

if TYPE_CHECKING:
    from request_pipeline.config import PipelineConfig

logger = logging.getLogger(__name__)


def _wrap_transport_exception(error: Exception) -> TransportFailure:
    """Map an exception a transport should not have raised onto a TransportFailure."""
    if isinstance(error, TimeoutError):
        kind = TransportFailureKind.TIMEOUT
    elif isinstance(error, ConnectionError):
        kind = TransportFailureKind.CONNECTION_ERROR
    else:
        kind = TransportFailureKind.UNKNOWN
    return TransportFailure(kind, str(error) or type(error).__name__, cause=error)


class RequestPipeline:
    """
    Executes requests through a fixed stage chain.

    The chain is decided once at construction and cannot be changed
    afterwards. It must end with a ClassificationStage so every failure
    leaves the pipeline classified.

    Args:
        transport: Performs the actual HTTP exchange
        stages: Ordered stages; the last one must be a ClassificationStage

    Raises:
        ValueError: If the chain does not end with exactly one ClassificationStage

    Example:
        >>> pipeline = RequestPipeline(transport, [AuthStage(creds, sink), ClassificationStage()])
        >>> response = await pipeline.execute(Request("GET", "/steps"))
    """

    def __init__(self, transport: Transport, stages: Sequence[Stage]):
        stages = tuple(stages)
        if not stages or not isinstance(stages[-1], ClassificationStage):
            raise ValueError("Pipeline must end with a ClassificationStage")
        if any(isinstance(stage, ClassificationStage) for stage in stages[:-1]):
            raise ValueError("ClassificationStage may only appear as the last stage")

        self.transport = transport
        self._stages: Tuple[Stage, ...] = stages
        for stage in stages:
            stage.attach(self)

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return self._stages

    async def execute(self, request: Request) -> Response:
        """
        Run one attempt of a logical call through the chain.

        A top-level call works on a copy, so the caller's Request keeps its
        own attempt context and can be executed again as a new logical call.
        Retries re-enter this method with a clone whose attempt context
        carries the retry count and the original request id.

        Returns:
            Response with status below 400 (possibly replaced by a stage)

        Raises:
            ClassifiedError: On any transport failure or HTTP error status
        """
        if RETRY_COUNT_KEY not in request.attempt_context:
            request = request.clone()

        request_id = request.attempt_context.get(REQUEST_ID_KEY)
        if request_id is None:
            request_id = generate_request_id()
            request.attempt_context[REQUEST_ID_KEY] = request_id

        with LogContext(
            request_id=request_id,
            http_method=request.method.value,
            path=request.path,
        ):
            try:
                return await self._attempt(request)
            except RequestFailure as failure:
                outcome = await self._handle_error(request, failure)
                if isinstance(outcome, ClassifiedError):
                    if outcome.__cause__ is None:
                        raise outcome from failure
                    raise outcome
                return outcome

    async def try_execute(
        self, request: Request
    ) -> Tuple[Optional[Response], Optional[ClassifiedError]]:
        """
        Like execute(), but returns the error instead of raising it.

        Returns:
            (response, None) on success, (None, error) on failure
        """
        try:
            return await self.execute(request), None
        except ClassifiedError as e:
            return None, e

    async def _attempt(self, request: Request) -> Response:
        for stage in self._stages:
            await stage.on_build(request)

        response = await self._send(request)
        if response.status_code >= 400:
            raise ResponseFailure(response)

        for stage in self._stages:
            response = await stage.on_response(request, response)
        return response

    async def _send(self, request: Request) -> Response:
        if request.is_cancelled:
            raise TransportFailure(
                TransportFailureKind.CANCELLED,
                "Request cancelled before it was sent",
            )

        try:
            response = await self.transport.send(request)
        except RequestFailure:
            raise
        except Exception as e:
            log_with_context(
                logger,
                logging.DEBUG,
                "Transport raised unexpected exception",
                error_type=type(e).__name__,
                path=request.path,
            )
            raise _wrap_transport_exception(e) from e

        if response.request is None:
            response.request = request
        return response

    async def _handle_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        for stage in self._stages:
            outcome = await stage.on_error(request, failure)
            if outcome is not None:
                return outcome
        return classify_failure(failure)

    def __repr__(self) -> str:
        names = " -> ".join(stage.name for stage in self._stages)
        return f"RequestPipeline({names})"


class PipelineBuilder:
    """
    Assembles a stage chain once, then freezes it.

    build() appends the ClassificationStage, so callers never add it.

    Example:
        >>> pipeline = (
        ...     PipelineBuilder(transport)
        ...     .add(AuthStage(creds, sink))
        ...     .add_if(debug, lambda: TraceStage(sink, verbose=True))
        ...     .build()
        ... )
    """

    def __init__(self, transport: Transport):
        self.transport = transport
        self._stages: List[Stage] = []

    def add(self, stage: Stage) -> "PipelineBuilder":
        if isinstance(stage, ClassificationStage):
            raise ValueError("ClassificationStage is appended by build()")
        self._stages.append(stage)
        return self

    def add_if(self, condition: bool, factory: Callable[[], Stage]) -> "PipelineBuilder":
        """Add the stage made by factory only when condition holds."""
        if condition:
            self.add(factory())
        return self

    def build(self) -> RequestPipeline:
        return RequestPipeline(self.transport, [*self._stages, ClassificationStage()])


def build_pipeline(
    config: "PipelineConfig",
    transport: Transport,
    credentials: CredentialSource,
    sink: Optional[LogSink] = None,
    connectivity: Optional[ConnectivityProbe] = None,
) -> RequestPipeline:
    """
    Build the standard chain:
    Connectivity (when a probe is given) -> Auth -> Trace -> Retry (when enabled)
    -> Classification.

    Args:
        config: Pipeline configuration
        transport: Transport to send through
        credentials: Token source for the Auth stage
        sink: Log sink shared by all stages (default: LoggingSink on "request_pipeline.http")
        connectivity: Optional probe for the offline pre-check
    """
    if sink is None:
        sink = LoggingSink("request_pipeline.http")

    return (
        PipelineBuilder(transport)
        .add_if(connectivity is not None, lambda: ConnectivityStage(connectivity, sink))
        .add(AuthStage(credentials, sink, excluded_paths=config.auth_excluded_paths))
        .add(
            TraceStage(
                sink,
                verbose=config.trace_verbose,
                log_request_body=config.log_request_body,
                log_response_body=config.log_response_body,
            )
        )
        .add_if(config.retry_enabled, lambda: RetryStage(sink, config.retry_policy()))
        .build()
    )


__all__ = [
    "RequestPipeline",
    "PipelineBuilder",
    "build_pipeline",
]
