"""
Request pipeline: a composable HTTP client stack.

Every outbound request passes through an ordered chain of stages around one
transport, and every failure leaves as one classified error.

Modules:
    pipeline    - RequestPipeline orchestrator, PipelineBuilder
    stages      - Auth, Trace, Retry and Classification stages
    errors      - Raw failures, classified error taxonomy, classifier
    resilience  - Retry policy
    transport   - aiohttp transport
    auth        - Credential sources
    logging     - Structured JSON logging with request correlation IDs
    config      - YAML configuration
    client      - ApiClient verb facade
"""

from request_pipeline.client import ApiClient
from request_pipeline.config import PipelineConfig, load_config
from request_pipeline.errors import (
    ClassifiedError,
    RequestFailure,
    ResponseFailure,
    TransportFailure,
    classify_failure,
)
from request_pipeline.models import CancellationToken, Request, Response
from request_pipeline.pipeline import PipelineBuilder, RequestPipeline, build_pipeline
from request_pipeline.resilience import RetryPolicy
from request_pipeline.types import (
    ConnectivityProbe,
    CredentialSource,
    ErrorKind,
    HttpMethod,
    LogSink,
    Transport,
    TransportFailureKind,
)

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "PipelineConfig",
    "load_config",
    "RequestPipeline",
    "PipelineBuilder",
    "build_pipeline",
    "Request",
    "Response",
    "CancellationToken",
    "RetryPolicy",
    "ClassifiedError",
    "RequestFailure",
    "TransportFailure",
    "ResponseFailure",
    "classify_failure",
    "HttpMethod",
    "ErrorKind",
    "TransportFailureKind",
    "CredentialSource",
    "ConnectivityProbe",
    "Transport",
    "LogSink",
]
