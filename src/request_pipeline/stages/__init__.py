"""
Pipeline stages.

Standard order:
    [ConnectivityStage ->] AuthStage -> TraceStage -> RetryStage -> ClassificationStage
"""

from request_pipeline.stages.auth import (
    AUTHORIZATION_HEADER,
    DEFAULT_AUTH_EXCLUSIONS,
    AuthStage,
)
from request_pipeline.stages.base import ErrorOutcome, Stage
from request_pipeline.stages.classification import ClassificationStage
from request_pipeline.stages.connectivity import (
    SKIP_CONNECTIVITY_CHECK_KEY,
    ConnectivityStage,
)
from request_pipeline.stages.retry import RetryStage
from request_pipeline.stages.trace import TraceStage

__all__ = [
    "Stage",
    "ErrorOutcome",
    "AuthStage",
    "TraceStage",
    "RetryStage",
    "ClassificationStage",
    "ConnectivityStage",
    "SKIP_CONNECTIVITY_CHECK_KEY",
    "DEFAULT_AUTH_EXCLUSIONS",
    "AUTHORIZATION_HEADER",
]
