"""
Error classification and exception hierarchy.

Provides:
- RequestFailure hierarchy for raw failures seen by pipeline stages
- ClassifiedError hierarchy returned to callers
- classify_failure, the total mapping between the two
"""

from request_pipeline.errors.classifiers import (
    classify_failure,
    classify_response_failure,
    classify_transport_failure,
    extract_error_message,
    extract_field_errors,
    parse_retry_after,
)
from request_pipeline.errors.exceptions import (
    ERROR_CLASSES,
    BadRequestError,
    ClassifiedError,
    ConflictError,
    ForbiddenError,
    NetworkUnavailableError,
    NotFoundError,
    RateLimitedError,
    RequestCancelledError,
    RequestFailure,
    RequestTimeoutError,
    ResponseFailure,
    ServerError,
    TransportFailure,
    UnauthorizedError,
    UnknownError,
)

__all__ = [
    # Raw failures
    "RequestFailure",
    "TransportFailure",
    "ResponseFailure",
    # Classified errors
    "ClassifiedError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "BadRequestError",
    "RateLimitedError",
    "ServerError",
    "RequestTimeoutError",
    "NetworkUnavailableError",
    "RequestCancelledError",
    "UnknownError",
    "ERROR_CLASSES",
    # Classification
    "classify_failure",
    "classify_transport_failure",
    "classify_response_failure",
    "extract_error_message",
    "extract_field_errors",
    "parse_retry_after",
]
