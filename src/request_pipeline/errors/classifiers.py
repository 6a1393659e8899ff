"""
Centralized classification of pipeline failures.

Maps every RequestFailure (transport-level or status-based) onto exactly one
ClassifiedError. The mapping is pure: no I/O, no logging, and the same input
always yields the same kind.
"""

import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from request_pipeline.errors.exceptions import (
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
from request_pipeline.types import TransportFailureKind

# Body fields checked, in order, for a server-provided error message
MESSAGE_FIELDS = ("message", "error", "detail")

# Markers in an unclassified transport message that indicate lost connectivity
NETWORK_MARKERS = ("socket", "network", "connection")

SERVER_ERROR_STATUSES = frozenset({500, 502, 503, 504})
BAD_REQUEST_STATUSES = frozenset({400, 422})

VALIDATION_MESSAGE = "Validation error. Please check your input."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
TLS_ERROR_MESSAGE = "SSL certificate error. Please try again later."


def _decode_body(body: Any) -> Any:
    """Decode a JSON object carried as text or bytes; return anything else unchanged."""
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(body, str):
        stripped = body.strip()
        if stripped.startswith("{"):
            try:
                return json.loads(stripped)
            except ValueError:
                return body
    return body


def extract_error_message(body: Any) -> Optional[str]:
    """
    Extract a server-provided error message from a response body.

    Args:
        body: Response body (dict, JSON text, plain text or None)

    Returns:
        First non-empty string among the message fields, the plain-text body
        itself, or None
    """
    decoded = _decode_body(body)
    if isinstance(decoded, dict):
        for key in MESSAGE_FIELDS:
            value = decoded.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None
    if isinstance(decoded, str) and decoded.strip():
        return decoded.strip()
    return None


def extract_field_errors(body: Any) -> dict[str, list[str]]:
    """
    Extract per-field validation errors from a response body.

    Supports both {"errors": {"email": ["taken"]}} and
    {"errors": [{"field": "email", "message": "taken"}]} shapes.
    """
    decoded = _decode_body(body)
    if not isinstance(decoded, dict):
        return {}

    errors = decoded.get("errors")
    field_errors: dict[str, list[str]] = {}

    if isinstance(errors, dict):
        for key, value in errors.items():
            if isinstance(value, list):
                field_errors[str(key)] = [str(item) for item in value]
            else:
                field_errors[str(key)] = [str(value)]
    elif isinstance(errors, list):
        for item in errors:
            if isinstance(item, dict) and "field" in item:
                field_errors.setdefault(str(item["field"]), []).append(
                    str(item.get("message", ""))
                )

    return field_errors


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header value into seconds.

    Accepts both delta-seconds and HTTP-date forms. Returns None when the
    value is missing or malformed.
    """
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except (TypeError, ValueError):
        pass
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max((retry_at - datetime.now(timezone.utc)).total_seconds(), 0.0)


def classify_transport_failure(failure: TransportFailure) -> ClassifiedError:
    """Classify a failure that happened before any response was obtained."""
    kind = failure.kind

    if kind == TransportFailureKind.TIMEOUT:
        return RequestTimeoutError(cause=failure)

    if kind == TransportFailureKind.CONNECTION_ERROR:
        return NetworkUnavailableError(cause=failure)

    if kind == TransportFailureKind.TLS_ERROR:
        return NetworkUnavailableError(TLS_ERROR_MESSAGE, cause=failure)

    if kind == TransportFailureKind.CANCELLED:
        return RequestCancelledError(cause=failure)

    # Unknown transport failure - fall back to message markers
    message = failure.message or ""
    if any(marker in message.lower() for marker in NETWORK_MARKERS):
        return NetworkUnavailableError(NETWORK_ERROR_MESSAGE, cause=failure)

    return UnknownError(message or None, cause=failure)


def classify_response_failure(failure: ResponseFailure) -> ClassifiedError:
    """Classify an error response by status code."""
    status = failure.status_code
    body = failure.body
    message = extract_error_message(body)

    if status in BAD_REQUEST_STATUSES:
        return BadRequestError(
            message or (VALIDATION_MESSAGE if status == 422 else None),
            status_code=status,
            body=body,
            cause=failure,
            field_errors=extract_field_errors(body),
        )

    if status == 401:
        return UnauthorizedError(message, status_code=status, body=body, cause=failure)

    if status == 403:
        return ForbiddenError(message, status_code=status, body=body, cause=failure)

    if status == 404:
        return NotFoundError(message, status_code=status, body=body, cause=failure)

    if status == 409:
        return ConflictError(message, status_code=status, body=body, cause=failure)

    if status == 429:
        return RateLimitedError(
            status_code=status,
            body=body,
            cause=failure,
            retry_after=parse_retry_after(failure.response.headers.get("Retry-After")),
        )

    if status in SERVER_ERROR_STATUSES:
        # Fixed message; the raw body stays on .body
        return ServerError(status_code=status, body=body, cause=failure)

    return UnknownError(
        message or f"An error occurred (status: {status}).",
        status_code=status,
        body=body,
        cause=failure,
    )


def classify_failure(failure: RequestFailure) -> ClassifiedError:
    """
    Classify any pipeline failure into the closed error taxonomy.

    Total: every input yields exactly one ClassifiedError.

    Args:
        failure: Transport or response failure

    Returns:
        ClassifiedError subclass matching the failure
    """
    if isinstance(failure, TransportFailure):
        return classify_transport_failure(failure)
    if isinstance(failure, ResponseFailure):
        return classify_response_failure(failure)
    return UnknownError(failure.message or None, status_code=failure.status_code, cause=failure)


__all__ = [
    "MESSAGE_FIELDS",
    "NETWORK_MARKERS",
    "extract_error_message",
    "extract_field_errors",
    "parse_retry_after",
    "classify_transport_failure",
    "classify_response_failure",
    "classify_failure",
]
