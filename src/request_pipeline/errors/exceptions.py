"""
Unified exception hierarchy for the request pipeline.

Two families live here:
- RequestFailure: raw failures observed inside the pipeline (transport
  failures and error responses). Stages see these; callers never do.
- ClassifiedError: the closed taxonomy surfaced to callers. Every failed
  logical call ends in exactly one of these.
"""

from typing import TYPE_CHECKING, Any, Optional

from request_pipeline.types import ErrorKind, TransportFailureKind

if TYPE_CHECKING:
    from request_pipeline.models import Response


# =============================================================================
# Raw failures (internal to the pipeline)
# =============================================================================


class RequestFailure(Exception):
    """
    Base class for failures handed to the error hooks of pipeline stages.

    Attributes:
        message: Human-readable description
        cause: Original exception if wrapping
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    @property
    def status_code(self) -> Optional[int]:
        return None

    @property
    def body(self) -> Any:
        return None

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class TransportFailure(RequestFailure):
    """Failure before any HTTP response was obtained."""

    def __init__(
        self,
        kind: TransportFailureKind,
        message: str = "",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message or kind.value, cause)
        self.kind = kind

    def __repr__(self) -> str:
        return f"TransportFailure(kind={self.kind.value!r}, message={self.message!r})"


class ResponseFailure(RequestFailure):
    """An HTTP response whose status code signals an error (>= 400)."""

    def __init__(self, response: "Response"):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code

    @property
    def body(self) -> Any:
        return self.response.body

    def __repr__(self) -> str:
        return f"ResponseFailure(status_code={self.status_code})"


# =============================================================================
# Classified errors (what callers see)
# =============================================================================


class ClassifiedError(Exception):
    """
    Base exception for errors returned to callers.

    Attributes:
        kind: Taxonomy entry
        message: Human-readable, user-presentable description
        status_code: HTTP status if the failure came from a response
        body: Raw response body if any
        cause: Underlying failure
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message or self.default_message
        self.status_code = status_code
        self.body = body
        self.cause = cause
        super().__init__(self.message)

    @property
    def is_recoverable(self) -> bool:
        """Whether repeating the call later may succeed."""
        return self.kind in (
            ErrorKind.TIMEOUT,
            ErrorKind.NETWORK_UNAVAILABLE,
            ErrorKind.SERVER_ERROR,
            ErrorKind.RATE_LIMITED,
        )

    @property
    def requires_reauthentication(self) -> bool:
        return self.kind == ErrorKind.UNAUTHORIZED

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (Status: {self.status_code})"
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"message={self.message!r}, status_code={self.status_code!r})"
        )


class UnauthorizedError(ClassifiedError):
    """401 - authentication required or token rejected."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Authentication required. Please log in."


class ForbiddenError(ClassifiedError):
    """403 - authenticated but not permitted."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied. You don't have permission."


class NotFoundError(ClassifiedError):
    kind = ErrorKind.NOT_FOUND
    default_message = "The requested resource was not found."


class ConflictError(ClassifiedError):
    kind = ErrorKind.CONFLICT
    default_message = "A conflict occurred with the current state."


class BadRequestError(ClassifiedError):
    """400/422 - the server rejected the request payload."""

    kind = ErrorKind.BAD_REQUEST
    default_message = "Invalid request. Please check your input."

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
        cause: Optional[BaseException] = None,
        field_errors: Optional[dict[str, list[str]]] = None,
    ):
        super().__init__(message, status_code, body, cause)
        self.field_errors = field_errors or {}


class RateLimitedError(ClassifiedError):
    """429 - too many requests."""

    kind = ErrorKind.RATE_LIMITED
    default_message = "Too many requests. Please wait and try again."

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
        cause: Optional[BaseException] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, status_code, body, cause)
        self.retry_after = retry_after  # Seconds to wait if provided


class ServerError(ClassifiedError):
    kind = ErrorKind.SERVER_ERROR
    default_message = "Server error. Please try again later."


class RequestTimeoutError(ClassifiedError):
    kind = ErrorKind.TIMEOUT
    default_message = "Request timed out. Please check your connection."


class NetworkUnavailableError(ClassifiedError):
    kind = ErrorKind.NETWORK_UNAVAILABLE
    default_message = "Unable to connect. Please check your internet connection."


class RequestCancelledError(ClassifiedError):
    kind = ErrorKind.CANCELLED
    default_message = "Request was cancelled."


class UnknownError(ClassifiedError):
    kind = ErrorKind.UNKNOWN


ERROR_CLASSES: dict[ErrorKind, type[ClassifiedError]] = {
    cls.kind: cls
    for cls in (
        UnauthorizedError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        BadRequestError,
        RateLimitedError,
        ServerError,
        RequestTimeoutError,
        NetworkUnavailableError,
        RequestCancelledError,
        UnknownError,
    )
}


__all__ = [
    "RequestFailure",
    "TransportFailure",
    "ResponseFailure",
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
]
