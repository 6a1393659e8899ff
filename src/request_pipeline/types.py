"""
Core types and protocols used across modules.

This module provides the enums and collaborator protocols that are shared
across the pipeline so that stages, transports and callers agree on the
same vocabulary.
"""

from collections.abc import Awaitable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from request_pipeline.models import Request, Response


class HttpMethod(str, Enum):
    """HTTP methods supported by the pipeline."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class TransportFailureKind(Enum):
    """
    Kinds of failure that happen before any HTTP response was obtained.

    Categories:
        TIMEOUT: Connect, send or receive timed out
        CONNECTION_ERROR: Connection refused, reset, DNS failure, no route
        TLS_ERROR: Handshake or certificate verification failed
        CANCELLED: The caller signalled the request's cancellation token
        UNKNOWN: Anything the transport could not classify
    """

    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    TLS_ERROR = "tls_error"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class ErrorKind(Enum):
    """
    Closed taxonomy of errors surfaced to callers.

    Every failed logical call ends in exactly one of these kinds.
    """

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    NETWORK_UNAVAILABLE = "network_unavailable"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


@runtime_checkable
class CredentialSource(Protocol):
    """
    Protocol for bearer token providers.

    Implementations may be synchronous or return an awaitable; the auth
    stage handles both. Reading a token must not have side effects.
    """

    def get_token(self) -> Optional[str] | Awaitable[Optional[str]]:
        """
        Return the current access token.

        Returns:
            Token string, or None when no token is stored
        """
        ...


@runtime_checkable
class ConnectivityProbe(Protocol):
    """
    Protocol for reporting whether the host currently has a network route.

    May be synchronous or return an awaitable, like CredentialSource.
    """

    def is_connected(self) -> bool | Awaitable[bool]:
        ...


@runtime_checkable
class Transport(Protocol):
    """
    Protocol for the component that performs the actual network call.

    Implementations raise TransportFailure for anything that prevents an
    HTTP response from being obtained and must honour the request's
    cancellation token.
    """

    async def send(self, request: "Request") -> "Response":
        """
        Send a fully built request.

        Args:
            request: Request after all build hooks have run

        Returns:
            Response with whatever status code the server returned

        Raises:
            TransportFailure: On timeout, connection, TLS or cancellation failures
        """
        ...


@runtime_checkable
class LogSink(Protocol):
    """
    Protocol for the structured logger consumed by pipeline stages.

    Implementations must never raise.
    """

    def record(
        self,
        level: int,
        message: str,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        ...


__all__ = [
    "HttpMethod",
    "TransportFailureKind",
    "ErrorKind",
    "CredentialSource",
    "ConnectivityProbe",
    "Transport",
    "LogSink",
]
