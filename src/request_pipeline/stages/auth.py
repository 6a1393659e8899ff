"""
Bearer token injection.

Adds "Authorization: Bearer <token>" to outgoing requests unless the path
belongs to an endpoint that establishes authentication itself (login,
register, token refresh, ...). A missing token is a valid state: the request
goes out unauthenticated and the server's 401 is classified downstream.
"""

import inspect
import logging
from collections.abc import Iterable
from typing import Optional

from request_pipeline.errors.exceptions import RequestFailure
from request_pipeline.models import Request
from request_pipeline.stages.base import ErrorOutcome, Stage
from request_pipeline.types import CredentialSource, LogSink

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"

# Paths whose requests never carry a token
DEFAULT_AUTH_EXCLUSIONS = frozenset(
    {
        "/auth/login",
        "/auth/register",
        "/auth/forgot-password",
        "/auth/reset-password",
        "/auth/refresh",
        "/health",
        "/version",
    }
)


class AuthStage(Stage):
    """
    Injects the credential source's token into non-excluded requests.

    Args:
        credentials: Source of the current access token
        sink: Log sink for diagnostics
        excluded_paths: Path fragments matched with substring containment
    """

    name = "auth"

    def __init__(
        self,
        credentials: CredentialSource,
        sink: LogSink,
        excluded_paths: Optional[Iterable[str]] = None,
    ):
        self.credentials = credentials
        self.sink = sink
        self.excluded_paths = frozenset(
            DEFAULT_AUTH_EXCLUSIONS if excluded_paths is None else excluded_paths
        )

    def is_excluded(self, path: str) -> bool:
        return any(fragment in path for fragment in self.excluded_paths)

    async def _read_token(self, path: str) -> Optional[str]:
        try:
            token = self.credentials.get_token()
            if inspect.isawaitable(token):
                token = await token
        except Exception as e:
            self.sink.record(
                logging.ERROR,
                f"Error retrieving access token: {e}",
                {"path": path, "error_type": type(e).__name__},
            )
            return None
        return token

    async def on_build(self, request: Request) -> None:
        path = request.path
        if self.is_excluded(path):
            self.sink.record(logging.DEBUG, f"Skipping auth for public endpoint: {path}")
            return

        token = await self._read_token(path)
        # A cloned retry carries the previous attempt's header
        request.headers.popall(AUTHORIZATION_HEADER, None)
        if token:
            request.headers[AUTHORIZATION_HEADER] = f"{BEARER_PREFIX} {token}"
            self.sink.record(logging.DEBUG, f"Added auth token to request: {path}")
        else:
            self.sink.record(logging.WARNING, f"No access token available for request: {path}")

    async def on_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        # No refresh-and-replay: classification labels the failure Unauthorized
        if failure.status_code == 401:
            self.sink.record(
                logging.WARNING,
                f"Received 401 - token may be expired: {request.path}",
                {"path": request.path, "status_code": 401},
            )
        return None

    def __repr__(self) -> str:
        return f"AuthStage(excluded_paths={sorted(self.excluded_paths)!r})"


__all__ = ["AuthStage", "DEFAULT_AUTH_EXCLUSIONS", "AUTHORIZATION_HEADER"]
