"""
Data models for pipeline requests and responses.

Defines the values that flow through the stage chain:
- Request: Logical request built by a caller, mutated by build hooks
- Response: What the transport returned
- CancellationToken: Cooperative cancellation handle shared with the transport
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from multidict import CIMultiDict

from request_pipeline.types import HttpMethod

RETRY_COUNT_KEY = "retry_count"
REQUEST_ID_KEY = "request_id"


class CancellationToken:
    """
    Cooperative cancellation handle for a logical call.

    The caller keeps a reference and calls cancel(); the transport and the
    retry stage watch it and abort promptly.

    Example:
        >>> token = CancellationToken()
        >>> request = Request(HttpMethod.GET, "/steps", cancel_token=token)
        >>> task = asyncio.create_task(pipeline.execute(request))
        >>> token.cancel("user left the screen")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


@dataclass
class Request:
    """
    Logical HTTP request.

    Attributes:
        method: HTTP method (accepts a plain string, normalized to HttpMethod)
        path: Path relative to the transport's base URL
        query: Query parameters (order irrelevant)
        headers: Case-insensitive header mapping
        body: JSON-able value, str/bytes, aiohttp.FormData, or a zero-argument
            callable returning one of those for each attempt
        cancel_token: Optional cancellation handle
        attempt_context: Per-call state that survives retries of this call
            (retry count, request id). A new Request starts empty.
    """

    method: HttpMethod
    path: str
    query: dict[str, Any] = field(default_factory=dict)
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: Any = None
    cancel_token: Optional[CancellationToken] = None
    attempt_context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize loosely typed inputs."""
        if not isinstance(self.method, HttpMethod):
            self.method = HttpMethod(str(self.method).upper())
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers or {})
        self.query = dict(self.query or {})

    @property
    def retry_count(self) -> int:
        return int(self.attempt_context.get(RETRY_COUNT_KEY, 0))

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.is_cancelled

    def clone(self, **attempt_updates: Any) -> "Request":
        """
        Copy this request for another attempt of the same logical call.

        Headers, query and attempt context are copied so the clone can be
        mutated independently. The body and cancellation token are shared.

        Args:
            **attempt_updates: Keys to set on the clone's attempt context

        Returns:
            New Request carrying the updated attempt context
        """
        context = dict(self.attempt_context)
        context.update(attempt_updates)
        return Request(
            method=self.method,
            path=self.path,
            query=dict(self.query),
            headers=CIMultiDict(self.headers),
            body=self.body,
            cancel_token=self.cancel_token,
            attempt_context=context,
        )


@dataclass
class Response:
    """
    HTTP response returned by the transport.

    Attributes:
        status_code: HTTP status code
        headers: Case-insensitive response headers
        body: Decoded JSON value, text, or None for empty bodies
        request: The request attempt that produced this response
    """

    status_code: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: Any = None
    request: Optional[Request] = None

    def __post_init__(self):
        self.status_code = int(self.status_code)
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers or {})

    @property
    def ok(self) -> bool:
        """Whether the status is in the success range [200, 300)."""
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")


__all__ = [
    "CancellationToken",
    "Request",
    "Response",
    "RETRY_COUNT_KEY",
    "REQUEST_ID_KEY",
]
