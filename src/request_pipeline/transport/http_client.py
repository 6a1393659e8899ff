"""
HTTP transport using aiohttp.

Sends a pipeline Request to base_url + path and returns a Response for every
status the server produced; HTTP error statuses are judged by the pipeline,
not here. Network-level problems are raised as TransportFailure with a kind
the classification stage understands:

    timeout                      -> TIMEOUT
    SSL / certificate problems   -> TLS_ERROR
    connection refused / reset   -> CONNECTION_ERROR
    any other aiohttp error      -> UNKNOWN
    cancellation token fired     -> CANCELLED
"""

import asyncio
import contextlib
import json
import logging
import ssl
from typing import Any, Mapping, Optional

import aiohttp
from multidict import CIMultiDict

from request_pipeline.errors.exceptions import TransportFailure
from request_pipeline.models import Request, Response
from request_pipeline.types import TransportFailureKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 30.0
DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def create_session(
    max_connections: int = 100,
    max_connections_per_host: int = 10,
    enable_ssl: bool = True,
    timeout_total: float = DEFAULT_TIMEOUT_SECONDS,
    timeout_connect: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
) -> aiohttp.ClientSession:
    """
    Create aiohttp ClientSession with connection pooling and timeouts.

    Args:
        max_connections: Total connection pool size (default: 100)
        max_connections_per_host: Per-host connection limit (default: 10)
        enable_ssl: Enable SSL verification (default: True)
        timeout_total: Total request timeout in seconds (default: 30)
        timeout_connect: Connection timeout in seconds (default: 30)

    Returns:
        Configured aiohttp.ClientSession

    Note:
        Caller is responsible for session lifecycle management unless the
        session is handed to an AiohttpTransport that created it.
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        limit_per_host=max_connections_per_host,
        ssl=enable_ssl,
        ttl_dns_cache=300,
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(total=timeout_total, connect=timeout_connect)
    return aiohttp.ClientSession(connector=connector, timeout=timeout)


def build_url(base_url: str, path: str) -> str:
    """Join base URL and path; absolute URLs in path are used as is."""
    if path.startswith(("http://", "https://")):
        return path
    if not base_url:
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _encode_query(query: Mapping[str, Any]) -> dict[str, str]:
    """aiohttp only accepts str/int/float params; drop None and render bools."""
    params = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params


def _body_kwargs(body: Any, headers: CIMultiDict) -> dict[str, Any]:
    if callable(body):
        # FormData can only be serialized once; factories build one per attempt
        body = body()
    if body is None:
        return {}
    if isinstance(body, aiohttp.FormData):
        # aiohttp writes the multipart boundary itself
        headers.popall("Content-Type", None)
        return {"data": body}
    if isinstance(body, (str, bytes, bytearray)):
        return {"data": body}
    return {"json": body}


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    raw = await response.read()
    if not raw:
        return None

    text = raw.decode(response.charset or "utf-8", errors="replace")
    if "json" in (response.content_type or ""):
        try:
            return json.loads(text)
        except ValueError:
            logger.debug(
                "Response declared JSON but did not parse",
                extra={"http_status": response.status},
            )
    return text


class AiohttpTransport:
    """
    Transport backed by an aiohttp ClientSession.

    If no session is given, one is created on first use and closed by
    close(). A session passed in is left open for its owner.

    Args:
        base_url: Prefix for request paths
        session: Optional shared session
        timeout_seconds: Total per-request timeout
        connect_timeout_seconds: Connection establishment timeout
        default_headers: Headers sent with every request; request headers win

    Example:
        async with AiohttpTransport("https://api.example.com") as transport:
            response = await transport.send(Request("GET", "/health"))
    """

    def __init__(
        self,
        base_url: str = "",
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        default_headers: Optional[Mapping[str, str]] = None,
    ):
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds
        self.default_headers = CIMultiDict(
            DEFAULT_HEADERS if default_headers is None else default_headers
        )
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if not self._owns_session:
            return self._session
        if self._session is None or self._session.closed:
            self._session = create_session(
                timeout_total=self.timeout_seconds,
                timeout_connect=self.connect_timeout_seconds,
            )
        return self._session

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    async def send(self, request: Request) -> Response:
        """
        Send the request, racing it against the request's cancellation token.

        Raises:
            TransportFailure: On timeout, network error, TLS error or cancellation
        """
        token = request.cancel_token
        if token is None:
            return await self._send(request)

        if token.is_cancelled:
            raise TransportFailure(
                TransportFailureKind.CANCELLED, "Request cancelled before it was sent"
            )

        send_task = asyncio.ensure_future(self._send(request))
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            send_task.cancel()
            cancel_task.cancel()
            raise

        if send_task in done:
            cancel_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cancel_task
            return send_task.result()

        send_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await send_task
        raise TransportFailure(
            TransportFailureKind.CANCELLED,
            f"Request cancelled: {token.reason}" if token.reason else "Request cancelled",
        )

    async def _send(self, request: Request) -> Response:
        url = build_url(self.base_url, request.path)
        headers = CIMultiDict(self.default_headers)
        headers.update(request.headers)
        body_kwargs = _body_kwargs(request.body, headers)
        timeout = aiohttp.ClientTimeout(
            total=self.timeout_seconds,
            connect=self.connect_timeout_seconds,
        )

        try:
            async with self.session.request(
                request.method.value,
                url,
                params=_encode_query(request.query),
                headers=headers,
                timeout=timeout,
                **body_kwargs,
            ) as response:
                body = await _read_body(response)
                return Response(
                    status_code=response.status,
                    headers=CIMultiDict(response.headers),
                    body=body,
                    request=request,
                )

        except TimeoutError as e:
            # Covers asyncio timeouts and aiohttp.ServerTimeoutError
            raise TransportFailure(
                TransportFailureKind.TIMEOUT,
                f"Request timeout after {self.timeout_seconds}s",
                cause=e,
            ) from e
        except (aiohttp.ClientSSLError, ssl.SSLError) as e:
            raise TransportFailure(
                TransportFailureKind.TLS_ERROR, f"TLS error: {e}", cause=e
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise TransportFailure(
                TransportFailureKind.CONNECTION_ERROR, f"Connection error: {e}", cause=e
            ) from e
        except aiohttp.ClientError as e:
            raise TransportFailure(
                TransportFailureKind.UNKNOWN, f"{type(e).__name__}: {e}", cause=e
            ) from e


__all__ = [
    "AiohttpTransport",
    "create_session",
    "build_url",
    "DEFAULT_HEADERS",
]
