"""
API client facade over the request pipeline.

Wraps the standard chain ([Connectivity ->] Auth -> Trace -> Retry ->
Classification) behind verb methods. Every method returns a Response or raises
ClassifiedError.

Example:
    config = load_config(Path("config.yaml"))
    async with ApiClient(config, InMemoryTokenStore(token)) as client:
        try:
            response = await client.get("/goals", query={"page": 1})
        except ClassifiedError as e:
            if e.requires_reauthentication:
                ...
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import aiohttp

from request_pipeline.config import PipelineConfig
from request_pipeline.models import CancellationToken, Request, Response
from request_pipeline.pipeline import RequestPipeline, build_pipeline
from request_pipeline.transport.http_client import AiohttpTransport
from request_pipeline.types import (
    ConnectivityProbe,
    CredentialSource,
    HttpMethod,
    LogSink,
    Transport,
)

logger = logging.getLogger(__name__)


def _form_factory(
    field_name: str,
    file_name: str,
    content: bytes,
    additional_data: Optional[Mapping[str, Any]],
) -> Callable[[], aiohttp.FormData]:
    def build() -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(field_name, content, filename=file_name)
        for key, value in (additional_data or {}).items():
            form.add_field(key, str(value))
        return form

    return build


class ApiClient:
    """
    Verb-level client bound to one pipeline.

    Args:
        config: Pipeline configuration
        credentials: Token source for the Auth stage
        transport: Optional transport (default: AiohttpTransport from config,
            owned and closed by this client)
        sink: Optional log sink shared by the stages
        connectivity: Optional probe; when given, offline requests fail fast
    """

    def __init__(
        self,
        config: PipelineConfig,
        credentials: CredentialSource,
        transport: Optional[Transport] = None,
        sink: Optional[LogSink] = None,
        connectivity: Optional[ConnectivityProbe] = None,
    ):
        self.config = config
        self._owns_transport = transport is None
        if transport is None:
            transport = AiohttpTransport(
                base_url=config.base_url,
                timeout_seconds=config.timeout_seconds,
                connect_timeout_seconds=config.connect_timeout_seconds,
                default_headers=config.default_headers,
            )
        self.transport = transport
        self.pipeline: RequestPipeline = build_pipeline(
            config, transport, credentials, sink, connectivity=connectivity
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            close = getattr(self.transport, "close", None)
            if close is not None:
                await close()

    async def request(
        self,
        method: Union[HttpMethod, str],
        path: str,
        *,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Response:
        """
        Send one logical call through the pipeline.

        Raises:
            ClassifiedError: For any failure, already classified
        """
        request = Request(
            method=method,
            path=path,
            query=dict(query or {}),
            headers=dict(headers or {}),
            body=body,
            cancel_token=cancel_token,
        )
        return await self.pipeline.execute(request)

    async def get(self, path: str, *, query=None, headers=None, cancel_token=None) -> Response:
        return await self.request(
            HttpMethod.GET, path, query=query, headers=headers, cancel_token=cancel_token
        )

    async def post(
        self, path: str, *, body=None, query=None, headers=None, cancel_token=None
    ) -> Response:
        return await self.request(
            HttpMethod.POST,
            path,
            query=query,
            body=body,
            headers=headers,
            cancel_token=cancel_token,
        )

    async def put(
        self, path: str, *, body=None, query=None, headers=None, cancel_token=None
    ) -> Response:
        return await self.request(
            HttpMethod.PUT,
            path,
            query=query,
            body=body,
            headers=headers,
            cancel_token=cancel_token,
        )

    async def patch(
        self, path: str, *, body=None, query=None, headers=None, cancel_token=None
    ) -> Response:
        return await self.request(
            HttpMethod.PATCH,
            path,
            query=query,
            body=body,
            headers=headers,
            cancel_token=cancel_token,
        )

    async def delete(
        self, path: str, *, body=None, query=None, headers=None, cancel_token=None
    ) -> Response:
        return await self.request(
            HttpMethod.DELETE,
            path,
            query=query,
            body=body,
            headers=headers,
            cancel_token=cancel_token,
        )

    async def upload_file(
        self,
        path: str,
        file_path: Union[str, Path],
        field_name: str = "file",
        additional_data: Optional[Mapping[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Response:
        """
        POST a file as multipart/form-data.

        The file is read once; each attempt (including retries) gets a fresh
        FormData built from the same bytes.

        Args:
            path: Endpoint path
            file_path: Local file to upload
            field_name: Form field carrying the file
            additional_data: Extra form fields sent alongside the file
            cancel_token: Optional cancellation handle

        Raises:
            FileNotFoundError: If file_path does not exist
            ClassifiedError: For any request failure
        """
        file_path = Path(file_path)
        content = await asyncio.to_thread(file_path.read_bytes)
        logger.debug(
            "Uploading file",
            extra={"path": path, "file_name": file_path.name, "bytes": len(content)},
        )
        return await self.request(
            HttpMethod.POST,
            path,
            body=_form_factory(field_name, file_path.name, content, additional_data),
            cancel_token=cancel_token,
        )


__all__ = ["ApiClient"]
