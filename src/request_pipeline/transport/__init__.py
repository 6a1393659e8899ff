"""HTTP transports for the request pipeline."""

from request_pipeline.transport.http_client import (
    DEFAULT_HEADERS,
    AiohttpTransport,
    build_url,
    create_session,
)

__all__ = [
    "AiohttpTransport",
    "create_session",
    "build_url",
    "DEFAULT_HEADERS",
]
