"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="")
_http_method: ContextVar[str] = ContextVar("http_method", default="")
_path: ContextVar[str] = ContextVar("path", default="")
_client_name: ContextVar[str] = ContextVar("client_name", default="")


def set_log_context(
    request_id: Optional[str] = None,
    http_method: Optional[str] = None,
    path: Optional[str] = None,
    client_name: Optional[str] = None,
) -> None:
    if request_id is not None:
        _request_id.set(request_id)
    if http_method is not None:
        _http_method.set(http_method)
    if path is not None:
        _path.set(path)
    if client_name is not None:
        _client_name.set(client_name)


def get_log_context() -> Dict[str, str]:
    return {
        "request_id": _request_id.get(),
        "http_method": _http_method.get(),
        "path": _path.get(),
        "client_name": _client_name.get(),
    }


def clear_log_context() -> None:
    _request_id.set("")
    _http_method.set("")
    _path.set("")
    _client_name.set("")
