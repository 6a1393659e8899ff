"""
Offline pre-check.

Rejects a request before anything is sent when the connectivity probe
reports no network route. The rejection is a CONNECTION_ERROR transport
failure, so it flows through the error chain and is classified as
NetworkUnavailable.

A request opts out by setting SKIP_CONNECTIVITY_CHECK_KEY in its attempt
context.
"""

import inspect
import logging

from request_pipeline.errors.exceptions import TransportFailure
from request_pipeline.models import Request
from request_pipeline.stages.base import Stage
from request_pipeline.types import ConnectivityProbe, LogSink, TransportFailureKind

SKIP_CONNECTIVITY_CHECK_KEY = "skip_connectivity_check"
NO_CONNECTIVITY_MESSAGE = "No internet connection available"


class ConnectivityStage(Stage):
    """
    Fails fast when the host is offline.

    A probe that raises is logged and treated as connected; the transport
    then reports the real failure.

    Args:
        probe: Reports whether a network route is available
        sink: Log sink for diagnostics
    """

    name = "connectivity"

    def __init__(self, probe: ConnectivityProbe, sink: LogSink):
        self.probe = probe
        self.sink = sink

    async def _is_connected(self, path: str) -> bool:
        try:
            connected = self.probe.is_connected()
            if inspect.isawaitable(connected):
                connected = await connected
        except Exception as e:
            self.sink.record(
                logging.WARNING,
                f"Connectivity check failed, sending anyway: {e}",
                {"path": path, "error_type": type(e).__name__},
            )
            return True
        return bool(connected)

    async def on_build(self, request: Request) -> None:
        if request.attempt_context.get(SKIP_CONNECTIVITY_CHECK_KEY) is True:
            return

        if not await self._is_connected(request.path):
            self.sink.record(
                logging.WARNING,
                f"Offline, rejecting request: {request.path}",
                {"path": request.path, "http_method": request.method.value},
            )
            raise TransportFailure(
                TransportFailureKind.CONNECTION_ERROR, NO_CONNECTIVITY_MESSAGE
            )

    def __repr__(self) -> str:
        return f"ConnectivityStage(probe={self.probe!r})"


__all__ = ["ConnectivityStage", "SKIP_CONNECTIVITY_CHECK_KEY"]
