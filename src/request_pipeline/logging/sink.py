"""Log sink adapter between pipeline stages and the logging module."""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from request_pipeline.logging.setup import get_logger
from request_pipeline.logging.utilities import filter_extra


class LoggingSink:
    """
    LogSink backed by a standard library logger.

    Stages receive a sink instead of reaching for module-level loggers, so
    tests can swap in a recording fake. record() never raises: a broken
    handler or an unformattable extra must not change the outcome of a call.

    Usage:
        sink = LoggingSink("request_pipeline.trace")
        sink.record(logging.INFO, "REQUEST[GET] => /steps", {"http_method": "GET"})
    """

    def __init__(self, logger: logging.Logger | str | None = None):
        if logger is None:
            logger = "request_pipeline"
        if isinstance(logger, str):
            logger = get_logger(logger)
        self.logger = logger

    def record(
        self,
        level: int,
        message: str,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        try:
            self.logger.log(level, message, extra=filter_extra(extra or {}))
        except Exception:
            # Sinks must not raise
            pass

    def __repr__(self) -> str:
        return f"LoggingSink(logger={self.logger.name!r})"


__all__ = ["LoggingSink"]
