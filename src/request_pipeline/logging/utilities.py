"""Logging utility functions."""

import logging
from collections.abc import Mapping
from typing import Any

REDACTED = "***REDACTED***"

# Header names whose values never reach a log record (compared case-insensitively)
SENSITIVE_HEADERS = frozenset({"authorization", "cookie"})

DEFAULT_TRUNCATE_AT = 500

# Reserved LogRecord attribute names that cannot be used in extra dict
_RESERVED_LOG_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "asctime",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def redact_headers(
    headers: Mapping[str, Any],
    sensitive: frozenset[str] = SENSITIVE_HEADERS,
) -> dict[str, Any]:
    """
    Copy headers with sensitive values replaced by a redaction marker.

    Matching is case-insensitive, so "authorization", "Authorization" and
    "AUTHORIZATION" are all masked. Repeated headers keep their last value.

    Args:
        headers: Header mapping (plain dict or multidict)
        sensitive: Lower-cased header names to mask

    Returns:
        New plain dict safe to log
    """
    return {
        key: REDACTED if key.lower() in sensitive else value
        for key, value in headers.items()
    }


def truncate(value: Any, limit: int = DEFAULT_TRUNCATE_AT) -> str:
    """Render value as text capped at limit characters."""
    text = value if isinstance(value, str) else str(value)
    if len(text) > limit:
        return text[:limit] + "...(truncated)"
    return text


def filter_extra(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys that would collide with LogRecord attributes."""
    return {k: v for k, v in fields.items() if k not in _RESERVED_LOG_KEYS}


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (request_id, duration_ms, etc.)
                  Note: exc_info=True is supported and handled specially.

    Example:
        log_with_context(
            logger, logging.INFO, "Request complete",
            http_status=200,
            duration_ms=elapsed,
        )
    """
    # Handle exc_info specially - it's a direct parameter to log(), not extra
    exc_info = kwargs.pop("exc_info", None)
    logger.log(level, msg, exc_info=exc_info, extra=filter_extra(kwargs))


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from ClassifiedError subclasses.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    if kwargs.get("error_category") is None and hasattr(exc, "kind"):
        kind = exc.kind
        kwargs["error_category"] = kind.value if hasattr(kind, "value") else str(kind)

    kwargs["error_message"] = truncate(str(exc))

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=filter_extra(kwargs))
    else:
        logger.log(level, msg, extra=filter_extra(kwargs))


__all__ = [
    "REDACTED",
    "SENSITIVE_HEADERS",
    "redact_headers",
    "truncate",
    "filter_extra",
    "log_with_context",
    "log_exception",
]
