"""
Structured logging module.

Provides JSON logging with request correlation IDs, header redaction and
the LogSink adapter consumed by pipeline stages.
"""

from request_pipeline.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from request_pipeline.logging.context_managers import LogContext
from request_pipeline.logging.formatters import ConsoleFormatter, JSONFormatter
from request_pipeline.logging.setup import (
    generate_request_id,
    get_logger,
    setup_logging,
)
from request_pipeline.logging.sink import LoggingSink
from request_pipeline.logging.utilities import (
    REDACTED,
    log_exception,
    log_with_context,
    redact_headers,
    truncate,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    "generate_request_id",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "LogContext",
    # Sink
    "LoggingSink",
    # Utilities
    "REDACTED",
    "redact_headers",
    "truncate",
    "log_with_context",
    "log_exception",
]
