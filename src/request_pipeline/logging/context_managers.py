"""Context managers for structured logging."""

from typing import Dict, Optional

from request_pipeline.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(request_id=request_id, path="/steps"):
            # All logs in this block will carry request_id and path
            await send()
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        http_method: Optional[str] = None,
        path: Optional[str] = None,
        client_name: Optional[str] = None,
    ):
        self.new_context = {
            "request_id": request_id,
            "http_method": http_method,
            "path": path,
            "client_name": client_name,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(**self.old_context)
        return False
