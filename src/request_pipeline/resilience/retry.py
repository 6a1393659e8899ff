"""
Retry policy for the request pipeline.

Decides whether a failed attempt should be repeated:
- Transport timeouts and connection errors: retry
- Error responses with a retryable status (408, 5xx gateway family): retry
- Cancellation: never retry
- Everything else: fail through to classification

Delays are fixed, not exponential. The policy does not look at whether a
method is idempotent unless retryable_methods is narrowed.
"""

import logging
from dataclasses import dataclass, field

from request_pipeline.errors.exceptions import (
    RequestFailure,
    ResponseFailure,
    TransportFailure,
)
from request_pipeline.types import HttpMethod, TransportFailureKind

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 500, 502, 503, 504})
DEFAULT_RETRYABLE_FAILURE_KINDS = frozenset(
    {TransportFailureKind.TIMEOUT, TransportFailureKind.CONNECTION_ERROR}
)
ALL_METHODS = frozenset(HttpMethod)
IDEMPOTENT_METHODS = frozenset({HttpMethod.GET, HttpMethod.PUT, HttpMethod.DELETE})


def _as_method(value) -> HttpMethod:
    if isinstance(value, HttpMethod):
        return value
    return HttpMethod(str(value).upper())


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior."""

    # Total transport invocations per logical call, including the first
    max_attempts: int = 3
    delay_ms: int = 1000

    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retryable_failure_kinds: frozenset[TransportFailureKind] = DEFAULT_RETRYABLE_FAILURE_KINDS

    # POST/PATCH are retried like GET unless narrowed here
    retryable_methods: frozenset[HttpMethod] = field(default=ALL_METHODS)

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        object.__setattr__(self, "max_attempts", int(self.max_attempts))
        object.__setattr__(self, "delay_ms", int(self.delay_ms))
        object.__setattr__(
            self,
            "retryable_status_codes",
            frozenset(int(code) for code in self.retryable_status_codes),
        )
        object.__setattr__(
            self,
            "retryable_failure_kinds",
            frozenset(TransportFailureKind(kind) for kind in self.retryable_failure_kinds),
        )
        object.__setattr__(
            self,
            "retryable_methods",
            frozenset(_as_method(method) for method in self.retryable_methods),
        )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must not be negative, got {self.delay_ms}")

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    def is_retryable(self, failure: RequestFailure) -> bool:
        """
        Check whether a failure is transient by policy.

        Args:
            failure: Transport or response failure

        Returns:
            True if the failure kind or status code is configured as retryable
        """
        if isinstance(failure, TransportFailure):
            if failure.kind == TransportFailureKind.CANCELLED:
                return False
            return failure.kind in self.retryable_failure_kinds

        if isinstance(failure, ResponseFailure):
            return failure.status_code in self.retryable_status_codes

        return False

    def should_retry(
        self,
        failure: RequestFailure,
        method: HttpMethod,
        attempt: int,
    ) -> bool:
        """
        Determine if another attempt should be made.

        Args:
            failure: The failure of the attempt that just finished
            method: HTTP method of the logical call
            attempt: 1-indexed number of the attempt that just finished

        Returns:
            True if should retry
        """
        # Check attempt count first
        if attempt >= self.max_attempts:
            return False

        if method not in self.retryable_methods:
            logger.debug(
                "Not retrying %s request, method excluded by policy",
                method.value,
                extra={"http_method": method.value, "attempt": attempt},
            )
            return False

        return self.is_retryable(failure)


# Default configurations
DEFAULT_RETRY_POLICY = RetryPolicy()
IDEMPOTENT_RETRY_POLICY = RetryPolicy(retryable_methods=IDEMPOTENT_METHODS)
NO_RETRY_POLICY = RetryPolicy(max_attempts=1)


__all__ = [
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "IDEMPOTENT_RETRY_POLICY",
    "NO_RETRY_POLICY",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "DEFAULT_RETRYABLE_FAILURE_KINDS",
    "ALL_METHODS",
    "IDEMPOTENT_METHODS",
]
