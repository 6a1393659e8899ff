"""
Resilience patterns module.

Components:
    - RetryPolicy: Bounded, fixed-delay retry configuration
    - Standard policies: DEFAULT_RETRY_POLICY, IDEMPOTENT_RETRY_POLICY, NO_RETRY_POLICY
"""

from .retry import (
    ALL_METHODS,
    DEFAULT_RETRY_POLICY,
    DEFAULT_RETRYABLE_FAILURE_KINDS,
    DEFAULT_RETRYABLE_STATUS_CODES,
    IDEMPOTENT_METHODS,
    IDEMPOTENT_RETRY_POLICY,
    NO_RETRY_POLICY,
    RetryPolicy,
)

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
