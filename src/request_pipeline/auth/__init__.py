"""Credential sources consumed by the Auth stage."""

from request_pipeline.auth.token_store import (
    EnvTokenSource,
    InMemoryTokenStore,
    StoredToken,
)

__all__ = ["InMemoryTokenStore", "EnvTokenSource", "StoredToken"]
