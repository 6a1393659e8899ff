"""
Credential sources for the Auth stage.

Both classes satisfy the CredentialSource protocol: get_token() returns the
current access token or None.

- InMemoryTokenStore: thread-safe holder written by whatever performs login
- EnvTokenSource: reads a token from an environment variable on each call

Example:
    >>> store = InMemoryTokenStore()
    >>> store.set_token("eyJ0eXAi...", expires_in=3600)
    >>> store.get_token()
    'eyJ0eXAi...'
    >>> store.clear()
    >>> store.get_token() is None
    True
"""

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class StoredToken:
    """
    Token with acquisition time and optional expiry.

    Attributes:
        value: The access token string
        acquired_at: UTC timestamp when the token was stored
        expires_at: UTC timestamp after which the token is not handed out
    """

    value: str
    acquired_at: datetime
    expires_at: Optional[datetime] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at


class InMemoryTokenStore:
    """
    Thread-safe in-memory credential source.

    Login flows may run on other threads (token refreshers, UI callbacks), so
    every operation takes a threading.Lock.

    Args:
        token: Optional initial token
        expires_in: Lifetime of the initial token in seconds
    """

    def __init__(self, token: Optional[str] = None, expires_in: Optional[float] = None):
        self._token: Optional[StoredToken] = None
        self._lock = threading.Lock()
        if token:
            self.set_token(token, expires_in=expires_in)

    def get_token(self) -> Optional[str]:
        """Return the stored token, or None if missing or expired."""
        with self._lock:
            if self._token and self._token.is_valid():
                return self._token.value
            return None

    def set_token(self, token: str, expires_in: Optional[float] = None) -> None:
        """
        Store a token.

        Args:
            token: Access token string
            expires_in: Seconds until the token stops being handed out
                (None means it never expires)
        """
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=expires_in) if expires_in is not None else None
        with self._lock:
            self._token = StoredToken(value=token, acquired_at=now, expires_at=expires_at)
        logger.debug(
            "Stored access token",
            extra={"expires_in": expires_in},
        )

    def clear(self) -> None:
        with self._lock:
            self._token = None

    def get_age(self) -> Optional[timedelta]:
        """Age of the stored token for diagnostics, or None if nothing is stored."""
        with self._lock:
            if self._token:
                return datetime.now(timezone.utc) - self._token.acquired_at
            return None


class EnvTokenSource:
    """
    Reads the token from an environment variable at call time.

    Args:
        var_name: Environment variable holding the token
    """

    def __init__(self, var_name: str = "API_ACCESS_TOKEN"):
        self.var_name = var_name

    def get_token(self) -> Optional[str]:
        value = os.getenv(self.var_name, "").strip()
        return value or None

    def __repr__(self) -> str:
        return f"EnvTokenSource(var_name={self.var_name!r})"


__all__ = ["InMemoryTokenStore", "EnvTokenSource", "StoredToken"]
