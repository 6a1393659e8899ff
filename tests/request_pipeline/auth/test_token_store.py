"""
Tests for credential sources.
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from request_pipeline.auth import EnvTokenSource, InMemoryTokenStore, StoredToken
from request_pipeline.types import CredentialSource


class TestStoredToken:

    def test_without_expiry_always_valid(self):
        token = StoredToken("abc", datetime.now(timezone.utc))
        assert token.is_valid() is True

    def test_expired(self):
        now = datetime.now(timezone.utc)
        token = StoredToken("abc", now - timedelta(hours=2), expires_at=now - timedelta(hours=1))
        assert token.is_valid() is False

    def test_valid_until_expiry(self):
        now = datetime.now(timezone.utc)
        token = StoredToken("abc", now, expires_at=now + timedelta(minutes=5))
        assert token.is_valid(now + timedelta(minutes=4)) is True
        assert token.is_valid(now + timedelta(minutes=5)) is False


class TestInMemoryTokenStore:

    def test_empty_store_returns_none(self):
        assert InMemoryTokenStore().get_token() is None

    def test_initial_token(self):
        assert InMemoryTokenStore("abc").get_token() == "abc"

    def test_set_and_clear(self):
        store = InMemoryTokenStore()
        store.set_token("abc")
        assert store.get_token() == "abc"

        store.clear()
        assert store.get_token() is None

    def test_expired_token_not_returned(self):
        store = InMemoryTokenStore()
        store.set_token("abc", expires_in=60)

        later = datetime.now(timezone.utc) + timedelta(minutes=2)
        with patch("request_pipeline.auth.token_store.datetime") as mock_datetime:
            mock_datetime.now.return_value = later
            assert store.get_token() is None

    def test_get_age(self):
        store = InMemoryTokenStore()
        assert store.get_age() is None

        store.set_token("abc")
        age = store.get_age()
        assert age is not None
        assert age.total_seconds() >= 0

    def test_satisfies_credential_protocol(self):
        assert isinstance(InMemoryTokenStore(), CredentialSource)

    def test_concurrent_writers(self):
        store = InMemoryTokenStore()

        def writer(i):
            for _ in range(100):
                store.set_token(f"token-{i}")
                store.get_token()

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_token().startswith("token-")


class TestEnvTokenSource:

    def test_reads_variable(self, monkeypatch):
        monkeypatch.setenv("GOALS_API_TOKEN", "from-env")
        assert EnvTokenSource("GOALS_API_TOKEN").get_token() == "from-env"

    def test_missing_or_blank_is_none(self, monkeypatch):
        monkeypatch.delenv("GOALS_API_TOKEN", raising=False)
        assert EnvTokenSource("GOALS_API_TOKEN").get_token() is None

        monkeypatch.setenv("GOALS_API_TOKEN", "   ")
        assert EnvTokenSource("GOALS_API_TOKEN").get_token() is None

    def test_reads_at_call_time(self, monkeypatch):
        source = EnvTokenSource("GOALS_API_TOKEN")
        monkeypatch.setenv("GOALS_API_TOKEN", "first")
        assert source.get_token() == "first"
        monkeypatch.setenv("GOALS_API_TOKEN", "second")
        assert source.get_token() == "second"
