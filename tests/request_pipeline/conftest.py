"""Shared fakes for pipeline tests: scripted transport, credentials and sink."""

from typing import Any, Optional

import pytest
from multidict import CIMultiDict

from request_pipeline.errors.exceptions import TransportFailure
from request_pipeline.models import Request, Response
from request_pipeline.resilience.retry import RetryPolicy
from request_pipeline.types import TransportFailureKind


class FakeTransport:
    """
    Transport replaying a script of outcomes.

    Each send() consumes the next outcome; once the script is exhausted the
    last outcome repeats. An outcome is a Response, an int status code, or an
    exception to raise.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes) or [200]
        self.calls: list[Request] = []
        self.sent_headers: list[CIMultiDict] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def send(self, request: Request) -> Response:
        self.calls.append(request)
        self.sent_headers.append(CIMultiDict(request.headers))
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            return Response(status_code=outcome, request=request)
        return Response(
            status_code=outcome.status_code,
            headers=CIMultiDict(outcome.headers),
            body=outcome.body,
            request=request,
        )


class FakeCredentials:
    def __init__(self, token: Optional[str] = None):
        self.token = token
        self.calls = 0

    def get_token(self) -> Optional[str]:
        self.calls += 1
        return self.token


class RecordingSink:
    """LogSink that keeps every record for assertions."""

    def __init__(self):
        self.records: list[tuple[int, str, dict]] = []

    def record(self, level: int, message: str, extra: Optional[dict] = None) -> None:
        self.records.append((level, message, dict(extra or {})))

    def messages(self, level: Optional[int] = None) -> list[str]:
        return [msg for lvl, msg, _ in self.records if level is None or lvl == level]

    def has(self, fragment: str, level: Optional[int] = None) -> bool:
        return any(fragment in msg for msg in self.messages(level))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def credentials():
    return FakeCredentials("test-token")


@pytest.fixture
def fake_transport():
    """Factory: fake_transport(outcome, ...) -> FakeTransport."""
    return FakeTransport


@pytest.fixture
def fast_retry_policy():
    return RetryPolicy(max_attempts=3, delay_ms=0)


@pytest.fixture
def timeout_failure():
    """Factory for transport timeout failures."""

    def make(message: str = "Request timeout after 30s") -> TransportFailure:
        return TransportFailure(TransportFailureKind.TIMEOUT, message)

    return make


@pytest.fixture
def connection_failure():
    def make(message: str = "Connection error: refused") -> TransportFailure:
        return TransportFailure(TransportFailureKind.CONNECTION_ERROR, message)

    return make


@pytest.fixture
def fake_credentials():
    """Factory: fake_credentials(token) -> FakeCredentials."""
    return FakeCredentials
