"""
Tests for the offline pre-check stage.
"""

import logging

import pytest

from request_pipeline.config import PipelineConfig
from request_pipeline.errors import NetworkUnavailableError, TransportFailure
from request_pipeline.models import Request
from request_pipeline.pipeline import build_pipeline
from request_pipeline.stages import (
    SKIP_CONNECTIVITY_CHECK_KEY,
    AuthStage,
    ConnectivityStage,
)
from request_pipeline.types import ConnectivityProbe, TransportFailureKind


class StaticProbe:
    def __init__(self, connected):
        self.connected = connected
        self.calls = 0

    def is_connected(self):
        self.calls += 1
        return self.connected


class AsyncProbe:
    def __init__(self, connected):
        self.connected = connected

    async def is_connected(self):
        return self.connected


class BrokenProbe:
    def is_connected(self):
        raise OSError("netlink unavailable")


class TestConnectivityStage:

    @pytest.mark.asyncio
    async def test_online_passes(self, sink):
        stage = ConnectivityStage(StaticProbe(True), sink)

        await stage.on_build(Request("GET", "/goals"))

        assert sink.records == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("probe", [StaticProbe(False), AsyncProbe(False)])
    async def test_offline_rejects_with_connection_error(self, sink, probe):
        stage = ConnectivityStage(probe, sink)

        with pytest.raises(TransportFailure) as exc_info:
            await stage.on_build(Request("GET", "/goals"))

        assert exc_info.value.kind == TransportFailureKind.CONNECTION_ERROR
        assert exc_info.value.message == "No internet connection available"
        assert sink.has("Offline, rejecting request: /goals", level=logging.WARNING)

    @pytest.mark.asyncio
    async def test_skip_flag_bypasses_probe(self, sink):
        probe = StaticProbe(False)
        stage = ConnectivityStage(probe, sink)
        request = Request("GET", "/goals", attempt_context={SKIP_CONNECTIVITY_CHECK_KEY: True})

        await stage.on_build(request)

        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_probe_error_sends_anyway(self, sink):
        stage = ConnectivityStage(BrokenProbe(), sink)

        await stage.on_build(Request("GET", "/goals"))

        assert sink.has("netlink unavailable", level=logging.WARNING)

    def test_probe_protocol(self):
        assert isinstance(StaticProbe(True), ConnectivityProbe)


class TestConnectivityInPipeline:

    @pytest.mark.asyncio
    async def test_offline_call_classified_network_unavailable(
        self, fake_transport, credentials, sink
    ):
        transport = fake_transport(200)
        config = PipelineConfig(retry_enabled=False)
        pipeline = build_pipeline(
            config, transport, credentials, sink, connectivity=StaticProbe(False)
        )

        with pytest.raises(NetworkUnavailableError):
            await pipeline.execute(Request("GET", "/goals"))

        assert transport.call_count == 0
        assert credentials.calls == 0

    @pytest.mark.asyncio
    async def test_offline_call_retried_until_back_online(
        self, fake_transport, credentials, sink
    ):
        class FlakyProbe:
            def __init__(self):
                self.answers = [False]

            def is_connected(self):
                return self.answers.pop(0) if self.answers else True

        transport = fake_transport(200)
        config = PipelineConfig(retry_delay_ms=0)
        pipeline = build_pipeline(config, transport, credentials, sink, connectivity=FlakyProbe())

        response = await pipeline.execute(Request("GET", "/goals"))

        assert response.status_code == 200
        assert transport.call_count == 1

    def test_stage_first_only_when_probe_given(self, fake_transport, credentials, sink):
        config = PipelineConfig()

        with_probe = build_pipeline(
            config, fake_transport(), credentials, sink, connectivity=StaticProbe(True)
        )
        without_probe = build_pipeline(config, fake_transport(), credentials, sink)

        assert isinstance(with_probe.stages[0], ConnectivityStage)
        assert isinstance(without_probe.stages[0], AuthStage)
        assert not any(isinstance(s, ConnectivityStage) for s in without_probe.stages)
