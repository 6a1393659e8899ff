"""Tests for the JSON serializer used by log formatters."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from multidict import CIMultiDict

from request_pipeline.types import HttpMethod
from request_pipeline.utils import json_serializer


class TestJsonSerializer:

    def test_known_types(self):
        assert json_serializer(datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)) == (
            "2026-01-02T03:04:00+00:00"
        )
        assert json_serializer(Decimal("1.5")) == 1.5
        assert json_serializer(Path("/tmp/x")) == "/tmp/x"
        assert json_serializer(b"hi") == "hi"

    def test_multidict_becomes_plain_dict(self):
        assert json_serializer(CIMultiDict({"Accept": "json"})) == {"Accept": "json"}

    def test_enum_value(self):
        assert json_serializer(HttpMethod.GET) == "GET"

    def test_fallback_to_str(self):
        assert json_serializer(object.__new__(object)).startswith("<object object")

    def test_used_as_default(self):
        payload = {"headers": CIMultiDict({"X": "1"}), "at": Decimal("2")}
        assert json.loads(json.dumps(payload, default=json_serializer)) == {
            "headers": {"X": "1"},
            "at": 2.0,
        }
