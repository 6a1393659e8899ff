"""Shared utility functions."""

from request_pipeline.utils.json_serializers import json_serializer

__all__ = ["json_serializer"]
