"""Request pipeline configuration from YAML file.

Reads the `http:` section of a YAML file:

    http:
      base_url: ${API_BASE_URL:-http://localhost:8000/api/v1}
      timeout_seconds: 30
      connect_timeout_seconds: 30
      default_headers:
        Accept: application/json
      retry:
        enabled: true
        max_attempts: 3
        delay_ms: 1000
        retryable_status_codes: [408, 500, 502, 503, 504]
        methods: [GET, PUT, DELETE]
      auth:
        excluded_paths: [/auth/login, /health]
      trace:
        verbose: false
        log_request_body: false
        log_response_body: false

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from request_pipeline.resilience.retry import (
    ALL_METHODS,
    DEFAULT_RETRYABLE_FAILURE_KINDS,
    DEFAULT_RETRYABLE_STATUS_CODES,
    RetryPolicy,
)
from request_pipeline.stages.auth import DEFAULT_AUTH_EXCLUSIONS
from request_pipeline.transport.http_client import DEFAULT_HEADERS
from request_pipeline.types import HttpMethod

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"
BASE_URL_ENV_VAR = "API_BASE_URL"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _section(http: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return an http sub-section; an empty key (`retry:`) counts as absent."""
    section = http.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Invalid config file: 'http.{name}:' must be a mapping")
    return section


def _value(section: Dict[str, Any], key: str, default: Any) -> Any:
    """Return section[key], treating a missing or empty key as the default."""
    value = section.get(key)
    return default if value is None else value


@dataclass
class PipelineConfig:
    """
    Settings for the transport and the standard stage chain.

    YAML and environment values arrive as strings, so __post_init__ coerces
    every field to its declared type and validates ranges.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 30.0
    default_headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    retry_enabled: bool = True
    max_attempts: int = 3
    retry_delay_ms: int = 1000
    retryable_status_codes: List[int] = field(
        default_factory=lambda: sorted(DEFAULT_RETRYABLE_STATUS_CODES)
    )
    retry_methods: List[str] = field(
        default_factory=lambda: sorted(method.value for method in ALL_METHODS)
    )

    auth_excluded_paths: List[str] = field(default_factory=lambda: sorted(DEFAULT_AUTH_EXCLUSIONS))

    trace_verbose: bool = False
    log_request_body: bool = False
    log_response_body: bool = False

    def __post_init__(self):
        self.base_url = str(self.base_url or "")
        self.timeout_seconds = float(self.timeout_seconds)
        self.connect_timeout_seconds = float(self.connect_timeout_seconds)
        self.default_headers = {str(k): str(v) for k, v in (self.default_headers or {}).items()}
        self.retry_enabled = _as_bool(self.retry_enabled)
        self.max_attempts = int(self.max_attempts)
        self.retry_delay_ms = int(self.retry_delay_ms)
        self.retryable_status_codes = [int(code) for code in self.retryable_status_codes]
        self.retry_methods = [str(method).upper() for method in self.retry_methods]
        self.auth_excluded_paths = [str(path) for path in self.auth_excluded_paths]
        self.trace_verbose = _as_bool(self.trace_verbose)
        self.log_request_body = _as_bool(self.log_request_body)
        self.log_response_body = _as_bool(self.log_response_body)
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on out-of-range settings."""
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.connect_timeout_seconds <= 0:
            raise ValueError(
                f"connect_timeout_seconds must be > 0, got {self.connect_timeout_seconds}"
            )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")
        for code in self.retryable_status_codes:
            if not 100 <= code <= 599:
                raise ValueError(f"retryable_status_codes: {code} is not an HTTP status")
        valid_methods = {method.value for method in HttpMethod}
        for method in self.retry_methods:
            if method not in valid_methods:
                raise ValueError(
                    f"retry_methods: {method} must be one of {sorted(valid_methods)}"
                )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            delay_ms=self.retry_delay_ms,
            retryable_status_codes=frozenset(self.retryable_status_codes),
            retryable_failure_kinds=DEFAULT_RETRYABLE_FAILURE_KINDS,
            retryable_methods=frozenset(self.retry_methods),
        )


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> PipelineConfig:
    """Load pipeline configuration from a YAML file.

    A missing file (or no path) yields the defaults. API_BASE_URL in the
    environment wins over the file's base_url.

    Raises:
        ValueError: If the file's values fail validation
    """
    yaml_data: Dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            logger.info(f"Loading configuration from file: {config_path}")
            yaml_data = _expand_env_vars(load_yaml(config_path))
        else:
            logger.warning(
                "Configuration file not found, using defaults",
                extra={"config_path": str(config_path)},
            )

    http = yaml_data.get("http") or {}
    if not isinstance(http, dict):
        raise ValueError("Invalid config file: 'http:' must be a mapping")

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        http = _deep_merge(http, overrides)

    retry = _section(http, "retry")
    auth = _section(http, "auth")
    trace = _section(http, "trace")
    defaults = PipelineConfig()

    config = PipelineConfig(
        base_url=os.getenv(BASE_URL_ENV_VAR) or _value(http, "base_url", defaults.base_url),
        timeout_seconds=_value(http, "timeout_seconds", defaults.timeout_seconds),
        connect_timeout_seconds=_value(
            http, "connect_timeout_seconds", defaults.connect_timeout_seconds
        ),
        default_headers=_value(http, "default_headers", defaults.default_headers),
        retry_enabled=_value(retry, "enabled", defaults.retry_enabled),
        max_attempts=_value(retry, "max_attempts", defaults.max_attempts),
        retry_delay_ms=_value(retry, "delay_ms", defaults.retry_delay_ms),
        retryable_status_codes=_value(
            retry, "retryable_status_codes", defaults.retryable_status_codes
        ),
        retry_methods=_value(retry, "methods", defaults.retry_methods),
        auth_excluded_paths=_value(auth, "excluded_paths", defaults.auth_excluded_paths),
        trace_verbose=_value(trace, "verbose", defaults.trace_verbose),
        log_request_body=_value(trace, "log_request_body", defaults.log_request_body),
        log_response_body=_value(trace, "log_response_body", defaults.log_response_body),
    )

    logger.debug(
        "Configuration loaded",
        extra={
            "base_url": config.base_url,
            "retry_enabled": config.retry_enabled,
            "max_attempts": config.max_attempts,
        },
    )
    return config


__all__ = [
    "PipelineConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_BASE_URL",
]
