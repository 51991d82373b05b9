from __future__ import annotations

from httptest.config.models import (
    DEFAULT_HISTOGRAM_BOUNDS,
    DEFAULT_TIMEOUT_SEC,
    USER_AGENT,
    ConfigError,
    RunConfig,
    TargetConfig,
    normalize_url,
    parse_duration,
    parse_header,
)

__all__ = [
    "DEFAULT_HISTOGRAM_BOUNDS",
    "DEFAULT_TIMEOUT_SEC",
    "USER_AGENT",
    "ConfigError",
    "RunConfig",
    "TargetConfig",
    "normalize_url",
    "parse_duration",
    "parse_header",
]
