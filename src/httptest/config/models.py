from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

USER_AGENT = "httptest-load-tester/1.0"
DEFAULT_TIMEOUT_SEC = 60.0
DEFAULT_HISTOGRAM_BOUNDS: tuple[float, ...] = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


class ConfigError(ValueError):
    """Raised when the run configuration is unusable."""


@dataclass(frozen=True, slots=True)
class TargetConfig:
    url: str
    method: str = "GET"
    body: bytes = b""
    headers: tuple[tuple[str, str], ...] = ()
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    user_agent: str = USER_AGENT


@dataclass(frozen=True, slots=True)
class RunConfig:
    target: TargetConfig
    concurrency: int = 10
    total_requests: int = 0
    duration_sec: float = 0.0
    output_path: str | None = None
    history_path: str | None = None
    histogram_bounds: tuple[float, ...] = DEFAULT_HISTOGRAM_BOUNDS
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def duration_mode(self) -> bool:
        return self.duration_sec > 0

    def validate(self) -> None:
        if not self.target.url:
            raise ConfigError("-url is required.")
        if self.total_requests < 0:
            raise ConfigError("-requests must not be negative.")
        if self.duration_sec < 0:
            raise ConfigError("-duration must not be negative.")
        if self.total_requests > 0 and self.duration_sec > 0:
            raise ConfigError("-requests and -duration are mutually exclusive. Please choose one.")
        if self.total_requests == 0 and self.duration_sec == 0:
            raise ConfigError("Either -requests or -duration must be specified.")
        if self.concurrency < 1:
            raise ConfigError("-concurrency must be at least 1.")
        if list(self.histogram_bounds) != sorted(self.histogram_bounds):
            raise ConfigError("histogram bounds must be ascending.")

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "concurrency": self.concurrency,
            "total_requests": self.total_requests,
            "duration_sec": self.duration_sec,
            "output_path": self.output_path or "",
            "histogram_bounds": list(self.histogram_bounds),
            "target": {
                "url": self.target.url,
                "method": self.target.method,
                "timeout_sec": self.target.timeout_sec,
                "body_bytes": len(self.target.body),
                "headers": [list(pair) for pair in self.target.headers],
            },
        }


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url:
        return url
    if not url.startswith(("http://", "https://")):
        return "https://" + url
    return url


def parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep or not name:
        msg = f"invalid header {raw!r}, expected 'Key: Value'"
        raise ConfigError(msg)
    return name, value.strip()


def parse_duration(raw: str) -> float:
    """Parse a duration such as ``60s``, ``1m30s`` or ``250ms`` into seconds."""
    text = raw.strip()
    if text == "0":
        return 0.0
    if not text:
        msg = "empty duration"
        raise ConfigError(msg)
    pos = 0
    total = 0.0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            msg = f"invalid duration {raw!r}"
            raise ConfigError(msg)
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return total
