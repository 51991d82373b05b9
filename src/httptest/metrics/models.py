from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    INVALID_REQUEST = "invalid_request"
    OTHER = "other"


@dataclass(slots=True)
class HistogramBucket:
    mark: float
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        # JSON has no infinity; the open-ended bucket is written as null.
        mark = None if math.isinf(self.mark) else self.mark
        return {"mark": mark, "count": self.count}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistogramBucket:
        mark = data.get("mark")
        return cls(mark=math.inf if mark is None else float(mark), count=int(data["count"]))


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    success_count: int
    failure_count: int
    response_times: list[float]
    status_codes: dict[int, int]
    histogram: list[HistogramBucket]
    errors: list[str]

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


@dataclass(frozen=True, slots=True)
class LiveSnapshot:
    success_count: int
    failure_count: int
    sample_count: int
    latency_sum: float
    recent_latencies: list[float]

    @property
    def sent(self) -> int:
        return self.success_count + self.failure_count

    @property
    def average(self) -> float:
        if self.sample_count == 0:
            return 0.0
        return self.latency_sum / self.sample_count


_JSON_FIELDS = (
    ("total_requests_sent", "totalRequestsSent"),
    ("successful_requests", "successfulRequests"),
    ("failed_requests", "failedRequests"),
    ("success_rate", "successRate"),
    ("failure_rate", "failureRate"),
    ("total_time_taken", "totalTimeTaken"),
    ("requests_per_second", "requestsPerSecond"),
    ("avg_response_time", "avgResponseTime"),
    ("min_response_time", "minResponseTime"),
    ("max_response_time", "maxResponseTime"),
    ("percentile_90", "percentile90"),
    ("percentile_99", "percentile99"),
)


@dataclass(frozen=True, slots=True)
class Summary:
    total_requests_sent: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    failure_rate: float
    total_time_taken: float
    requests_per_second: float
    avg_response_time: float
    min_response_time: float
    max_response_time: float
    percentile_90: float
    percentile_99: float
    status_code_dist: Mapping[int, int] = field(default_factory=dict)
    histogram: tuple[HistogramBucket, ...] = ()
    error_summary: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {key: getattr(self, attr) for attr, key in _JSON_FIELDS}
        data["statusCodeDistribution"] = {
            str(code): count for code, count in sorted(self.status_code_dist.items())
        }
        data["histogram"] = [bucket.to_dict() for bucket in self.histogram]
        data["errorSummary"] = list(self.error_summary)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Summary:
        values: dict[str, Any] = {attr: data[key] for attr, key in _JSON_FIELDS}
        return cls(
            **values,
            status_code_dist={
                int(code): int(count) for code, count in data.get("statusCodeDistribution", {}).items()
            },
            histogram=tuple(HistogramBucket.from_dict(b) for b in data.get("histogram", [])),
            error_summary=tuple(data.get("errorSummary", [])),
        )
