from __future__ import annotations

import math
import threading
from collections import deque
from typing import Iterable

from httptest.config import DEFAULT_HISTOGRAM_BOUNDS
from httptest.metrics.models import HistogramBucket, LiveSnapshot, MetricsSnapshot

ERROR_LOG_LIMIT = 100
LIVE_SAMPLE_SIZE = 1000
CLIENT_ERROR_STATUS = 0


class MetricsAccumulator:
    """Lock-protected store for the statistics of a single test run.

    Every public method takes the one lock for its whole body, so updates from
    concurrent workers are never lost and readers always see a consistent
    state. Snapshots copy under the lock and leave the math to the caller.
    """

    def __init__(
        self,
        bounds: Iterable[float] = DEFAULT_HISTOGRAM_BOUNDS,
        error_limit: int = ERROR_LOG_LIMIT,
        live_sample_size: int = LIVE_SAMPLE_SIZE,
    ) -> None:
        marks = [float(b) for b in bounds if not math.isinf(b)]
        self._lock = threading.Lock()
        self._success = 0
        self._failure = 0
        self._response_times: list[float] = []
        self._latency_sum = 0.0
        self._recent: deque[float] = deque(maxlen=live_sample_size)
        self._status_codes: dict[int, int] = {}
        self._histogram = [HistogramBucket(mark) for mark in marks]
        self._histogram.append(HistogramBucket(math.inf))
        self._errors: list[str] = []
        self._error_limit = error_limit

    def record_success(self) -> None:
        with self._lock:
            self._success += 1

    def record_failure(self) -> None:
        with self._lock:
            self._failure += 1

    def record_latency(self, seconds: float) -> None:
        with self._lock:
            self._add_latency(seconds)

    def record_status(self, status_code: int) -> None:
        with self._lock:
            self._status_codes[status_code] = self._status_codes.get(status_code, 0) + 1

    def record_error(self, message: str) -> None:
        with self._lock:
            self._add_error(message)

    def record_response(self, seconds: float, status_code: int) -> None:
        """Record a received response as one atomic outcome."""
        with self._lock:
            self._add_latency(seconds)
            if 200 <= status_code < 300:
                self._success += 1
            else:
                self._failure += 1
            self._status_codes[status_code] = self._status_codes.get(status_code, 0) + 1

    def record_transport_error(self, seconds: float, message: str) -> None:
        """Record a request that never produced a response."""
        with self._lock:
            self._add_latency(seconds)
            self._failure += 1
            self._status_codes[CLIENT_ERROR_STATUS] = self._status_codes.get(CLIENT_ERROR_STATUS, 0) + 1
            self._add_error(message)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                success_count=self._success,
                failure_count=self._failure,
                response_times=list(self._response_times),
                status_codes=dict(self._status_codes),
                histogram=[HistogramBucket(b.mark, b.count) for b in self._histogram],
                errors=list(self._errors),
            )

    def live_snapshot(self) -> LiveSnapshot:
        with self._lock:
            return LiveSnapshot(
                success_count=self._success,
                failure_count=self._failure,
                sample_count=len(self._response_times),
                latency_sum=self._latency_sum,
                recent_latencies=list(self._recent),
            )

    # Callers must hold self._lock.
    def _add_latency(self, seconds: float) -> None:
        self._response_times.append(seconds)
        self._latency_sum += seconds
        self._recent.append(seconds)
        for bucket in self._histogram:
            if seconds <= bucket.mark:
                bucket.count += 1
                break

    def _add_error(self, message: str) -> None:
        if len(self._errors) < self._error_limit:
            self._errors.append(message)
