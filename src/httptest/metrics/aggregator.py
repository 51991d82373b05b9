from __future__ import annotations

from typing import Sequence

import numpy as np

from httptest.metrics.models import HistogramBucket, MetricsSnapshot, Summary

HISTOGRAM_BAR_WIDTH = 40


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Lower-rank percentile of ascending ``sorted_values``.

    The value at ``int(n * p / 100)``, clamped to the last index. No
    interpolation: ``[1, 2, 3, 4, 5]`` gives 5 for p90 and 3 for p50.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = int(n * (p / 100.0))
    if index >= n:
        index = n - 1
    return float(sorted_values[index])


def bar_length(count: int, max_count: int, width: int = HISTOGRAM_BAR_WIDTH) -> int:
    if max_count <= 0:
        return 0
    return (count * width) // max_count


def histogram_bars(histogram: Sequence[HistogramBucket], width: int = HISTOGRAM_BAR_WIDTH) -> list[int]:
    max_count = max((bucket.count for bucket in histogram), default=0)
    return [bar_length(bucket.count, max_count, width) for bucket in histogram]


def summarize(snapshot: MetricsSnapshot, elapsed_sec: float) -> Summary | None:
    """Build the final summary, or ``None`` when no request completed."""
    total = snapshot.total
    if total == 0:
        return None
    times = np.sort(np.asarray(snapshot.response_times, dtype=float))
    if times.size:
        avg = float(times.mean())
        low = float(times[0])
        high = float(times[-1])
    else:
        avg = low = high = 0.0
    rps = total / elapsed_sec if elapsed_sec > 0 else 0.0
    return Summary(
        total_requests_sent=total,
        successful_requests=snapshot.success_count,
        failed_requests=snapshot.failure_count,
        success_rate=snapshot.success_count / total * 100,
        failure_rate=snapshot.failure_count / total * 100,
        total_time_taken=elapsed_sec,
        requests_per_second=rps,
        avg_response_time=avg,
        min_response_time=low,
        max_response_time=high,
        percentile_90=percentile(times, 90),
        percentile_99=percentile(times, 99),
        status_code_dist=dict(sorted(snapshot.status_codes.items())),
        histogram=tuple(snapshot.histogram),
        error_summary=tuple(snapshot.errors),
    )
