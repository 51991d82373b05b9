from __future__ import annotations

from httptest.metrics.accumulator import CLIENT_ERROR_STATUS, ERROR_LOG_LIMIT, MetricsAccumulator
from httptest.metrics.aggregator import bar_length, histogram_bars, percentile, summarize
from httptest.metrics.models import ErrorType, HistogramBucket, LiveSnapshot, MetricsSnapshot, Summary

__all__ = [
    "CLIENT_ERROR_STATUS",
    "ERROR_LOG_LIMIT",
    "ErrorType",
    "HistogramBucket",
    "LiveSnapshot",
    "MetricsAccumulator",
    "MetricsSnapshot",
    "Summary",
    "bar_length",
    "histogram_bars",
    "percentile",
    "summarize",
]
