from __future__ import annotations

import math

import pytest

from httptest.config import RunConfig, TargetConfig
from httptest.metrics import HistogramBucket, Summary
from httptest.storage import Storage


def _summary(total: int = 4) -> Summary:
    return Summary(
        total_requests_sent=total,
        successful_requests=total - 1,
        failed_requests=1,
        success_rate=(total - 1) / total * 100,
        failure_rate=1 / total * 100,
        total_time_taken=2.0,
        requests_per_second=total / 2.0,
        avg_response_time=0.2,
        min_response_time=0.1,
        max_response_time=0.4,
        percentile_90=0.4,
        percentile_99=0.4,
        status_code_dist={200: total - 1, 502: 1},
        histogram=(HistogramBucket(0.25, total - 1), HistogramBucket(math.inf, 1)),
        error_summary=(),
    )


def _config() -> RunConfig:
    return RunConfig(target=TargetConfig(url="https://example.com/health"), total_requests=4)


def test_save_and_load_run(tmp_path) -> None:
    storage = Storage(tmp_path / "history" / "runs.duckdb")
    summary = _summary()
    storage.save_run(_config(), "run-1", summary)

    assert storage.run_exists("run-1")
    assert not storage.run_exists("run-2")
    assert storage.load_summary("run-1") == summary
    assert storage.load_summary("missing") is None
    meta = storage.load_run_meta("run-1")
    assert meta is not None
    assert meta["target"]["url"] == "https://example.com/health"

    codes = storage.load_status_counts("run-1")
    assert codes["status_code"].tolist() == [200, 502]
    assert codes["count"].tolist() == [3, 1]


def test_list_runs(tmp_path) -> None:
    storage = Storage(tmp_path / "runs.duckdb")
    storage.save_run(_config(), "a", _summary(4))
    storage.save_run(_config(), "b", _summary(10))
    runs = storage.list_runs()
    assert sorted(runs["run_id"].tolist()) == ["a", "b"]
    assert set(runs["total_requests"].tolist()) == {4, 10}


def test_duplicate_run_id_rejected(tmp_path) -> None:
    storage = Storage(tmp_path / "runs.duckdb")
    storage.save_run(_config(), "dup", _summary())
    with pytest.raises(ValueError):
        storage.save_run(_config(), "dup", _summary())
