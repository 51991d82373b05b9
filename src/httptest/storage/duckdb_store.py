from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import duckdb
import pandas as pd

from httptest.config import RunConfig
from httptest.metrics import Summary


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    url TEXT,
                    total_requests INTEGER,
                    success_rate DOUBLE,
                    requests_per_second DOUBLE,
                    p99_sec DOUBLE,
                    config_json TEXT,
                    summary_json TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_status (
                    run_id TEXT,
                    status_code INTEGER,
                    count INTEGER
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_histogram (
                    run_id TEXT,
                    position INTEGER,
                    mark DOUBLE,
                    count INTEGER
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(self, config: RunConfig, run_id: str, summary: Summary) -> None:
        if self.run_exists(run_id):
            msg = f"Run {run_id} already exists"
            raise ValueError(msg)
        config_json = json.dumps(config.to_metadata())
        summary_json = json.dumps(summary.to_dict())
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    run_id,
                    config.created_at.replace(tzinfo=None),
                    config.target.url,
                    summary.total_requests_sent,
                    summary.success_rate,
                    summary.requests_per_second,
                    summary.percentile_99,
                    config_json,
                    summary_json,
                ],
            )
            status_df = pd.DataFrame(
                [
                    {"run_id": run_id, "status_code": code, "count": count}
                    for code, count in summary.status_code_dist.items()
                ]
            )
            if not status_df.empty:
                con.execute("INSERT INTO run_status SELECT * FROM status_df")
            hist_df = pd.DataFrame(
                [
                    {"run_id": run_id, "position": i, "mark": b.mark, "count": b.count}
                    for i, b in enumerate(summary.histogram)
                ]
            )
            if not hist_df.empty:
                con.execute("INSERT INTO run_histogram SELECT * FROM hist_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                """
                SELECT run_id, created_at, url, total_requests, success_rate,
                       requests_per_second, p99_sec
                FROM run_meta ORDER BY created_at DESC
                """
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_summary(self, run_id: str) -> Summary | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT summary_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return Summary.from_dict(json.loads(row[0]))

    def load_status_counts(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT status_code, count FROM run_status WHERE run_id = ? ORDER BY status_code",
                [run_id],
            ).fetchdf()
