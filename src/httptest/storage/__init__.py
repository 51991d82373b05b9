from __future__ import annotations

from pathlib import Path

from httptest.storage.duckdb_store import Storage


def default_storage() -> Storage:
    return Storage(Path(".httptest/history.duckdb"))


__all__ = ["Storage", "default_storage"]
