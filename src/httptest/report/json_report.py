from __future__ import annotations

import json
import logging
from pathlib import Path

from httptest.metrics import Summary

logger = logging.getLogger(__name__)


def summary_to_json(summary: Summary) -> str:
    return json.dumps(summary.to_dict(), indent=2)


def write_summary(summary: Summary, path: str | Path) -> Path:
    """Write ``summary`` as indented JSON; OSError propagates to the caller."""
    target = Path(path)
    target.write_text(summary_to_json(summary) + "\n", encoding="utf-8")
    logger.info("summary report written to %s", target)
    return target


def read_summary(path: str | Path) -> Summary:
    return Summary.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
