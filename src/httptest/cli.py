from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

import duckdb

from httptest.config import ConfigError, RunConfig, TargetConfig, normalize_url, parse_duration, parse_header
from httptest.loadgen.runner import RunResult, run_load_test
from httptest.report import default_palette, print_summary, write_summary
from httptest.storage import Storage, default_storage

logger = logging.getLogger(__name__)

_DEFAULT_HISTORY = "__default__"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="httptest", description="HTTP load generator")
    parser.add_argument("-url", "--url", default="", help="The target URL to test. (Required)")
    parser.add_argument(
        "-requests",
        "--requests",
        type=int,
        default=0,
        help="Total number of requests to send. Incompatible with -duration.",
    )
    parser.add_argument(
        "-duration",
        "--duration",
        default="0",
        help="Duration of the test (e.g. '60s', '5m'). Incompatible with -requests.",
    )
    parser.add_argument("-concurrency", "--concurrency", type=int, default=10)
    parser.add_argument("-method", "--method", default="GET", help="HTTP method to use.")
    parser.add_argument("-body", "--body", default="", help="Request body. Incompatible with -body-file.")
    parser.add_argument("-body-file", "--body-file", default="", help="File holding the request body.")
    parser.add_argument(
        "-header",
        "--header",
        action="append",
        default=[],
        help="Custom header 'Key: Value' (repeatable).",
    )
    parser.add_argument("-output", "--output", default="", help="Save the summary report as JSON.")
    parser.add_argument(
        "-history-db",
        "--history-db",
        nargs="?",
        const=_DEFAULT_HISTORY,
        default="",
        help="Record the run in a DuckDB history file.",
    )
    parser.add_argument(
        "-log-level",
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    return parser


def _read_body(args: argparse.Namespace) -> bytes:
    if args.body and args.body_file:
        raise ConfigError("-body and -body-file are mutually exclusive. Please choose one.")
    if args.body_file:
        try:
            return Path(args.body_file).read_bytes()
        except OSError as exc:
            msg = f"Error reading body file: {exc}"
            raise ConfigError(msg) from exc
    return args.body.encode("utf-8")


def build_config(args: argparse.Namespace) -> RunConfig:
    if not args.url:
        raise ConfigError("-url is required.")
    target = TargetConfig(
        url=normalize_url(args.url),
        method=args.method.upper(),
        headers=tuple(parse_header(h) for h in args.header),
    )
    config = RunConfig(
        target=target,
        concurrency=args.concurrency,
        total_requests=args.requests,
        duration_sec=parse_duration(args.duration),
        output_path=args.output or None,
        history_path=args.history_db or None,
    )
    config.validate()
    # The body file is only read once the flags themselves are consistent.
    return replace(config, target=replace(target, body=_read_body(args)))


def _record_history(config: RunConfig, result: RunResult) -> None:
    if result.summary is None or not config.history_path:
        return
    try:
        if config.history_path == _DEFAULT_HISTORY:
            storage = default_storage()
        else:
            storage = Storage(Path(config.history_path))
        storage.save_run(config, result.run_id, result.summary)
    except (duckdb.Error, OSError, ValueError) as exc:
        logger.error("could not record run %s: %s", result.run_id, exc)
        print(f"\nError recording run history: {exc}")
        return
    print(f"Run recorded: {result.run_id}")


def _write_report(config: RunConfig, result: RunResult) -> None:
    if result.summary is None or not config.output_path:
        return
    try:
        path = write_summary(result.summary, config.output_path)
    except OSError as exc:
        logger.error("could not write report %s: %s", config.output_path, exc)
        print(f"\nError writing summary to file '{config.output_path}': {exc}")
        return
    print(f"\nSummary report saved to {path}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 1

    result = asyncio.run(run_load_test(config))
    print_summary(result.summary, sys.stdout, default_palette())
    _write_report(config, result)
    _record_history(config, result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
