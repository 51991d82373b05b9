from __future__ import annotations

import asyncio
import logging
import sys
import time
import uuid
from dataclasses import dataclass
from typing import TextIO

import httpx

from httptest.config import RunConfig
from httptest.loadgen.cancel import (
    REASON_COMPLETE,
    CancelToken,
    cancel_after,
    install_signal_handlers,
    remove_signal_handlers,
)
from httptest.loadgen.client import build_headers, send_request
from httptest.metrics import MetricsAccumulator, Summary, summarize
from httptest.report.live import LiveReporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    summary: Summary | None
    elapsed_sec: float
    dispatched: int
    stop_reason: str | None


def _new_run_id() -> str:
    return uuid.uuid4().hex


async def run_load_test(
    config: RunConfig,
    accumulator: MetricsAccumulator | None = None,
    *,
    token: CancelToken | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    stream: TextIO | None = None,
    live: bool = True,
    handle_signals: bool = True,
) -> RunResult:
    """Run one load test to completion and summarize it.

    Returns after every dispatched request has finished, whether the run ended
    by reaching its request count, its deadline or an interrupt.
    """
    config.validate()
    run_id = config.run_id or _new_run_id()
    if accumulator is None:
        accumulator = MetricsAccumulator(config.histogram_bounds)
    if token is None:
        token = CancelToken()
    out = stream if stream is not None else sys.stdout

    signals = install_signal_handlers(token) if handle_signals else {}
    deadline = cancel_after(token, config.duration_sec) if config.duration_mode else None
    started = time.perf_counter()
    reporter_task = None
    if live:
        reporter = LiveReporter(accumulator, started, config.total_requests, out)
        reporter_task = asyncio.create_task(reporter.run(token))
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            dispatched = await _dispatch(client, config, accumulator, token)
        elapsed = time.perf_counter() - started
    finally:
        token.cancel(REASON_COMPLETE)
        if deadline is not None:
            deadline.cancel()
        if reporter_task is not None:
            await reporter_task
        remove_signal_handlers(signals)

    logger.info("run %s drained: %d requests in %.2fs (%s)", run_id, dispatched, elapsed, token.reason)
    summary = summarize(accumulator.snapshot(), elapsed)
    return RunResult(
        run_id=run_id,
        summary=summary,
        elapsed_sec=elapsed,
        dispatched=dispatched,
        stop_reason=token.reason,
    )


async def _dispatch(
    client: httpx.AsyncClient,
    config: RunConfig,
    accumulator: MetricsAccumulator,
    token: CancelToken,
) -> int:
    limit = None if config.duration_mode else config.total_requests
    logger.info(
        "dispatching %s with concurrency %d",
        f"for {config.duration_sec:g}s" if limit is None else f"{limit} requests",
        config.concurrency,
    )
    headers = build_headers(config.target)
    slots = asyncio.Semaphore(config.concurrency)
    in_flight: set[asyncio.Task[int]] = set()
    dispatched = 0

    async def worker() -> int:
        try:
            return await send_request(client, config.target, headers, accumulator)
        finally:
            slots.release()

    while limit is None or dispatched < limit:
        if not await _acquire_slot(slots, token):
            break
        task = asyncio.create_task(worker())
        in_flight.add(task)
        task.add_done_callback(in_flight.discard)
        dispatched += 1

    if token.cancelled:
        logger.info("dispatch stopped (%s), draining %d in-flight requests", token.reason, len(in_flight))
    if in_flight:
        await asyncio.gather(*in_flight)
    return dispatched


async def _acquire_slot(slots: asyncio.Semaphore, token: CancelToken) -> bool:
    """Wait for a free slot; False if the token fires first."""
    if token.cancelled:
        return False
    if not slots.locked():
        await slots.acquire()
        return True
    acquire = asyncio.ensure_future(slots.acquire())
    stopped = asyncio.ensure_future(token.wait())
    acquired = False
    try:
        await asyncio.wait({acquire, stopped}, return_when=asyncio.FIRST_COMPLETED)
        acquired = acquire.done() and not acquire.cancelled()
    finally:
        stopped.cancel()
        if not acquire.done():
            # The semaphore hands a slot granted to a cancelled waiter to the next one.
            acquire.cancel()
        elif not acquired and not acquire.cancelled():
            # Cancelled from outside after the slot was granted.
            slots.release()
    if acquired and token.cancelled:
        slots.release()
        return False
    return acquired
