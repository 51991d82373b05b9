from __future__ import annotations

import asyncio
import time
from typing import TextIO

from httptest.loadgen.cancel import REASON_INTERRUPT, CancelToken
from httptest.metrics import LiveSnapshot, MetricsAccumulator, percentile
from httptest.report.colors import Palette, default_palette

TICK_SEC = 0.1
SPINNER = ("|", "/", "-", "\\")


def render_live_line(
    snap: LiveSnapshot,
    elapsed_sec: float,
    total_requests: int,
    frame: int,
    palette: Palette,
) -> str:
    target = f"/{total_requests}" if total_requests > 0 else ""
    avg = p99 = "N/A"
    if snap.sample_count:
        avg = f"{snap.average:.4f}s"
        p99 = f"{percentile(sorted(snap.recent_latencies), 99):.4f}s"
    p = palette
    return (
        f"\r{p.cyan}{SPINNER[frame % len(SPINNER)]} Requests Sent: {snap.sent}{target} | "
        f"{p.green}Success: {snap.success_count}{p.reset} | "
        f"{p.red}Failures: {snap.failure_count}{p.reset} | "
        f"Avg Resp: {avg} | 99th Pctl: {p99} | Elapsed: {elapsed_sec:.2f}s{p.reset} "
    )


class LiveReporter:
    """Redraws a single status line every tick until the run is cancelled."""

    def __init__(
        self,
        accumulator: MetricsAccumulator,
        started: float,
        total_requests: int,
        stream: TextIO,
        palette: Palette | None = None,
        interval: float = TICK_SEC,
    ) -> None:
        self.accumulator = accumulator
        self.started = started
        self.total_requests = total_requests
        self.stream = stream
        self.palette = palette or default_palette()
        self.interval = interval
        self.frames = 0

    def tick(self) -> None:
        snap = self.accumulator.live_snapshot()
        line = render_live_line(
            snap,
            time.perf_counter() - self.started,
            self.total_requests,
            self.frames,
            self.palette,
        )
        self.stream.write(line)
        self.stream.flush()
        self.frames += 1

    async def run(self, token: CancelToken) -> None:
        while not token.cancelled:
            try:
                await asyncio.wait_for(token.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                self.tick()
        if token.reason == REASON_INTERRUPT:
            p = self.palette
            self.stream.write(f"\n{p.yellow}Interrupt signal received. Shutting down gracefully...{p.reset}\n")
            self.stream.flush()
