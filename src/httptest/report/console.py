from __future__ import annotations

import math
from typing import Sequence, TextIO

from httptest.metrics import ERROR_LOG_LIMIT, HistogramBucket, Summary, histogram_bars
from httptest.report.colors import Palette

BAR_CHAR = "▇"


def _heading(title: str, underline: str, p: Palette) -> str:
    return f"\n{p.yellow}{title}{p.reset}\n{p.yellow}{underline}{p.reset}\n"


def render_histogram(histogram: Sequence[HistogramBucket], p: Palette) -> str:
    lines = [_heading("Response Time Distribution", "-" * 24, p)]
    last_mark = 0.0
    for bucket, width in zip(histogram, histogram_bars(histogram)):
        bar = BAR_CHAR * width
        if math.isinf(bucket.mark):
            label = f"{last_mark:.2f}s+ "
        else:
            label = f"{last_mark:.2f}-{bucket.mark:.2f}s"
        lines.append(f"[{p.cyan}{label}{p.reset}] {bar} ({bucket.count}){p.reset}\n")
        last_mark = bucket.mark
    return "".join(lines)


def render_summary(summary: Summary | None, p: Palette) -> str:
    if summary is None:
        return "\nNo requests were sent.\n"
    s = summary
    out = [
        f"\n\n{p.yellow}Load Test Summary{p.reset}\n{p.yellow}{'=' * 18}{p.reset}\n",
        f"Total Requests Sent      : {p.cyan}{s.total_requests_sent}{p.reset}\n",
        f"Successful Requests      : {p.green}{s.successful_requests}{p.reset}\n",
        f"Failed Requests          : {p.red}{s.failed_requests}{p.reset}\n",
        f"Success Rate             : {p.green}{s.success_rate:.2f}%{p.reset}\n",
        f"Failure Rate             : {p.red}{s.failure_rate:.2f}%{p.reset}\n",
        f"Total Time Taken         : {s.total_time_taken:.2f} seconds\n",
        f"Requests per Second      : {s.requests_per_second:.2f}\n",
        _heading("Response Time Metrics (seconds)", "-" * 32, p),
        f"Average Response Time    : {p.cyan}{s.avg_response_time:.4f}{p.reset}\n",
        f"90th Percentile          : {s.percentile_90:.4f}\n",
        f"99th Percentile          : {s.percentile_99:.4f}\n",
        f"Minimum Response Time    : {s.min_response_time:.4f}\n",
        f"Maximum Response Time    : {s.max_response_time:.4f}\n",
        render_histogram(s.histogram, p),
        _heading("Status Code Distribution", "-" * 24, p),
    ]
    for code, count in sorted(s.status_code_dist.items()):
        color = p.red if code == 0 or code >= 400 else p.green
        if code == 0:
            out.append(f"Client-Side Errors : {color}{count} responses{p.reset}\n")
        else:
            out.append(f"Status Code {code:<7d} : {color}{count} responses{p.reset}\n")
    if s.error_summary:
        out.append(_heading(f"Error Summary (first {ERROR_LOG_LIMIT})", "-" * 26, p))
        for i, message in enumerate(s.error_summary[:ERROR_LOG_LIMIT], start=1):
            out.append(f"{p.red}{i}. {message}{p.reset}\n")
    return "".join(out)


def print_summary(summary: Summary | None, stream: TextIO, palette: Palette) -> None:
    stream.write(render_summary(summary, palette))
    stream.flush()
