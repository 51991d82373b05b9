from __future__ import annotations

import time

import httpx

from httptest.config import TargetConfig
from httptest.metrics import ErrorType, MetricsAccumulator


def build_headers(target: TargetConfig) -> list[tuple[str, str]]:
    """User agent first, replaced if the configured headers name one."""
    headers = list(target.headers)
    if any(name.lower() == "user-agent" for name, _ in headers):
        return headers
    return [("User-Agent", target.user_agent), *headers]


def _describe(err: ErrorType, exc: Exception) -> str:
    text = str(exc) or type(exc).__name__
    return f"{err.value}: {text}"


async def send_request(
    client: httpx.AsyncClient,
    target: TargetConfig,
    headers: list[tuple[str, str]],
    accumulator: MetricsAccumulator,
) -> int:
    """Issue one request and record its outcome.

    Returns the status code, or 0 when no response was received. A request
    that cannot be built (bad method, header or URL) counts as a failure too.
    """
    start = time.perf_counter()
    try:
        request = client.build_request(
            target.method,
            target.url,
            content=target.body or None,
            headers=headers,
            timeout=target.timeout_sec,
        )
        # Non-streaming send: the body is read and the connection released.
        resp = await client.send(request)
    except httpx.TimeoutException as exc:
        err, error = ErrorType.TIMEOUT, exc
    except httpx.ConnectError as exc:
        err, error = ErrorType.CONNECT, exc
    except httpx.ReadError as exc:
        err, error = ErrorType.READ, exc
    except (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError) as exc:
        err, error = ErrorType.INVALID_REQUEST, exc
    except (httpx.HTTPError, httpx.StreamError) as exc:
        err, error = ErrorType.OTHER, exc
    except (TypeError, ValueError) as exc:
        # Non-ASCII methods and header names fail while the request is encoded.
        err, error = ErrorType.INVALID_REQUEST, exc
    else:
        accumulator.record_response(time.perf_counter() - start, resp.status_code)
        return resp.status_code
    accumulator.record_transport_error(time.perf_counter() - start, _describe(err, error))
    return 0
