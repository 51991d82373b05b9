from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

logger = logging.getLogger(__name__)

REASON_COMPLETE = "complete"
REASON_DEADLINE = "deadline"
REASON_INTERRUPT = "interrupt"

_LOOP_HANDLER = object()


class CancelToken:
    """Cooperative stop signal shared by the dispatcher, workers and reporter.

    The first call to :meth:`cancel` wins and fixes :attr:`reason`; later calls
    are no-ops. Must be created inside a running event loop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        logger.debug("cancellation requested: %s", reason)
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


def cancel_after(token: CancelToken, seconds: float) -> asyncio.TimerHandle:
    loop = asyncio.get_running_loop()
    return loop.call_later(seconds, token.cancel, REASON_DEADLINE)


def install_signal_handlers(token: CancelToken) -> dict[signal.Signals, Any]:
    """Route SIGINT/SIGTERM into ``token``.

    Returns what :func:`remove_signal_handlers` needs to undo the change: the
    loop-registered signals and, where the loop has no signal support, the
    handlers that were replaced.
    """
    loop = asyncio.get_running_loop()
    installed: dict[signal.Signals, Any] = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel, REASON_INTERRUPT)
        except (NotImplementedError, RuntimeError, ValueError):
            # No loop signal support (Windows, non-main thread).
            try:
                installed[sig] = signal.signal(
                    sig,
                    lambda *_: loop.call_soon_threadsafe(token.cancel, REASON_INTERRUPT),
                )
            except ValueError:
                logger.warning("cannot install handler for %s", sig.name)
            continue
        installed[sig] = _LOOP_HANDLER
    return installed


def remove_signal_handlers(installed: dict[signal.Signals, Any]) -> None:
    loop = asyncio.get_running_loop()
    for sig, previous in installed.items():
        if previous is _LOOP_HANDLER:
            loop.remove_signal_handler(sig)
        else:
            signal.signal(sig, previous)
