"""
Progress delivery.

Transfers report progress from wherever the transport happens to run. The
caller's handler is always invoked on the foreground context, which for
apikit is the event loop the client was used from.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

from apikit.normalizer import ProgressCallbackFailure, TransferDirection

ProgressHandler = Callable[[float], None]


class ForegroundDispatcher(Protocol):
    """Schedules a callable on the foreground execution context."""

    def dispatch(self, fn: Callable[..., Any], *args: Any) -> None: ...


class LoopDispatcher:
    """Dispatch onto an asyncio event loop; safe to call from any thread."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def dispatch(self, fn: Callable[..., Any], *args: Any) -> None:
        self._loop.call_soon_threadsafe(fn, *args)


class ProgressReporter:
    """
    Forward transfer fractions to a caller's handler.

    Fractions are clamped to ``[0, 1]`` and only increasing values are
    forwarded. Nothing is forwarded once the request stops being active. If
    the handler raises, the exception is kept and re-raised into the
    transfer by ``raise_if_failed``.
    """

    def __init__(
        self,
        handler: ProgressHandler,
        direction: TransferDirection,
        dispatcher: ForegroundDispatcher,
        is_active: Callable[[], bool],
    ) -> None:
        self._handler = handler
        self._direction = direction
        self._dispatcher = dispatcher
        self._is_active = is_active
        self._last = -1.0
        self._error: BaseException | None = None

    @property
    def direction(self) -> TransferDirection:
        return self._direction

    @property
    def last_fraction(self) -> float | None:
        return self._last if self._last >= 0 else None

    def report(self, fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        if fraction <= self._last:
            return
        self._last = fraction
        self._dispatcher.dispatch(self._deliver, fraction)

    def _deliver(self, fraction: float) -> None:
        if self._error is not None or not self._is_active():
            return
        try:
            self._handler(fraction)
        except Exception as e:
            self._error = e

    def raise_if_failed(self) -> None:
        if self._error is not None:
            raise ProgressCallbackFailure(self._direction, self._error)

    async def flush(self) -> None:
        """Let queued deliveries run, then surface a handler failure."""
        await asyncio.sleep(0)
        self.raise_if_failed()


__all__ = [
    "ForegroundDispatcher",
    "LoopDispatcher",
    "ProgressHandler",
    "ProgressReporter",
]
