"""
Network reachability.

The client consults a ``ReachabilityGate`` before every request. The default
implementation, ``ReachabilityMonitor``, keeps a flag updated from a
connectivity source on a background thread; reading the flag never blocks.

Lifecycle:
    Create and ``start()`` the monitor once at process start, pass it to the
    ``APIClient``, and ``stop()`` it at process exit.

Example:
    >>> with ReachabilityMonitor() as monitor:
    ...     client = APIClient(reachability=monitor)
"""

from __future__ import annotations

import socket
import threading
from enum import Enum
from typing import Callable, Protocol, runtime_checkable

from apikit.logging import get_logger

logger = get_logger(__name__)


class ReachabilityStatus(str, Enum):
    UNKNOWN = "unknown"
    NOT_REACHABLE = "not_reachable"
    ETHERNET_OR_WIFI = "ethernet_or_wifi"
    CELLULAR = "cellular"

    @property
    def is_reachable(self) -> bool:
        return self in (ReachabilityStatus.ETHERNET_OR_WIFI, ReachabilityStatus.CELLULAR)


@runtime_checkable
class ReachabilityGate(Protocol):
    """Reports the last known connectivity state without blocking."""

    @property
    def is_reachable(self) -> bool: ...


class ConnectivitySource(Protocol):
    """Produces the current connectivity status when polled."""

    def poll(self) -> ReachabilityStatus: ...


class SocketProbeSource:
    """Treat a successful TCP connect to a well-known host as connectivity."""

    def __init__(self, host: str, port: int, timeout: float = 3.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    def poll(self) -> ReachabilityStatus:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return ReachabilityStatus.ETHERNET_OR_WIFI
        except OSError:
            return ReachabilityStatus.NOT_REACHABLE


class StaticReachability:
    """Gate with a fixed answer, for tests and always-online environments."""

    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable

    @property
    def is_reachable(self) -> bool:
        return self.reachable


StatusListener = Callable[[ReachabilityStatus], None]


class ReachabilityMonitor:
    """
    Background connectivity monitor.

    The flag starts as ``False`` and only changes on a definitive status:
    ``UNKNOWN`` keeps the previous value. ``update`` is the single writer;
    the polling thread calls it, and push-based sources may call it directly.
    """

    def __init__(
        self,
        source: ConnectivitySource | None = None,
        interval: float | None = None,
    ) -> None:
        from apikit.config import get_settings

        settings = get_settings()
        self._source = source or SocketProbeSource(
            settings.reachability_host,
            settings.reachability_port,
            settings.reachability_probe_timeout,
        )
        self._interval = interval if interval is not None else settings.reachability_interval
        self._reachable = False
        self._status = ReachabilityStatus.UNKNOWN
        self._listeners: list[StatusListener] = []
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_reachable(self) -> bool:
        return self._reachable

    @property
    def status(self) -> ReachabilityStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_listener(self, listener: StatusListener) -> None:
        """Call ``listener`` (on the monitor thread) for every status change."""
        self._listeners.append(listener)

    def update(self, status: ReachabilityStatus) -> None:
        """Apply a status reported by the connectivity source."""
        if status is ReachabilityStatus.UNKNOWN:
            logger.debug("Network status unknown")
            return
        if status is self._status:
            return
        self._status = status
        self._reachable = status.is_reachable
        if self._reachable:
            logger.info(f"Network connected ({status.value})")
        else:
            logger.info("Network disconnected")
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.warning(f"Reachability listener failed: {e}")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="apikit-reachability", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                status = self._source.poll()
            except Exception as e:
                logger.warning(f"Connectivity probe failed: {e}")
                status = ReachabilityStatus.UNKNOWN
            self.update(status)
            if self._stop.wait(self._interval):
                break

    def __enter__(self) -> ReachabilityMonitor:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"<ReachabilityMonitor status={self._status.value} reachable={self._reachable}>"


__all__ = [
    "ConnectivitySource",
    "ReachabilityGate",
    "ReachabilityMonitor",
    "ReachabilityStatus",
    "SocketProbeSource",
    "StaticReachability",
    "StatusListener",
]
