"""
Tests for network reachability monitoring.
"""

import socket
import threading
from unittest.mock import patch

import pytest

from apikit.reachability import (
    ReachabilityGate,
    ReachabilityMonitor,
    ReachabilityStatus,
    SocketProbeSource,
    StaticReachability,
)


class ScriptedSource:
    """Connectivity source returning a fixed sequence of statuses."""

    def __init__(self, *statuses):
        self.statuses = list(statuses)
        self.polled = threading.Event()

    def poll(self):
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        self.polled.set()
        return status


class TestReachabilityMonitor:
    """Tests for ReachabilityMonitor state changes."""

    def make(self, *statuses):
        return ReachabilityMonitor(ScriptedSource(*statuses), interval=0.01)

    def test_starts_unreachable(self):
        """Test flag is False until a status arrives."""
        monitor = self.make(ReachabilityStatus.UNKNOWN)
        assert monitor.is_reachable is False
        assert monitor.status is ReachabilityStatus.UNKNOWN

    def test_is_a_gate(self):
        assert isinstance(self.make(ReachabilityStatus.UNKNOWN), ReachabilityGate)
        assert isinstance(StaticReachability(), ReachabilityGate)

    @pytest.mark.parametrize(
        "status, reachable",
        [
            (ReachabilityStatus.ETHERNET_OR_WIFI, True),
            (ReachabilityStatus.CELLULAR, True),
            (ReachabilityStatus.NOT_REACHABLE, False),
        ],
    )
    def test_update(self, status, reachable):
        monitor = self.make(ReachabilityStatus.UNKNOWN)
        monitor.update(status)
        assert monitor.is_reachable is reachable
        assert monitor.status is status

    def test_unknown_keeps_previous_value(self):
        monitor = self.make(ReachabilityStatus.UNKNOWN)
        monitor.update(ReachabilityStatus.CELLULAR)
        monitor.update(ReachabilityStatus.UNKNOWN)

        assert monitor.is_reachable is True
        assert monitor.status is ReachabilityStatus.CELLULAR

    def test_listeners_notified_on_change(self):
        monitor = self.make(ReachabilityStatus.UNKNOWN)
        changes = []
        monitor.add_listener(changes.append)

        monitor.update(ReachabilityStatus.ETHERNET_OR_WIFI)
        monitor.update(ReachabilityStatus.ETHERNET_OR_WIFI)
        monitor.update(ReachabilityStatus.NOT_REACHABLE)

        assert changes == [ReachabilityStatus.ETHERNET_OR_WIFI, ReachabilityStatus.NOT_REACHABLE]

    def test_failing_listener(self, caplog):
        monitor = self.make(ReachabilityStatus.UNKNOWN)
        seen = []

        def broken(status):
            raise RuntimeError("listener broke")

        monitor.add_listener(broken)
        monitor.add_listener(seen.append)
        monitor.update(ReachabilityStatus.CELLULAR)

        assert seen == [ReachabilityStatus.CELLULAR]
        assert "Reachability listener failed" in caplog.text

    def test_background_polling(self):
        source = ScriptedSource(ReachabilityStatus.ETHERNET_OR_WIFI)
        with ReachabilityMonitor(source, interval=0.01) as monitor:
            assert monitor.running
            assert source.polled.wait(1.0)
            # update runs right after poll on the same thread
            monitor.stop(timeout=1.0)
            assert monitor.is_reachable is True

        assert not monitor.running

    def test_probe_exception_is_unknown(self, caplog):
        polled = threading.Event()

        class BrokenSource:
            def poll(self):
                polled.set()
                raise OSError("no route")

        monitor = ReachabilityMonitor(BrokenSource(), interval=0.01)
        monitor.update(ReachabilityStatus.CELLULAR)
        monitor.start()
        assert polled.wait(1.0)
        monitor.stop(timeout=1.0)

        assert monitor.is_reachable is True
        assert "Connectivity probe failed" in caplog.text

    def test_start_twice(self):
        monitor = self.make(ReachabilityStatus.NOT_REACHABLE)
        monitor.start()
        thread = monitor._thread
        monitor.start()
        assert monitor._thread is thread
        monitor.stop(timeout=1.0)

    def test_defaults_from_settings(self):
        from apikit.config import configure_settings

        configure_settings(reachability_host="10.0.0.1", reachability_interval=9.0)
        monitor = ReachabilityMonitor()

        assert monitor._source.host == "10.0.0.1"
        assert monitor._interval == 9.0


class TestSocketProbeSource:
    """Tests for SocketProbeSource."""

    def test_connect_succeeds(self):
        with patch.object(socket, "create_connection") as connect:
            status = SocketProbeSource("1.1.1.1", 53, timeout=0.5).poll()

        connect.assert_called_once_with(("1.1.1.1", 53), timeout=0.5)
        assert status is ReachabilityStatus.ETHERNET_OR_WIFI

    def test_connect_fails(self):
        with patch.object(socket, "create_connection", side_effect=OSError("unreachable")):
            status = SocketProbeSource("1.1.1.1", 53).poll()

        assert status is ReachabilityStatus.NOT_REACHABLE


class TestStaticReachability:
    def test_fixed_answer(self):
        assert StaticReachability().is_reachable is True
        assert StaticReachability(False).is_reachable is False
