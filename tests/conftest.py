"""
Pytest configuration and fixtures for apikit tests.
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from apikit.client import APIClient
from apikit.config import NetworkSettings, reset_settings
from apikit.models.endpoint import Endpoint
from apikit.reachability import StaticReachability
from apikit.transport.client import TransportClient
from apikit.transport.observer import TransportObserver

BASE_URL = "https://api.example.com"


class RecordingObserver(TransportObserver):
    """Observer that records every hook call."""

    def __init__(self) -> None:
        self.sent: list[Endpoint] = []
        self.progress: list[float] = []
        self.completed: list[tuple] = []

    def will_send(self, endpoint):
        self.sent.append(endpoint)

    def did_progress(self, endpoint, fraction):
        self.progress.append(fraction)

    def did_complete(self, endpoint, response, error):
        self.completed.append((endpoint, response, error))


class CountingTransport(httpx.MockTransport):
    """MockTransport that counts dispatched requests."""

    def __init__(self, handler) -> None:
        super().__init__(handler)
        self.calls = 0
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.requests.append(request)
        return await super().handle_async_request(request)


@pytest.fixture(autouse=True)
def reset_sdk_settings():
    """Reset settings before and after each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings(tmp_path) -> NetworkSettings:
    """Settings storing downloads under a temp directory."""
    return NetworkSettings(
        downloads_dir=tmp_path / "Downloads",
        auth_token="test-token",
        download_chunk_size=1024,
        upload_chunk_size=1024,
    )


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def gate() -> StaticReachability:
    return StaticReachability(True)


@pytest.fixture
def make_client(settings, observer, gate) -> Callable[..., APIClient]:
    """Factory building an APIClient around a handler function."""

    def _make(handler, reachability=None) -> APIClient:
        transport = TransportClient(
            settings=settings,
            observer=observer,
            transport=CountingTransport(handler),
        )
        return APIClient(reachability=reachability or gate, transport=transport)

    return _make


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(base_url=BASE_URL, path="/users/1")
