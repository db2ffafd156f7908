"""Pytest configuration and shared fakes.

This configuration provides:
1. Marker registration and automatic asyncio marking
2. Test settings with short timers (no real waiting in the suite)
3. Fakes for the three I/O seams: REST (httpx.MockTransport), the duplex
   transport, and the monotonic clock
4. A fully wired SessionManager over those fakes
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio

from authsync.application.services.session_manager import SessionManager
from authsync.core.config import Settings
from authsync.core.enums import Environment
from authsync.domain.protocols.duplex_transport_protocol import (
    TransportClosedError,
    TransportOpenError,
)
from authsync.infrastructure.cache.response_cache import ResponseCache
from authsync.infrastructure.events.in_memory_event_bus import InMemoryEventBus
from authsync.infrastructure.http.api_client import AuthApiClient
from authsync.infrastructure.navigation.in_memory_navigator import InMemoryNavigator
from authsync.infrastructure.storage.preference_store import JsonPreferenceStore

API_BASE_URL = "http://api.test/v1"
API_PREFIX = "/v1"


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests wiring real components over fakes"
    )
    config.addinivalue_line("markers", "asyncio: Async test that requires event loop")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions.

    This ensures all async tests are properly marked even if
    the developer forgets to add @pytest.mark.asyncio.
    """
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)


# =============================================================================
# Test doubles
# =============================================================================


def verified_user(**overrides: Any) -> dict[str, Any]:
    """Server user object for a verified customer."""
    user: dict[str, Any] = {
        "id": "user-1",
        "email": "ann@example.com",
        "name": "Ann",
        "isVerified": True,
        "roles": ["CUSTOMER"],
        "twoFactorEnabled": False,
    }
    user.update(overrides)
    return user


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class FakeApi:
    """Routes httpx requests to canned handlers and records every call.

    Usage:
        api = FakeApi()
        api.respond("GET", "/users/me", 200, {"authenticated": True, ...})
        api.route("POST", "/auth/refresh", slow_handler)
        client = AuthApiClient(base_url=API_BASE_URL, logger=logger,
                               transport=api.transport)
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Handler] = {}
        self.calls: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def route(self, method: str, path: str, handler: Handler) -> None:
        self._routes[(method.upper(), path)] = handler

    def respond(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        body: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Always answer (method, path) with the same response."""

        def handler(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status_code, headers=headers)
            return httpx.Response(status_code, json=body, headers=headers)

        self.route(method, path, handler)

    def sequence(self, method: str, path: str, *responses: httpx.Response) -> None:
        """Answer with each response in turn, repeating the last one."""
        queue = list(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            return queue.pop(0) if len(queue) > 1 else queue[0]

        self.route(method, path, handler)

    def count(self, method: str, path: str) -> int:
        return sum(
            1
            for request in self.calls
            if request.method == method.upper() and _relative(request) == path
        )

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self._routes.get((request.method, _relative(request)))
        if handler is None:
            return httpx.Response(404, json={"message": "Not Found"})
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response


def _relative(request: httpx.Request) -> str:
    path = request.url.path
    return path[len(API_PREFIX) :] if path.startswith(API_PREFIX) else path


class FakeTransport:
    """In-memory duplex transport.

    Frames pushed with deliver() are returned by receive(); drop() makes the
    peer disappear.
    """

    def __init__(self, *, fail_open: bool = False, silent: bool = False) -> None:
        self.fail_open = fail_open
        self.silent = silent
        self.headers: dict[str, str] | None = None
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.closed = False
        self._inbox: asyncio.Queue[tuple[str, Any] | None] = asyncio.Queue()

    async def open(self, *, headers: dict[str, str]) -> None:
        self.headers = headers
        await asyncio.sleep(0)
        if self.fail_open:
            raise TransportOpenError("connection refused")

    async def send(self, event: str, data: dict[str, Any]) -> None:
        if self.closed:
            raise TransportClosedError("connection_closed")
        self.sent.append((event, data))
        if event == "ping" and not self.silent:
            self.deliver("pong", {"timestamp": data.get("timestamp")})

    async def receive(self) -> tuple[str, Any]:
        frame = await self._inbox.get()
        if frame is None or self.closed:
            raise TransportClosedError("connection_closed")
        return frame

    async def close(self) -> None:
        self.closed = True

    def deliver(self, event: str, data: Any = None) -> None:
        self._inbox.put_nowait((event, data))

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    def sent_events(self, event: str) -> list[dict[str, Any]]:
        return [data for name, data in self.sent if name == event]


class FakeTransportFactory:
    """Builds FakeTransports and records every connection attempt.

    Attributes:
        fail: When True every attempt is refused.
        silent: When True transports never answer pings.
    """

    def __init__(self, *, fail: bool = False, silent: bool = False) -> None:
        self.fail = fail
        self.silent = silent
        self.transports: list[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = FakeTransport(fail_open=self.fail, silent=self.silent)
        self.transports.append(transport)
        return transport

    @property
    def attempts(self) -> int:
        return len(self.transports)

    @property
    def latest(self) -> FakeTransport:
        return self.transports[-1]

    def sent_events(self, event: str) -> list[dict[str, Any]]:
        return [data for t in self.transports for data in t.sent_events(event)]


async def wait_for_condition(
    predicate: Callable[[], bool], *, timeout: float = 1.0, interval: float = 0.005
) -> None:
    """Yield to the loop until predicate() holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(interval)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_logger():
    """LoggerProtocol double; bind() returns the same mock."""
    logger = MagicMock()
    logger.bind.return_value = logger
    logger.with_context.return_value = logger
    return logger


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings with every timer shrunk for the suite."""
    return Settings(
        environment=Environment.TESTING,
        api_base_url=API_BASE_URL,
        realtime_url="ws://api.test/ws",
        response_cache_ttl_seconds=30.0,
        session_refresh_interval_seconds=3600.0,
        reconnect_base_delay_seconds=0.01,
        reconnect_max_attempts=5,
        reconnect_reset_seconds=0.5,
        circuit_failure_threshold=5,
        circuit_cooldown_seconds=0.2,
        heartbeat_interval_seconds=3600.0,
        heartbeat_timeout_seconds=0.05,
        room_join_timeout_seconds=1.0,
        verification_redirect_delay_seconds=0.01,
        offline_messages_enabled=False,
        preferences_file=tmp_path / "preferences.json",
    )


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def event_bus(mock_logger) -> InMemoryEventBus:
    return InMemoryEventBus(logger=mock_logger)


@pytest.fixture
def navigator(mock_logger) -> InMemoryNavigator:
    return InMemoryNavigator(logger=mock_logger, initial_path="/")


@pytest.fixture
def preference_store(test_settings, mock_logger) -> JsonPreferenceStore:
    return JsonPreferenceStore(test_settings.preferences_file, logger=mock_logger)


@pytest.fixture
def response_cache() -> ResponseCache:
    return ResponseCache(ttl_seconds=30.0)


@pytest_asyncio.fixture
async def api_client(fake_api, mock_logger):
    client = AuthApiClient(
        base_url=API_BASE_URL, logger=mock_logger, transport=fake_api.transport
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def session_manager(
    api_client,
    response_cache,
    event_bus,
    mock_logger,
    test_settings,
    navigator,
    preference_store,
):
    """SessionManager over FakeApi, initialized and destroyed per test."""
    manager = SessionManager(
        api_client=api_client,
        cache=response_cache,
        event_bus=event_bus,
        logger=mock_logger,
        settings=test_settings,
        navigator=navigator,
        preference_store=preference_store,
    )
    manager.initialize()
    yield manager
    await manager.destroy()
