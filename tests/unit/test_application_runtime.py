"""Unit tests for AuthRuntime construction and lifecycle."""

import pytest

from authsync.core.container import create_auth_runtime
from authsync.domain.events.connection_events import ForcedLogoutReceived
from authsync.domain.events.realtime_messages import RealtimeEventType
from authsync.infrastructure.realtime.connection_manager import ConnectionManager
from tests.conftest import FakeTransportFactory


@pytest.mark.unit
class TestAuthRuntime:
    """create_auth_runtime() wiring and initialize/destroy symmetry."""

    @pytest.mark.asyncio
    async def test_components_share_one_graph(self, test_settings, mock_logger, fake_api):
        runtime = create_auth_runtime(
            test_settings,
            logger=mock_logger,
            transport_factory=FakeTransportFactory(),
            http_transport=fake_api.transport,
        )

        assert isinstance(runtime.connection, ConnectionManager)
        assert runtime.settings is test_settings
        assert runtime.initialized is False
        await runtime.destroy()

    @pytest.mark.asyncio
    async def test_initialize_registers_once_and_destroy_removes_all(
        self, test_settings, mock_logger, fake_api
    ):
        runtime = create_auth_runtime(
            test_settings,
            logger=mock_logger,
            transport_factory=FakeTransportFactory(),
            http_transport=fake_api.transport,
        )

        runtime.initialize()
        connect_handlers = runtime.connection.listener_count(RealtimeEventType.CONNECT)
        forced_handlers = runtime.event_bus.handler_count(ForcedLogoutReceived)
        runtime.initialize()

        assert runtime.initialized is True
        assert connect_handlers == 1
        assert runtime.connection.listener_count(RealtimeEventType.CONNECT) == 1
        assert runtime.event_bus.handler_count(ForcedLogoutReceived) == forced_handlers >= 1

        await runtime.destroy()

        assert runtime.initialized is False
        assert runtime.connection.listener_count() == 0
        assert runtime.event_bus.handler_count(ForcedLogoutReceived) == 0

    @pytest.mark.asyncio
    async def test_destroy_closes_realtime_connection(self, test_settings, mock_logger, fake_api):
        realtime = FakeTransportFactory()
        runtime = create_auth_runtime(
            test_settings,
            logger=mock_logger,
            transport_factory=realtime,
            http_transport=fake_api.transport,
        )
        runtime.initialize()
        await runtime.connection.connect()

        await runtime.destroy()

        assert realtime.latest.closed is True
        assert runtime.connection.is_connected is False
