"""AuthRuntime factory (composition root).

Builds the whole service graph from settings. Ports that the host normally
provides (navigator, transports) can be injected; tests pass in-memory
fakes and an httpx.MockTransport here.
"""

from typing import TYPE_CHECKING

import httpx

from authsync.core.config import Settings, get_settings
from authsync.core.container.infrastructure import get_logger

if TYPE_CHECKING:
    from authsync.application.runtime import AuthRuntime
    from authsync.domain.protocols.duplex_transport_protocol import TransportFactory
    from authsync.domain.protocols.logger_protocol import LoggerProtocol
    from authsync.domain.protocols.navigator_protocol import NavigatorProtocol
    from authsync.domain.protocols.preference_store_protocol import (
        PreferenceStoreProtocol,
    )


def create_auth_runtime(
    settings: Settings | None = None,
    *,
    logger: "LoggerProtocol | None" = None,
    navigator: "NavigatorProtocol | None" = None,
    preference_store: "PreferenceStoreProtocol | None" = None,
    transport_factory: "TransportFactory | None" = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> "AuthRuntime":
    """Create a fully wired, not yet initialized AuthRuntime.

    Args:
        settings: Configuration (default get_settings()).
        logger: Root logger (default get_logger()).
        navigator: Host router (default InMemoryNavigator).
        preference_store: Durable preference storage (default JSON file at
            settings.preferences_file).
        transport_factory: Realtime transport factory (default websockets
            connection to settings.realtime_url).
        http_transport: httpx transport override for the REST client.

    Returns:
        AuthRuntime; call initialize() inside the event loop.

    Usage:
        runtime = create_auth_runtime()
        runtime.initialize()
        await runtime.session_manager.check_status()
    """
    from authsync.application.runtime import AuthRuntime
    from authsync.application.services.loyalty_feed import LoyaltyAccountFeed
    from authsync.application.services.room_subscriptions import RoomSubscriptionClient
    from authsync.application.services.session_manager import SessionManager
    from authsync.infrastructure.cache.response_cache import ResponseCache
    from authsync.infrastructure.events.handlers.logging_event_handler import (
        LoggingEventHandler,
    )
    from authsync.infrastructure.events.in_memory_event_bus import InMemoryEventBus
    from authsync.infrastructure.http.api_client import AuthApiClient
    from authsync.infrastructure.navigation.in_memory_navigator import InMemoryNavigator
    from authsync.infrastructure.realtime.connection_manager import ConnectionManager
    from authsync.infrastructure.realtime.websocket_transport import WebSocketTransport
    from authsync.infrastructure.storage.preference_store import JsonPreferenceStore

    settings = settings or get_settings()
    logger = logger or get_logger()

    event_bus = InMemoryEventBus(logger=logger)
    api_client = AuthApiClient(
        base_url=settings.api_base_url,
        logger=logger,
        timeout=settings.http_timeout_seconds,
        transport=http_transport,
    )
    cache = ResponseCache(ttl_seconds=settings.response_cache_ttl_seconds)

    def websocket_factory() -> WebSocketTransport:
        return WebSocketTransport(
            settings.realtime_url,
            logger=logger,
            open_timeout=settings.http_timeout_seconds,
        )

    connection = ConnectionManager(
        transport_factory=transport_factory or websocket_factory,
        event_bus=event_bus,
        logger=logger,
        settings=settings,
        cookie_provider=api_client.cookie_header,
    )
    rooms = RoomSubscriptionClient(connection=connection, logger=logger, settings=settings)
    session_manager = SessionManager(
        api_client=api_client,
        cache=cache,
        event_bus=event_bus,
        logger=logger,
        settings=settings,
        navigator=navigator or InMemoryNavigator(logger=logger),
        preference_store=preference_store
        or JsonPreferenceStore(settings.preferences_file, logger=logger),
        rooms=rooms,
    )

    return AuthRuntime(
        settings=settings,
        logger=logger,
        event_bus=event_bus,
        api_client=api_client,
        cache=cache,
        connection=connection,
        rooms=rooms,
        session_manager=session_manager,
        loyalty=LoyaltyAccountFeed(session_manager=session_manager, logger=logger),
        event_logger=LoggingEventHandler(logger=logger),
    )
