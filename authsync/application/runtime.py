"""AuthRuntime: the explicitly constructed service graph.

One runtime per client process (or per test). It owns the single connection,
the cache, the session and the coordinator registry, and is the only place
that starts or stops them.

Lifecycle:
    runtime = create_auth_runtime()
    runtime.initialize()            # idempotent, needs a running event loop
    await runtime.session_manager.check_status()
    ...
    await runtime.destroy()         # removes every listener, closes sockets
"""

from dataclasses import dataclass

from authsync.application.services.loyalty_feed import LoyaltyAccountFeed
from authsync.application.services.room_subscriptions import RoomSubscriptionClient
from authsync.application.services.session_manager import SessionManager
from authsync.core.config import Settings
from authsync.domain.protocols.logger_protocol import LoggerProtocol
from authsync.infrastructure.cache.response_cache import ResponseCache
from authsync.infrastructure.events.handlers.logging_event_handler import (
    LoggingEventHandler,
)
from authsync.infrastructure.events.in_memory_event_bus import InMemoryEventBus
from authsync.infrastructure.http.api_client import AuthApiClient
from authsync.infrastructure.realtime.connection_manager import ConnectionManager


@dataclass(slots=True, kw_only=True)
class AuthRuntime:
    """Every long-lived component, wired together.

    Attributes:
        settings: Configuration the graph was built from.
        logger: Root structured logger.
        event_bus: Process-wide signal bus.
        api_client: Cookie-carrying REST client.
        cache: Response cache.
        connection: Realtime Connection Manager.
        rooms: Room subscription client.
        session_manager: Owner of the shared Session.
        loyalty: Coordinated loyalty account feed.
        event_logger: Logs every signal published on the bus.
    """

    settings: Settings
    logger: LoggerProtocol
    event_bus: InMemoryEventBus
    api_client: AuthApiClient
    cache: ResponseCache
    connection: ConnectionManager
    rooms: RoomSubscriptionClient
    session_manager: SessionManager
    loyalty: LoyaltyAccountFeed
    event_logger: LoggingEventHandler
    initialized: bool = False

    def initialize(self) -> None:
        """Register every handler and listener. Idempotent."""
        if self.initialized:
            return
        self.event_logger.register(self.event_bus)
        self.connection.initialize()
        self.rooms.initialize()
        self.session_manager.initialize()
        self.loyalty.initialize()
        self.initialized = True
        self.logger.info(
            "auth_runtime_initialized", environment=self.settings.environment.value
        )

    async def destroy(self) -> None:
        """Tear down in reverse order and close the HTTP client."""
        try:
            await self.loyalty.destroy()
            await self.session_manager.destroy()
            await self.rooms.destroy()
            await self.connection.destroy()
            self.event_logger.unregister(self.event_bus)
        finally:
            self.initialized = False
            await self.api_client.aclose()
            self.logger.info("auth_runtime_destroyed")
