"""In-memory event bus implementation.

Implements EventBusProtocol with a dictionary-based registry. One bus per
AuthRuntime carries the process-wide signals (forced logout, rate limit,
session changes, connection state).

Architecture:
    - Dictionary-based handler registry (event_type -> list of handlers)
    - Fail-open behavior (one handler failure doesn't break others)
    - Concurrent handler execution (asyncio.gather)
    - unsubscribe() so destroy() can remove every registration

Usage:
    >>> bus = InMemoryEventBus(logger=logger)
    >>> bus.subscribe(ForcedLogoutReceived, session_manager.handle_forced_logout)
    >>> await bus.publish(ForcedLogoutReceived(reason="revoked", message=""))
"""

import asyncio
from collections import defaultdict

from authsync.domain.events.base_event import DomainEvent
from authsync.domain.protocols.event_bus_protocol import EventHandler
from authsync.domain.protocols.logger_protocol import LoggerProtocol


class InMemoryEventBus:
    """In-memory event bus with fail-open behavior.

    Thread Safety:
        NOT thread-safe (single event loop design).

    Attributes:
        _handlers: Event class -> list of async handlers.
        _logger: Logger for handler failures and event publishing.
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        """Initialize event bus with logger.

        Args:
            logger: Logger for handler failures (warning level) and event
                publishing (debug level).
        """
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)
        self._logger = logger

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register event handler for specific event type.

        Args:
            event_type: Class of event to handle. Only exact type matches.
            handler: Async function to call when event is published.

        Notes:
            - No duplicate detection (same handler can be registered twice)
        """
        self._handlers[event_type].append(handler)

    def unsubscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> bool:
        """Remove one registration of handler for event_type.

        Returns:
            True if a registration was removed.
        """
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event_type]
        return True

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        """Number of handlers registered for event_type."""
        return len(self._handlers.get(event_type, []))

    def clear(self) -> None:
        """Remove every registration."""
        self._handlers.clear()

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all registered handlers.

        Executes all handlers concurrently with fail-open behavior. Handler
        exceptions are logged but NOT propagated to the publisher. If no
        handlers are registered, this is a no-op.

        Args:
            event: Domain event to publish.
        """
        event_type = type(event)
        # Snapshot: handlers may unsubscribe while running
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            return

        self._logger.debug(
            "event_publishing",
            event_type=event_type.__name__,
            event_id=str(event.event_id),
            handler_count=len(handlers),
        )

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )

        for idx, result in enumerate(results):
            if isinstance(result, Exception):
                handler_name = getattr(handlers[idx], "__name__", repr(handlers[idx]))
                self._logger.warning(
                    "event_handler_failed",
                    event_type=event_type.__name__,
                    event_id=str(event.event_id),
                    handler_name=handler_name,
                    error_type=type(result).__name__,
                    error_message=str(result),
                    exc_info=result,
                )
