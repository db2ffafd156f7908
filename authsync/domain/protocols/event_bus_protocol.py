"""Event bus protocol (port) for process-wide signals.

Components publish DomainEvents here instead of calling each other, so a
forced logout seen by the Connection Manager reaches the Session Manager
without either one importing the other.

Implementations:
    - InMemoryEventBus: authsync/infrastructure/events/in_memory_event_bus.py

Usage:
    >>> event_bus.subscribe(ForcedLogoutReceived, session_manager.handle_forced_logout)
    >>> await event_bus.publish(ForcedLogoutReceived(reason="revoked", message="..."))
    >>> event_bus.unsubscribe(ForcedLogoutReceived, session_manager.handle_forced_logout)
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from authsync.domain.events.base_event import DomainEvent

# Handlers usually accept a specific DomainEvent subclass
EventHandler = Callable[[Any], Awaitable[None]]
"""Type alias for async event handler functions.

Event handlers must:
    - Accept a single DomainEvent parameter (or specific subclass)
    - Return None (side-effects only)
    - Be async (async def)
"""


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Key Requirements:
        1. **Fail-open behavior**: One handler failure must NOT prevent other
           handlers from executing. Log errors but continue processing.
        2. **Async support**: All handlers are async.
        3. **Type-based routing**: Handlers registered for a specific event
           type only receive events of that exact type.
        4. **Removable**: Every subscription can be removed so services with
           an initialize/destroy lifecycle do not leak handlers.
    """

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Register an async handler for an event type.

        Args:
            event_type: Event class to handle (exact type match).
            handler: Async callable receiving the event.
        """
        ...

    def unsubscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> bool:
        """Remove a previously registered handler.

        Args:
            event_type: Event class the handler was registered for.
            handler: Handler to remove.

        Returns:
            True if the handler was registered and has been removed.
        """
        ...

    async def publish(self, event: DomainEvent) -> None:
        """Publish an event to every handler registered for its type.

        Never raises; handler exceptions are logged.

        Args:
            event: Event to publish.
        """
        ...
