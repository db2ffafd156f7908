"""Logging event handler for process-wide signals.

Structured logging for every DomainEvent the runtime publishes.

Log Levels:
    - INFO: session installed/cleared, connection state changes
    - WARNING: forced logout, rate limit exceeded

Usage:
    >>> handler = LoggingEventHandler(logger=get_logger())
    >>> handler.register(event_bus)
    >>> ...
    >>> handler.unregister(event_bus)
"""

from authsync.domain.events.connection_events import (
    ConnectionStateChanged,
    ForcedLogoutReceived,
    RateLimitExceeded,
)
from authsync.domain.events.session_events import SessionCleared, SessionInstalled
from authsync.domain.protocols.event_bus_protocol import EventBusProtocol
from authsync.domain.protocols.logger_protocol import LoggerProtocol


class LoggingEventHandler:
    """Event handler for structured logging of signals.

    Attributes:
        _logger: Logger protocol implementation (from container).
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._logger = logger

    def register(self, event_bus: EventBusProtocol) -> None:
        """Subscribe every handler method to its event type."""
        for event_type, handler in self._subscriptions():
            event_bus.subscribe(event_type, handler)

    def unregister(self, event_bus: EventBusProtocol) -> None:
        """Remove every subscription made by register()."""
        for event_type, handler in self._subscriptions():
            event_bus.unsubscribe(event_type, handler)

    def _subscriptions(self):
        return (
            (SessionInstalled, self.handle_session_installed),
            (SessionCleared, self.handle_session_cleared),
            (ForcedLogoutReceived, self.handle_forced_logout_received),
            (RateLimitExceeded, self.handle_rate_limit_exceeded),
            (ConnectionStateChanged, self.handle_connection_state_changed),
        )

    async def handle_session_installed(self, event: SessionInstalled) -> None:
        self._logger.info(
            "session_installed",
            event_id=str(event.event_id),
            occurred_at=event.occurred_at.isoformat(),
            user_id=event.user_id,
            source=event.source,
        )

    async def handle_session_cleared(self, event: SessionCleared) -> None:
        self._logger.info(
            "session_cleared",
            event_id=str(event.event_id),
            occurred_at=event.occurred_at.isoformat(),
            user_id=event.user_id,
            reason=event.reason,
        )

    async def handle_forced_logout_received(self, event: ForcedLogoutReceived) -> None:
        self._logger.warning(
            "forced_logout_received",
            event_id=str(event.event_id),
            occurred_at=event.occurred_at.isoformat(),
            reason=event.reason,
            server_message=event.message,
            server_timestamp=event.server_timestamp,
            source=event.source,
        )

    async def handle_rate_limit_exceeded(self, event: RateLimitExceeded) -> None:
        self._logger.warning(
            "rate_limit_exceeded",
            event_id=str(event.event_id),
            occurred_at=event.occurred_at.isoformat(),
            limit_type=event.limit_type,
            server_message=event.message,
        )

    async def handle_connection_state_changed(
        self, event: ConnectionStateChanged
    ) -> None:
        self._logger.info(
            "connection_state_changed",
            event_id=str(event.event_id),
            previous=event.previous.value,
            current=event.current.value,
            circuit_state=event.circuit_state.value,
            reason=event.reason,
        )
