"""Duplex transport protocol (port) for the realtime connection.

The Connection Manager owns policy (memoized connect, backoff, breaker,
heartbeat). Transports only move envelopes. One transport instance is one
physical connection; a reconnect builds a fresh instance from the factory.

Implementations:
    - WebSocketTransport: authsync/infrastructure/realtime/websocket_transport.py
"""

from collections.abc import Callable
from typing import Any, Protocol


class TransportClosedError(Exception):
    """The physical connection is gone.

    Raised by receive() and send() once the peer closed the connection or the
    transport was closed locally.
    """

    def __init__(self, reason: str = "connection_closed") -> None:
        super().__init__(reason)
        self.reason = reason


class TransportOpenError(Exception):
    """The handshake failed (refused, timed out, rejected by the server)."""


class DuplexTransportProtocol(Protocol):
    """Protocol for a single bidirectional message connection."""

    async def open(self, *, headers: dict[str, str]) -> None:
        """Perform the handshake.

        Args:
            headers: Extra handshake headers (Authorization, Cookie).

        Raises:
            TransportOpenError: If the handshake fails for any reason.
        """
        ...

    async def send(self, event: str, data: dict[str, Any]) -> None:
        """Send one envelope.

        Raises:
            TransportClosedError: If the connection is gone.
        """
        ...

    async def receive(self) -> tuple[str, Any]:
        """Wait for the next envelope.

        Returns:
            (event name, decoded data).

        Raises:
            TransportClosedError: If the connection is gone.
        """
        ...

    async def close(self) -> None:
        """Close the connection. Idempotent."""
        ...


TransportFactory = Callable[[], DuplexTransportProtocol]
"""Builds a fresh, unopened transport for each connection attempt."""
