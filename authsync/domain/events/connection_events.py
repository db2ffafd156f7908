"""Connection-level signals re-emitted process-wide.

The Connection Manager publishes these on the event bus so that components
which never touch the connection (the Session Manager, logging) can react.

Events:
    - ForcedLogoutReceived: Server revoked this client's session
    - RateLimitExceeded: Server reported throttling on the connection
    - ConnectionStateChanged: Connection or breaker state moved
"""

from dataclasses import dataclass

from authsync.domain.enums import CircuitState, ConnectionState
from authsync.domain.events.base_event import DomainEvent


@dataclass(frozen=True, kw_only=True, slots=True)
class ForcedLogoutReceived(DomainEvent):
    """Server pushed a forced logout.

    Attributes:
        reason: Machine-readable reason (e.g. "session_revoked").
        message: Human-readable explanation from the server.
        server_timestamp: Timestamp string supplied by the server, if any.
        source: "realtime" for live events, "offline" for queued messages.
    """

    reason: str
    message: str
    server_timestamp: str | None = None
    source: str = "realtime"


@dataclass(frozen=True, kw_only=True, slots=True)
class RateLimitExceeded(DomainEvent):
    """Server reported that a rate limit was exceeded.

    Attributes:
        limit_type: Which limit tripped (as sent by the server).
        message: Human-readable explanation.
    """

    limit_type: str
    message: str


@dataclass(frozen=True, kw_only=True, slots=True)
class ConnectionStateChanged(DomainEvent):
    """Connection lifecycle transition.

    Attributes:
        previous: State before the transition.
        current: State after the transition.
        circuit_state: Breaker state at the time of the transition.
        reason: Optional cause (heartbeat_timeout, connection_closed, ...).
    """

    previous: ConnectionState
    current: ConnectionState
    circuit_state: CircuitState
    reason: str | None = None
