"""Realtime connection error type.

Returned by ConnectionManager.connect() when no duplex connection could be
established. Never surfaced to the UI directly; consumers treat it as a
degraded-connectivity signal.
"""

from dataclasses import dataclass

from authsync.core.errors import DomainError
from authsync.domain.enums import CircuitState


@dataclass(frozen=True, slots=True, kw_only=True)
class RealtimeConnectionError(DomainError):
    """Duplex connection failure.

    Attributes:
        circuit_state: Breaker state after the failure was recorded.
        attempt: Reconnect attempt number that failed (0 for the first try).
    """

    circuit_state: CircuitState = CircuitState.CLOSED
    attempt: int = 0
