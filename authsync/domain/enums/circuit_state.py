"""Circuit breaker states for the reconnection policy."""

from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state.

    CLOSED: attempts flow normally, failures are counted.
    OPEN: attempts are refused until the cool-down elapses.
    HALF_OPEN: exactly one probe attempt decides CLOSED or OPEN.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"
