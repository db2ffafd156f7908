"""Lifecycle state of the duplex connection."""

from enum import StrEnum


class ConnectionState(StrEnum):
    """Connection lifecycle.

    Transitions:
        DISCONNECTED -> CONNECTING on a connect request
        CONNECTING -> CONNECTED on handshake acknowledgment
        CONNECTING -> DISCONNECTED on a failed attempt
        CONNECTED -> DISCONNECTED on any drop, heartbeat timeout or disconnect()
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
