"""Domain enums.

Usage:
    from authsync.domain.enums import ConnectionState, CircuitState
"""

from authsync.domain.enums.circuit_state import CircuitState
from authsync.domain.enums.connection_state import ConnectionState
from authsync.domain.enums.room_purpose import RoomPurpose
from authsync.domain.enums.user_role import UserRole

__all__ = ["CircuitState", "ConnectionState", "RoomPurpose", "UserRole"]
