"""Domain entities."""

from authsync.domain.entities.room_membership import MembershipStatus, RoomMembership
from authsync.domain.entities.session import Session

__all__ = ["MembershipStatus", "RoomMembership", "Session"]
