"""Room membership: a subscription to a scoped server topic."""

from dataclasses import dataclass
from enum import StrEnum

from authsync.domain.enums import RoomPurpose


class MembershipStatus(StrEnum):
    """Membership progress.

    QUEUED: requested while the connection was not ready.
    SENT: join message emitted, no server confirmation yet.
    CONFIRMED: server acknowledged the join.
    """

    QUEUED = "queued"
    SENT = "sent"
    CONFIRMED = "confirmed"


@dataclass(slots=True, kw_only=True)
class RoomMembership:
    """One joined (or pending) room.

    Attributes:
        purpose: Why the room exists.
        subject: Normalized email, or user id for the verification room.
        status: Membership progress.
        generation: Connection generation the join was sent on.
    """

    purpose: RoomPurpose
    subject: str
    status: MembershipStatus = MembershipStatus.QUEUED
    generation: int | None = None

    @property
    def topic(self) -> str:
        """Room name, e.g. "pending-verification:user@example.com"."""
        return f"{self.purpose.value}:{self.subject}"

    @property
    def was_sent(self) -> bool:
        return self.status in (MembershipStatus.SENT, MembershipStatus.CONFIRMED)
