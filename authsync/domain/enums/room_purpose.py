"""Purpose tags for server-side rooms."""

from enum import StrEnum


class RoomPurpose(StrEnum):
    """Room purpose.

    The value doubles as the topic prefix of the room name. Email-scoped
    rooms are keyed by the normalized address, the verification room by
    user id.
    """

    PENDING_VERIFICATION = "pending-verification"
    PASSWORD_RESET = "password-reset"
    VERIFICATION = "verification"
