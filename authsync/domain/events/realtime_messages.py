"""Realtime message kinds and typed payloads.

Every message that crosses the duplex connection has a kind in
RealtimeEventType and a frozen payload dataclass. Handlers are registered per
kind and receive the typed payload, never the raw dict.

Architecture:
    - RealtimeEventType: closed set of wire names (Single Source of Truth)
    - MessageDirection: inbound, outbound or local lifecycle
    - Outbound payloads implement to_wire()
    - parse_inbound(): raw (name, data) -> (kind, payload), None if unknown

Wire Format (one JSON text frame per message):
    {"event": "<wire name>", "data": {...}}
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class MessageDirection(StrEnum):
    """Which way a message kind travels."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    LIFECYCLE = "lifecycle"
    """Raised locally by the connection (connect/disconnect), never on the wire."""


class RealtimeEventType(StrEnum):
    """All realtime message kinds.

    Values are the exact wire names expected by the server.
    """

    # =========================================================================
    # LIFECYCLE (local)
    # =========================================================================
    CONNECT = "connect"
    DISCONNECT = "disconnect"

    # =========================================================================
    # OUTBOUND
    # =========================================================================
    JOIN_PENDING_VERIFICATION_ROOM = "joinPendingVerificationRoom"
    LEAVE_PENDING_VERIFICATION_ROOM = "leavePendingVerificationRoom"
    JOIN_PASSWORD_RESET_ROOM = "joinPasswordResetRoom"
    LEAVE_PASSWORD_RESET_ROOM = "leavePasswordResetRoom"
    JOIN_VERIFICATION_ROOM = "joinVerificationRoom"
    PING = "ping"

    # =========================================================================
    # INBOUND
    # =========================================================================
    EMAIL_VERIFIED = "emailVerified"
    EMAIL_VERIFICATION_FAILED = "emailVerificationFailed"
    PENDING_VERIFICATION_ROOM_JOINED = "pendingVerificationRoomJoined"
    PENDING_VERIFICATION_ROOM_LEFT = "pendingVerificationRoomLeft"
    PASSWORD_RESET_ROOM_JOINED = "passwordResetRoomJoined"
    PASSWORD_RESET_ROOM_LEFT = "passwordResetRoomLeft"
    FORCE_LOGOUT = "forceLogout"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    PONG = "pong"


_LIFECYCLE = {RealtimeEventType.CONNECT, RealtimeEventType.DISCONNECT}
_OUTBOUND = {
    RealtimeEventType.JOIN_PENDING_VERIFICATION_ROOM,
    RealtimeEventType.LEAVE_PENDING_VERIFICATION_ROOM,
    RealtimeEventType.JOIN_PASSWORD_RESET_ROOM,
    RealtimeEventType.LEAVE_PASSWORD_RESET_ROOM,
    RealtimeEventType.JOIN_VERIFICATION_ROOM,
    RealtimeEventType.PING,
}


def get_direction(event_type: RealtimeEventType) -> MessageDirection:
    """Get the direction of a message kind.

    Args:
        event_type: Message kind.

    Returns:
        MessageDirection of the kind.
    """
    if event_type in _LIFECYCLE:
        return MessageDirection.LIFECYCLE
    if event_type in _OUTBOUND:
        return MessageDirection.OUTBOUND
    return MessageDirection.INBOUND


# =============================================================================
# Outbound payloads
# =============================================================================


@dataclass(frozen=True, slots=True, kw_only=True)
class RoomEmailPayload:
    """Join/leave payload for email-scoped rooms."""

    email: str

    def to_wire(self) -> dict[str, Any]:
        return {"email": self.email}


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationRoomPayload:
    """Join payload for the per-user verification room."""

    user_id: str

    def to_wire(self) -> dict[str, Any]:
        return {"userId": self.user_id}


@dataclass(frozen=True, slots=True, kw_only=True)
class PingPayload:
    """Heartbeat probe.

    Attributes:
        sent_at: Client clock reading, echoed back by some servers.
    """

    sent_at: float

    def to_wire(self) -> dict[str, Any]:
        return {"timestamp": self.sent_at}


# =============================================================================
# Inbound payloads
# =============================================================================


@dataclass(frozen=True, slots=True, kw_only=True)
class CredentialPair:
    """Renewed credentials carried by an emailVerified event.

    Attributes:
        access_token: Short-lived access credential.
        refresh_token: Refresh credential.
        expires_in: Access credential lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int = 900

    def __repr__(self) -> str:
        return f"CredentialPair(expires_in={self.expires_in})"


@dataclass(frozen=True, slots=True, kw_only=True)
class EmailVerifiedPayload:
    """Server confirmed an email verification for a watched room.

    Attributes:
        success: Whether verification succeeded.
        user: Raw user object, when supplied.
        tokens: Renewed credential pair, when supplied.
        message: Optional server message.
    """

    success: bool
    user: dict[str, Any] | None = None
    tokens: CredentialPair | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EmailVerificationFailedPayload:
    """Verification link was rejected by the server."""

    message: str
    email: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RoomAckPayload:
    """Acknowledgment of a room join or leave.

    Attributes:
        email: Email the room is scoped to, when echoed.
        room: Room name, when echoed.
    """

    email: str | None = None
    room: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ForceLogoutPayload:
    """Server revoked this client's session."""

    reason: str
    message: str
    timestamp: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitExceededPayload:
    """Server throttled this client."""

    limit_type: str
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class PongPayload:
    """Heartbeat acknowledgment."""

    timestamp: Any = None


@dataclass(frozen=True, slots=True, kw_only=True)
class LifecyclePayload:
    """Local connect/disconnect notification.

    Attributes:
        reason: Why the transition happened (None for a normal connect).
    """

    reason: str | None = None


type InboundPayload = (
    EmailVerifiedPayload
    | EmailVerificationFailedPayload
    | RoomAckPayload
    | ForceLogoutPayload
    | RateLimitExceededPayload
    | PongPayload
    | LifecyclePayload
)

type OutboundPayload = RoomEmailPayload | VerificationRoomPayload | PingPayload


def _parse_tokens(raw: Any) -> CredentialPair | None:
    if not isinstance(raw, dict):
        return None
    access = raw.get("accessToken") or raw.get("access_token")
    refresh = raw.get("refreshToken") or raw.get("refresh_token")
    if not access or not refresh:
        return None
    expires_in = raw.get("expiresIn", raw.get("expires_in", 900))
    return CredentialPair(
        access_token=str(access),
        refresh_token=str(refresh),
        expires_in=int(expires_in),
    )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_inbound(
    name: str, data: Any
) -> tuple[RealtimeEventType, InboundPayload] | None:
    """Turn a raw inbound frame into a typed payload.

    Args:
        name: Wire event name.
        data: Decoded JSON data (non-dict values are treated as empty).

    Returns:
        (kind, payload), or None when the name is not an inbound kind.
    """
    try:
        event_type = RealtimeEventType(name)
    except ValueError:
        return None
    if get_direction(event_type) != MessageDirection.INBOUND:
        return None

    body: dict[str, Any] = data if isinstance(data, dict) else {}
    payload: InboundPayload

    match event_type:
        case RealtimeEventType.EMAIL_VERIFIED:
            user = body.get("user")
            payload = EmailVerifiedPayload(
                success=bool(body.get("success", False)),
                user=user if isinstance(user, dict) else None,
                tokens=_parse_tokens(body.get("tokens")),
                message=_optional_str(body.get("message")),
            )
        case RealtimeEventType.EMAIL_VERIFICATION_FAILED:
            payload = EmailVerificationFailedPayload(
                message=str(body.get("message", "Email verification failed")),
                email=_optional_str(body.get("email")),
            )
        case RealtimeEventType.FORCE_LOGOUT:
            payload = ForceLogoutPayload(
                reason=str(body.get("reason", "unknown")),
                message=str(body.get("message", "")),
                timestamp=_optional_str(body.get("timestamp")),
            )
        case RealtimeEventType.RATE_LIMIT_EXCEEDED:
            payload = RateLimitExceededPayload(
                limit_type=str(body.get("type", "unknown")),
                message=str(body.get("message", "")),
            )
        case RealtimeEventType.PONG:
            payload = PongPayload(timestamp=body.get("timestamp"))
        case _:
            payload = RoomAckPayload(
                email=_optional_str(body.get("email")),
                room=_optional_str(body.get("room")),
            )
    return event_type, payload
