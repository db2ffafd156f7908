"""Room subscription client over the realtime connection.

Lets flows join narrowly scoped server topics (pending email verification,
password reset, per-user verification) and learn about completion events that
happened elsewhere, e.g. a verification link opened in another browser.

Joins are optimistic: when the connection is not ready the membership is
queued and the join awaits the Connection Manager's ready event, so callers
never sequence connect-then-join themselves. Each membership remembers the
connection generation it was sent on; the CONNECT handler re-sends only
memberships from an older generation, so a queued join goes out exactly once
per connection.

Usage:
    rooms = RoomSubscriptionClient(connection=manager, logger=logger, settings=settings)
    rooms.initialize()
    rooms.add_email_verified_handler(session_manager.handle_email_verified)
    await rooms.join_pending_verification_room("User@Example.com")
"""

import asyncio
from collections.abc import Awaitable, Callable

from authsync.core.config import Settings
from authsync.domain.entities import MembershipStatus, RoomMembership
from authsync.domain.enums import RoomPurpose
from authsync.domain.events.realtime_messages import (
    EmailVerificationFailedPayload,
    EmailVerifiedPayload,
    LifecyclePayload,
    OutboundPayload,
    RealtimeEventType,
    RoomAckPayload,
    RoomEmailPayload,
    VerificationRoomPayload,
)
from authsync.domain.protocols.logger_protocol import LoggerProtocol
from authsync.domain.value_objects import Email
from authsync.infrastructure.realtime.connection_manager import (
    ConnectionManager,
    RealtimeHandler,
)

EmailVerifiedHandler = Callable[[EmailVerifiedPayload], Awaitable[None]]

_JOIN_EVENTS: dict[RoomPurpose, RealtimeEventType] = {
    RoomPurpose.PENDING_VERIFICATION: RealtimeEventType.JOIN_PENDING_VERIFICATION_ROOM,
    RoomPurpose.PASSWORD_RESET: RealtimeEventType.JOIN_PASSWORD_RESET_ROOM,
    RoomPurpose.VERIFICATION: RealtimeEventType.JOIN_VERIFICATION_ROOM,
}

_LEAVE_EVENTS: dict[RoomPurpose, RealtimeEventType] = {
    RoomPurpose.PENDING_VERIFICATION: RealtimeEventType.LEAVE_PENDING_VERIFICATION_ROOM,
    RoomPurpose.PASSWORD_RESET: RealtimeEventType.LEAVE_PASSWORD_RESET_ROOM,
}


class RoomSubscriptionClient:
    """Join/leave scoped rooms and route their completion events.

    Attributes:
        _connection: Shared Connection Manager.
        _memberships: Topic -> membership (queued, sent or confirmed).
        _pending: Topic -> task waiting for the connection to become ready.
        _verified_handlers: Receivers of emailVerified payloads.
    """

    def __init__(
        self,
        *,
        connection: ConnectionManager,
        logger: LoggerProtocol,
        settings: Settings,
    ) -> None:
        self._connection = connection
        self._logger = logger.bind(component="room_subscriptions")
        self._settings = settings

        self._initialized = False
        self._memberships: dict[str, RoomMembership] = {}
        self._pending: dict[str, asyncio.Task[bool]] = {}
        self._verified_handlers: list[EmailVerifiedHandler] = []
        self._registrations: list[tuple[RealtimeEventType, RealtimeHandler]] = [
            (RealtimeEventType.CONNECT, self._on_connect),
            (RealtimeEventType.PENDING_VERIFICATION_ROOM_JOINED, self._on_pending_joined),
            (RealtimeEventType.PASSWORD_RESET_ROOM_JOINED, self._on_password_reset_joined),
            (RealtimeEventType.PENDING_VERIFICATION_ROOM_LEFT, self._on_room_left),
            (RealtimeEventType.PASSWORD_RESET_ROOM_LEFT, self._on_room_left),
            (RealtimeEventType.EMAIL_VERIFIED, self._on_email_verified),
            (RealtimeEventType.EMAIL_VERIFICATION_FAILED, self._on_verification_failed),
        ]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Register handlers on the connection. Idempotent."""
        if self._initialized:
            return
        for event_type, handler in self._registrations:
            self._connection.on(event_type, handler)
        self._initialized = True

    async def destroy(self) -> None:
        """Unregister handlers, drop memberships and stop queued joins."""
        if self._initialized:
            for event_type, handler in self._registrations:
                self._connection.off(event_type, handler)
        self._initialized = False

        pending = [task for task in self._pending.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()
        self._memberships.clear()
        self._verified_handlers.clear()

    def add_email_verified_handler(self, handler: EmailVerifiedHandler) -> None:
        if handler not in self._verified_handlers:
            self._verified_handlers.append(handler)

    def remove_email_verified_handler(self, handler: EmailVerifiedHandler) -> bool:
        if handler not in self._verified_handlers:
            return False
        self._verified_handlers.remove(handler)
        return True

    # =========================================================================
    # Joins and leaves
    # =========================================================================

    async def join_pending_verification_room(self, email: str) -> bool:
        """Watch an email address for verification completion.

        Returns:
            True once the join was sent; False for an invalid address or if
            the connection did not become ready in time.
        """
        subject = self._normalize_email(email)
        if subject is None:
            return False
        return await self._join(RoomPurpose.PENDING_VERIFICATION, subject)

    async def join_password_reset_room(self, email: str) -> bool:
        """Watch an email address for password-reset completion."""
        subject = self._normalize_email(email)
        if subject is None:
            return False
        return await self._join(RoomPurpose.PASSWORD_RESET, subject)

    async def join_verification_room(self, user_id: str) -> bool:
        """Watch a signed-in user's own verification room."""
        subject = user_id.strip()
        if not subject:
            return False
        return await self._join(RoomPurpose.VERIFICATION, subject)

    async def leave_pending_verification_room(self, email: str) -> bool:
        """Stop watching; sent only while connected.

        Returns:
            True if the leave message was handed to the connection.
        """
        return await self._leave(RoomPurpose.PENDING_VERIFICATION, email)

    async def leave_password_reset_room(self, email: str) -> bool:
        return await self._leave(RoomPurpose.PASSWORD_RESET, email)

    def memberships(self) -> list[RoomMembership]:
        """Snapshot of current memberships."""
        return list(self._memberships.values())

    def membership(self, purpose: RoomPurpose, subject: str) -> RoomMembership | None:
        return self._memberships.get(f"{purpose.value}:{subject}")

    async def _join(self, purpose: RoomPurpose, subject: str) -> bool:
        topic = f"{purpose.value}:{subject}"
        existing = self._memberships.get(topic)
        if existing is not None:
            waiting = self._pending.get(topic)
            if waiting is not None and not waiting.done():
                return await asyncio.shield(waiting)
            if existing.was_sent:
                self._logger.debug("room_already_joined", room=purpose.value)
                return True

        membership = existing or RoomMembership(purpose=purpose, subject=subject)
        self._memberships[topic] = membership

        if self._connection.is_connected:
            return await self._send_join(membership)

        self._logger.info("room_join_queued", room=purpose.value)
        task = asyncio.create_task(
            self._join_when_ready(topic, membership), name=f"authsync-join {purpose.value}"
        )
        self._pending[topic] = task
        return await asyncio.shield(task)

    async def _join_when_ready(self, topic: str, membership: RoomMembership) -> bool:
        try:
            if not self._connection.is_connected:
                # A failed attempt has already scheduled a reconnect
                await self._connection.connect()
            ready = await self._connection.wait_until_ready(
                timeout=self._settings.room_join_timeout_seconds
            )
            if self._memberships.get(topic) is not membership:
                return False
            if not ready:
                del self._memberships[topic]
                self._logger.warning(
                    "room_join_timed_out",
                    room=membership.purpose.value,
                    timeout_seconds=self._settings.room_join_timeout_seconds,
                )
                return False
            return await self._send_join(membership)
        finally:
            if self._pending.get(topic) is asyncio.current_task():
                del self._pending[topic]

    async def _send_join(self, membership: RoomMembership) -> bool:
        generation = self._connection.connection_generation
        if membership.was_sent and membership.generation == generation:
            return True

        membership.status = MembershipStatus.SENT
        membership.generation = generation
        sent = await self._connection.emit(
            _JOIN_EVENTS[membership.purpose], self._join_payload(membership)
        )
        if not sent:
            membership.status = MembershipStatus.QUEUED
            membership.generation = None
            self._logger.warning("room_join_not_sent", room=membership.purpose.value)
            return False

        self._logger.info(
            "room_join_sent",
            room=membership.purpose.value,
            generation=generation,
        )
        return True

    async def _leave(self, purpose: RoomPurpose, email: str) -> bool:
        subject = self._normalize_email(email)
        if subject is None:
            return False
        self._memberships.pop(f"{purpose.value}:{subject}", None)
        if not self._connection.is_connected:
            self._logger.debug("room_leave_skipped", room=purpose.value)
            return False
        return await self._connection.emit(
            _LEAVE_EVENTS[purpose], RoomEmailPayload(email=subject)
        )

    # =========================================================================
    # Connection handlers
    # =========================================================================

    async def _on_connect(self, payload: LifecyclePayload) -> None:
        generation = self._connection.connection_generation
        stale = [m for m in self._memberships.values() if m.generation != generation]
        for membership in stale:
            await self._send_join(membership)
        if stale:
            self._logger.info("rooms_rejoined", count=len(stale), generation=generation)

    async def _on_pending_joined(self, payload: RoomAckPayload) -> None:
        self._confirm(RoomPurpose.PENDING_VERIFICATION, payload)

    async def _on_password_reset_joined(self, payload: RoomAckPayload) -> None:
        self._confirm(RoomPurpose.PASSWORD_RESET, payload)

    async def _on_room_left(self, payload: RoomAckPayload) -> None:
        self._logger.debug("room_left", room=payload.room)

    async def _on_email_verified(self, payload: EmailVerifiedPayload) -> None:
        handlers = list(self._verified_handlers)
        self._logger.info(
            "email_verified_received",
            success=payload.success,
            has_tokens=payload.tokens is not None,
            handlers=len(handlers),
        )
        results = await asyncio.gather(
            *(handler(payload) for handler in handlers), return_exceptions=True
        )
        for handler, result in zip(handlers, results, strict=True):
            if isinstance(result, Exception):
                self._logger.warning(
                    "email_verified_handler_failed",
                    handler_name=getattr(handler, "__name__", repr(handler)),
                    error_type=type(result).__name__,
                    error_message=str(result),
                )

    async def _on_verification_failed(self, payload: EmailVerificationFailedPayload) -> None:
        self._logger.warning("email_verification_failed", message=payload.message)

    def _confirm(self, purpose: RoomPurpose, payload: RoomAckPayload) -> None:
        targets: list[RoomMembership]
        if payload.email:
            subject = self._normalize_email(payload.email)
            found = self.membership(purpose, subject) if subject else None
            targets = [found] if found is not None else []
        else:
            targets = [
                m
                for m in self._memberships.values()
                if m.purpose == purpose and m.status == MembershipStatus.SENT
            ]
        for membership in targets:
            membership.status = MembershipStatus.CONFIRMED
            self._logger.debug("room_join_confirmed", room=purpose.value)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _normalize_email(self, email: str) -> str | None:
        try:
            return Email(email).value
        except ValueError:
            self._logger.warning("room_email_invalid")
            return None

    @staticmethod
    def _join_payload(membership: RoomMembership) -> OutboundPayload:
        if membership.purpose == RoomPurpose.VERIFICATION:
            return VerificationRoomPayload(user_id=membership.subject)
        return RoomEmailPayload(email=membership.subject)

