"""Loyalty account feed built on the shared-resource coordinator.

Every surface that shows the customer's points attaches to one feed; the
account is fetched once per signed-in customer and rebroadcast to all of
them. The feed follows the Session Manager: a new customer triggers a fetch
through the primary consumer, a cleared session resets the state.

Business Rules:
    - Only identities with the CUSTOMER role have a loyalty account
    - 404 from GET /loyalty/me means "no account yet", not an error
"""

import asyncio
from dataclasses import dataclass
from typing import Any

from authsync.application.services.resource_coordinator import (
    CoordinatedConsumer,
    CoordinatedState,
    SharedResourceCoordinator,
    StateListener,
)
from authsync.application.services.server_messages import error_from_response
from authsync.application.services.session_manager import SessionManager
from authsync.core.constants import LOYALTY_ACCOUNT_PATH, RESPONSE_BODY_MAX_LENGTH
from authsync.core.enums import ErrorCode
from authsync.core.errors import DomainError
from authsync.core.result import Failure, Result, Success
from authsync.domain.entities import Session
from authsync.domain.enums import UserRole
from authsync.domain.errors import ApiInvalidResponseError
from authsync.domain.protocols.logger_protocol import LoggerProtocol


@dataclass(frozen=True, slots=True, kw_only=True)
class LoyaltyAccount:
    """Customer loyalty summary.

    Attributes:
        id: Account identifier.
        current_points: Spendable points.
        lifetime_points: Points earned since the account opened.
        tier_name: Current tier, None when the server omits it.
        next_tier_name: Next tier, None at the top tier.
        points_to_next_tier: Points still needed for the next tier.
    """

    id: str
    current_points: int
    lifetime_points: int
    tier_name: str | None = None
    next_tier_name: str | None = None
    points_to_next_tier: int | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LoyaltyAccount":
        """Build from the GET /loyalty/me body.

        Raises:
            KeyError: If id is missing.
            ValueError: If point values are not numeric.
        """
        tier = payload.get("currentTier") or {}
        next_tier = payload.get("nextTier") or {}
        points_needed = next_tier.get("pointsNeeded")
        return cls(
            id=str(payload["id"]),
            current_points=int(payload.get("currentPoints", 0)),
            lifetime_points=int(payload.get("lifetimePoints", 0)),
            tier_name=tier.get("name"),
            next_tier_name=next_tier.get("name"),
            points_to_next_tier=int(points_needed) if points_needed is not None else None,
        )


class LoyaltyAccountFeed:
    """Coordinated loyalty account for the signed-in customer."""

    def __init__(self, *, session_manager: SessionManager, logger: LoggerProtocol) -> None:
        self._sessions = session_manager
        self._logger = logger.bind(component="loyalty_feed")
        self._coordinator: SharedResourceCoordinator[LoyaltyAccount] = (
            SharedResourceCoordinator(fetcher=self._fetch, logger=logger, name="loyalty")
        )
        self._initialized = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def coordinator(self) -> SharedResourceCoordinator[LoyaltyAccount]:
        return self._coordinator

    @property
    def state(self) -> CoordinatedState[LoyaltyAccount]:
        return self._coordinator.state

    def initialize(self) -> None:
        if self._initialized:
            return
        self._sessions.add_listener(self._on_session_changed)
        self._initialized = True

    async def destroy(self) -> None:
        if self._initialized:
            self._sessions.remove_listener(self._on_session_changed)
        self._initialized = False
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self._coordinator.reset()

    def attach(
        self, listener: StateListener[LoyaltyAccount] | None = None
    ) -> CoordinatedConsumer[LoyaltyAccount]:
        """Register a consumer of the loyalty account."""
        return self._coordinator.attach(listener)

    async def load(
        self, consumer: CoordinatedConsumer[LoyaltyAccount]
    ) -> CoordinatedState[LoyaltyAccount]:
        """Load the account for the current customer (no-op otherwise)."""
        session = self._sessions.session
        if session is None or not session.has_role(UserRole.CUSTOMER):
            return self._coordinator.state
        return await consumer.load(session.id)

    def _on_session_changed(self, session: Session | None) -> None:
        if session is None or not session.has_role(UserRole.CUSTOMER):
            if self._coordinator.state.owner_key is not None:
                self._coordinator.reset()
            return

        primary = self._coordinator.primary
        if primary is None or self._coordinator.state.owner_key == session.id:
            return
        task = asyncio.create_task(primary.load(session.id), name="authsync-loyalty-load")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(
        self, owner_key: str, fresh: bool
    ) -> Result[LoyaltyAccount | None, DomainError]:
        if fresh:
            self._sessions.invalidate_cached(LOYALTY_ACCOUNT_PATH)
        result = await self._sessions.authenticated_request("GET", LOYALTY_ACCOUNT_PATH)
        if isinstance(result, Failure):
            return Failure(error=result.error)

        response = result.value
        if response.status_code == 404:
            self._logger.debug("loyalty_account_absent", user_id=owner_key)
            return Success(value=None)
        if not response.is_success:
            return Failure(
                error=error_from_response(
                    response, fallback_message="Unable to load loyalty account"
                )
            )

        try:
            body = response.json()
            account = LoyaltyAccount.from_payload(body)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self._logger.warning("loyalty_account_invalid", error=str(e))
            return Failure(
                error=ApiInvalidResponseError(
                    code=ErrorCode.INVALID_RESPONSE,
                    message="Invalid loyalty account response",
                    status_code=response.status_code,
                    response_body=response.text[:RESPONSE_BODY_MAX_LENGTH],
                )
            )
        return Success(value=account)

