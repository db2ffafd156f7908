"""Application services.

Usage:
    from authsync.application.services import SessionManager
"""

from authsync.application.services.loyalty_feed import LoyaltyAccount, LoyaltyAccountFeed
from authsync.application.services.resource_coordinator import (
    CoordinatedConsumer,
    CoordinatedState,
    SharedResourceCoordinator,
)
from authsync.application.services.room_subscriptions import RoomSubscriptionClient
from authsync.application.services.session_manager import SessionManager

__all__ = [
    "CoordinatedConsumer",
    "CoordinatedState",
    "LoyaltyAccount",
    "LoyaltyAccountFeed",
    "RoomSubscriptionClient",
    "SessionManager",
    "SharedResourceCoordinator",
]
