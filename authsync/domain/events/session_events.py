"""Session lifecycle events.

Published by the Session Manager whenever the shared identity changes.

Events:
    - SessionInstalled: A verified identity became the active Session
    - SessionCleared: The active Session was removed (logout, forced logout,
      failed status check)
"""

from dataclasses import dataclass

from authsync.domain.events.base_event import DomainEvent


@dataclass(frozen=True, kw_only=True, slots=True)
class SessionInstalled(DomainEvent):
    """A verified identity became the active Session.

    Attributes:
        user_id: Identifier of the installed identity.
        email: Email of the installed identity.
        source: What produced it (login, two_factor, status_check,
            email_verified, replace_identity).
    """

    user_id: str
    email: str
    source: str


@dataclass(frozen=True, kw_only=True, slots=True)
class SessionCleared(DomainEvent):
    """The active Session was removed.

    Attributes:
        user_id: Identifier of the identity that was cleared, None if no
            identity was installed.
        reason: Why (logout, forced_logout, not_authenticated, unverified).
    """

    user_id: str | None
    reason: str
