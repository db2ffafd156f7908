"""Base domain event class.

Domain events are facts published on the process-wide event bus ("signals")
so components with no direct dependency on each other can react. Names are
past tense (SessionInstalled, ForcedLogoutReceived).

Architecture:
    - Frozen dataclass (immutable after creation)
    - Auto-generated event_id (UUID) for correlation in logs
    - occurred_at timestamp (UTC)

Usage:
    >>> @dataclass(frozen=True, kw_only=True, slots=True)
    ... class SessionCleared(DomainEvent):
    ...     reason: str
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True, slots=True)
class DomainEvent:
    """Base class for all domain events.

    Attributes:
        event_id: Unique identifier for this event instance. Auto-generated.
        occurred_at: Timestamp when the event occurred (UTC). Auto-generated.
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
