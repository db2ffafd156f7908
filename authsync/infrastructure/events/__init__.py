"""Event bus adapters and handlers."""

from authsync.infrastructure.events.in_memory_event_bus import InMemoryEventBus

__all__ = ["InMemoryEventBus"]
