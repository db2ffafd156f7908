"""Navigation adapters."""

from authsync.infrastructure.navigation.in_memory_navigator import InMemoryNavigator

__all__ = ["InMemoryNavigator"]
