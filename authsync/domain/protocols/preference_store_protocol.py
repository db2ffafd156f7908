"""Preference store protocol (port) for durable client storage.

Holds the locale (and theme) between runs. Never holds credentials.
"""

from typing import Protocol


class PreferenceStoreProtocol(Protocol):
    """Protocol for durable client-side preference storage."""

    def get(self, key: str) -> str | None:
        """Read a stored value, None when absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Persist a value."""
        ...

    def remove(self, key: str) -> None:
        """Delete a value (no-op when absent)."""
        ...
