"""Durable client-side storage."""

from authsync.infrastructure.storage.preference_store import JsonPreferenceStore

__all__ = ["JsonPreferenceStore"]
