"""Domain value objects."""

from authsync.domain.value_objects.email import Email

__all__ = ["Email"]
