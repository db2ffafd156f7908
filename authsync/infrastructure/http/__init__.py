"""HTTP adapters."""

from authsync.infrastructure.http.api_client import AuthApiClient

__all__ = ["AuthApiClient"]
