"""Centralized constants for internal implementation details.

Endpoint paths and wire-level constants are part of the server contract, not
environment-specific configuration. For tunable values, use
`authsync/core/config.py` instead.

Example:
    >>> from authsync.core.constants import LOGIN_PATH
    >>> await client.request("POST", LOGIN_PATH, json_data=payload)
"""

# =============================================================================
# REST endpoints (relative to api_base_url)
# =============================================================================

LOGIN_PATH: str = "/auth/login"
TWO_FACTOR_LOGIN_PATH: str = "/auth/2fa/login"
REGISTER_PATH: str = "/auth/register"
REFRESH_PATH: str = "/auth/refresh"
LOGOUT_PATH: str = "/auth/logout"
OFFLINE_MESSAGES_PATH: str = "/auth/offline-messages"
OFFLINE_MESSAGES_PROCESSED_PATH: str = "/auth/offline-messages/mark-processed"
CURRENT_USER_PATH: str = "/users/me"
PREFERENCES_PATH: str = "/users/me/preferences"
LOYALTY_ACCOUNT_PATH: str = "/loyalty/me"


# =============================================================================
# Cookies
# =============================================================================

ACCESS_TOKEN_COOKIE: str = "accessToken"
"""Cookie name the server uses for the short-lived access credential."""

REFRESH_TOKEN_COOKIE: str = "refreshToken"
"""Cookie name the server uses for the refresh credential."""

BEARER_PREFIX: str = "Bearer "
"""Authorization header prefix for the realtime handshake."""


# =============================================================================
# Navigation
# =============================================================================

ADMIN_HOME_PATH: str = "/admin"
DEFAULT_HOME_PATH: str = "/"
AUTH_PAGE_PATHS: tuple[str, ...] = ("/auth", "/verify-email")
"""Pages from which a verified-email event triggers a redirect."""


# =============================================================================
# Response Limits
# =============================================================================

RESPONSE_BODY_MAX_LENGTH: int = 500
"""Maximum length for response body in error details (truncation limit)."""

GENERIC_ERROR_MESSAGE: str = "Something went wrong. Please try again later."
"""Message surfaced for server errors; server text is never shown."""
