"""LoggerProtocol definition for structured logging.

Standardizes structured logging across authsync while remaining
backend-agnostic. Implementations MUST ensure logs are structured (key-value
context) and safe (no secrets).

Log Levels:
    - DEBUG: Detailed diagnostic info (frames, cache hits)
    - INFO: Normal lifecycle events (connected, session installed)
    - WARNING: Degraded operation (reconnecting, refresh failed)
    - ERROR: Operation failed, client continues
    - CRITICAL: Client cannot continue

Security:
    - NEVER log passwords, access/refresh tokens or 2FA codes

Usage:
    from authsync.core.container import get_logger

    logger = get_logger()
    logger.info("session_installed", user_id=session.id)

    conn_logger = logger.bind(component="connection_manager")
    conn_logger.warning("reconnect_scheduled", attempt=2, delay_seconds=4.0)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    All logging calls MUST be structured: message + key-value context.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: snake_case event name (avoid f-strings; use context).
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: snake_case event name.
            error: Optional exception instance; implementation may include
                error_type and error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level message."""
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return new logger with permanently bound context.

        The original logger instance remains unchanged.

        Args:
            **context: Context to bind to all future logs.

        Returns:
            New logger instance with bound context.
        """
        ...

    def with_context(self, **context: Any) -> LoggerProtocol:
        """Alias for bind()."""
        ...
