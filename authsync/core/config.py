"""
Configuration management using Pydantic Settings.

Type-safe, validated configuration loaded from environment variables. Every
timing constant of the connection, session and cache layers lives here so
tests can shrink them without patching module globals.

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables
- Type validation via Pydantic

Usage:
    from authsync.core.config import get_settings

    settings = get_settings()
    base_url = settings.api_base_url

    if settings.is_development:
        # Dev-specific behavior
        ...
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from authsync.core.enums import Environment


def _default_preferences_file() -> Path:
    return Path.home() / ".config" / "authsync" / "preferences.json"


class Settings(BaseSettings):
    """
    Client settings (flat structure).

    Configuration precedence:
        1. Environment variables
        2. Default values

    Returns:
        Settings: Client configuration loaded from environment.
    """

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of the colored console format",
    )

    # Endpoints
    api_base_url: str = Field(
        default="http://localhost:3000/v1",
        description="REST API base URL (e.g., https://shop.example.com/v1)",
    )
    realtime_url: str = Field(
        default="ws://localhost:3000/ws",
        description="Duplex endpoint URL (ws:// or wss://)",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single REST request in seconds",
    )

    # Response cache
    response_cache_ttl_seconds: float = Field(
        default=30.0,
        description="Lifetime of a cached GET response in seconds",
    )

    # Session renewal
    session_refresh_interval_seconds: float = Field(
        default=14 * 60,
        description="Proactive refresh interval; shorter than the access credential lifetime",
    )

    # Reconnection and circuit breaker
    reconnect_base_delay_seconds: float = Field(
        default=1.0,
        description="Base delay for exponential reconnect backoff (delay = base * 2^attempt)",
    )
    reconnect_max_attempts: int = Field(
        default=5,
        description="Reconnect attempts before giving up until the next explicit connect()",
    )
    reconnect_reset_seconds: float = Field(
        default=30.0,
        description="Quiet period after which the reconnect attempt counter resets",
    )
    circuit_failure_threshold: int = Field(
        default=5,
        description="Consecutive connection failures that open the circuit",
    )
    circuit_cooldown_seconds: float = Field(
        default=30.0,
        description="Time the circuit stays open before allowing a half-open probe (30-60s)",
    )

    # Heartbeat
    heartbeat_interval_seconds: float = Field(
        default=60.0,
        description="Interval between liveness probes on an open connection",
    )
    heartbeat_timeout_seconds: float = Field(
        default=10.0,
        description="Time to wait for a pong before tearing the connection down",
    )

    offline_messages_enabled: bool = Field(
        default=True,
        description="Fetch messages queued while offline (e.g. forced logout) after sign-in",
    )

    # Room subscriptions and navigation
    room_join_timeout_seconds: float = Field(
        default=30.0,
        description="Maximum wait for the connection before a queued room join is dropped",
    )
    verification_redirect_delay_seconds: float = Field(
        default=2.0,
        description="Delay before redirecting after a verified email event",
    )
    unauthenticated_path: str = Field(
        default="/auth",
        description="Unauthenticated entry point used after a forced logout",
    )

    # Durable client storage
    preferences_file: Path = Field(
        default_factory=_default_preferences_file,
        description="JSON file holding the persisted locale/theme preference",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTHSYNC_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url", "realtime_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """
        Remove trailing slashes from URLs.

        Args:
            v: URL string.

        Returns:
            str: URL without trailing slash.
        """
        return v.rstrip("/")

    @field_validator("realtime_url")
    @classmethod
    def validate_realtime_scheme(cls, v: str) -> str:
        """
        Ensure the duplex endpoint uses a websocket scheme.

        Raises:
            ValueError: If the URL does not start with ws:// or wss://.
        """
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("realtime_url must start with ws:// or wss://")
        return v

    @field_validator(
        "http_timeout_seconds",
        "response_cache_ttl_seconds",
        "session_refresh_interval_seconds",
        "reconnect_base_delay_seconds",
        "reconnect_reset_seconds",
        "heartbeat_interval_seconds",
        "heartbeat_timeout_seconds",
        "room_join_timeout_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """
        Reject zero or negative durations.

        Raises:
            ValueError: If the value is not positive.
        """
        if v <= 0:
            raise ValueError("durations must be positive")
        return v

    @field_validator("reconnect_max_attempts", "circuit_failure_threshold")
    @classmethod
    def validate_counts(cls, v: int) -> int:
        """Counts must be at least 1."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_cooldown_window(self) -> "Settings":
        """
        Keep the circuit cool-down inside the 30-60 second window.

        The testing environment may use shorter windows so suites stay fast.

        Raises:
            ValueError: If the cool-down is outside 30-60 seconds.
        """
        if self.circuit_cooldown_seconds <= 0:
            raise ValueError("circuit_cooldown_seconds must be positive")
        if self.environment != Environment.TESTING and not (
            30.0 <= self.circuit_cooldown_seconds <= 60.0
        ):
            raise ValueError("circuit_cooldown_seconds must be between 30 and 60")
        return self

    # Convenience properties for environment checks
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache so settings are loaded only once per process.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
