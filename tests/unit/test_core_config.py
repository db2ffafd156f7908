"""
Unit tests for configuration management (flat Settings).

Tests cover:
- Settings loading from AUTHSYNC_ environment variables
- Environment detection
- Validation (URLs, durations, circuit cool-down window)
- Default values
- Cached singleton behavior
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from authsync.core.config import Settings, get_settings
from authsync.core.enums import Environment


class TestEnvironmentEnum:
    """Test Environment enum."""

    def test_environment_values(self):
        """Test that all expected environments are defined."""
        assert Environment.DEVELOPMENT == "development"
        assert Environment.TESTING == "testing"
        assert Environment.CI == "ci"
        assert Environment.PRODUCTION == "production"


@pytest.mark.unit
class TestSettingsDefaults:
    """Test default values."""

    def test_timing_defaults(self):
        """Defaults match the documented reconnection and cache policy."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.response_cache_ttl_seconds == 30.0
        assert settings.session_refresh_interval_seconds == 14 * 60
        assert settings.reconnect_max_attempts == 5
        assert settings.circuit_failure_threshold == 5
        assert settings.circuit_cooldown_seconds == 30.0
        assert settings.unauthenticated_path == "/auth"
        assert settings.is_development is True

    def test_loads_from_prefixed_environment(self):
        """Test AUTHSYNC_ variables override defaults."""
        env_values = {
            "AUTHSYNC_API_BASE_URL": "https://shop.example.com/v1/",
            "AUTHSYNC_REALTIME_URL": "wss://shop.example.com/ws",
            "AUTHSYNC_ENVIRONMENT": "production",
            "AUTHSYNC_CIRCUIT_COOLDOWN_SECONDS": "45",
        }
        with patch.dict(os.environ, env_values, clear=True):
            settings = Settings()

        assert settings.api_base_url == "https://shop.example.com/v1"
        assert settings.realtime_url == "wss://shop.example.com/ws"
        assert settings.is_production is True
        assert settings.circuit_cooldown_seconds == 45.0


@pytest.mark.unit
class TestSettingsValidation:
    """Test Settings field validation."""

    def test_realtime_url_requires_websocket_scheme(self):
        """Test realtime_url rejects http:// endpoints."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(realtime_url="http://shop.example.com/ws")

        assert any(
            "ws:// or wss://" in str(error) for error in exc_info.value.errors()
        )

    @pytest.mark.parametrize("cooldown", [10.0, 61.0])
    def test_cooldown_outside_window_rejected(self, cooldown):
        """Test cool-down must stay within 30-60 seconds outside testing."""
        with pytest.raises(ValidationError):
            Settings(environment=Environment.PRODUCTION, circuit_cooldown_seconds=cooldown)

    def test_short_cooldown_allowed_in_testing(self):
        """Test the testing environment may use short cool-downs."""
        settings = Settings(environment=Environment.TESTING, circuit_cooldown_seconds=0.1)

        assert settings.circuit_cooldown_seconds == 0.1
        assert settings.is_testing is True

    def test_non_positive_duration_rejected(self):
        """Test durations must be positive."""
        with pytest.raises(ValidationError):
            Settings(heartbeat_timeout_seconds=0)

    def test_counts_must_be_at_least_one(self):
        """Test reconnect_max_attempts < 1 is rejected."""
        with pytest.raises(ValidationError):
            Settings(reconnect_max_attempts=0)


class TestGetSettings:
    """Test cached settings accessor."""

    def test_get_settings_is_cached(self):
        """Test get_settings returns the same instance until cleared."""
        with patch.dict(os.environ, {}, clear=True):
            get_settings.cache_clear()
            first = get_settings()
            second = get_settings()

            assert first is second

            get_settings.cache_clear()
            assert get_settings() is not first
        get_settings.cache_clear()
