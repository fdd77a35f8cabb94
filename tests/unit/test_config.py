"""
Tests for the configuration module.
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    """Tests for Settings class."""

    def test_settings_loads_from_env(self):
        """Test that settings load from environment variables."""
        from config.settings import get_settings

        settings = get_settings()

        # Required fields should be present
        assert settings.supabase_url is not None
        assert settings.supabase_service_key is not None

        # Defaults should be applied
        assert settings.host == "0.0.0.0"
        assert settings.port == 8080

    def test_feed_defaults(self):
        """Test feed ranking defaults."""
        from config.settings import Settings

        settings = Settings(
            supabase_url="https://test.supabase.co",
            supabase_service_key="test-key",
        )

        assert settings.feed_rpc_name == "get_ranked_cleaner_feed"
        assert settings.feed_radius_km == 50.0
        assert settings.feed_default_limit == 20
        assert settings.feed_max_limit == 100
        assert settings.feed_candidate_multiplier == 2
        assert settings.feed_history_limit == 10
        assert settings.feed_read_timeout_seconds == 5.0

    def test_feed_settings_from_env(self, monkeypatch):
        """Test FEED_* environment overrides."""
        from config.settings import Settings

        monkeypatch.setenv("FEED_RADIUS_KM", "25")
        monkeypatch.setenv("FEED_READ_TIMEOUT_SECONDS", "1.5")

        settings = Settings()

        assert settings.feed_radius_km == 25.0
        assert settings.feed_read_timeout_seconds == 1.5

    def test_invalid_timeout_rejected(self):
        """Test that a non-positive read timeout is rejected."""
        from config.settings import get_settings_for_testing

        with pytest.raises(ValidationError):
            get_settings_for_testing(feed_read_timeout_seconds=0)

    def test_missing_supabase_url_rejected(self, monkeypatch):
        """Test that the Supabase URL is required."""
        from config.settings import Settings

        monkeypatch.delenv("SUPABASE_URL", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None, supabase_service_key="test-key")

    def test_is_development_property(self):
        """Test is_development property."""
        from config.settings import Settings

        for env in ["development", "dev", "local"]:
            settings = Settings(
                supabase_url="https://test.supabase.co",
                supabase_service_key="test-key",
                environment=env,
            )
            assert settings.is_development is True

        settings = Settings(
            supabase_url="https://test.supabase.co",
            supabase_service_key="test-key",
            environment="production",
        )
        assert settings.is_development is False

    def test_is_production_property(self):
        """Test is_production property."""
        from config.settings import Settings

        for env in ["production", "prod"]:
            settings = Settings(
                supabase_url="https://test.supabase.co",
                supabase_service_key="test-key",
                environment=env,
            )
            assert settings.is_production is True

        settings = Settings(
            supabase_url="https://test.supabase.co",
            supabase_service_key="test-key",
            environment="development",
        )
        assert settings.is_production is False

    def test_cors_origins_parsing(self):
        """Test that CORS origins can be parsed from comma-separated string."""
        from config.settings import Settings

        settings = Settings(
            supabase_url="https://test.supabase.co",
            supabase_service_key="test-key",
            cors_origins="http://localhost:8081, http://localhost:19006",
        )

        assert settings.cors_origins == ["http://localhost:8081", "http://localhost:19006"]

    def test_settings_for_testing(self):
        """Test get_settings_for_testing function."""
        from config.settings import get_settings_for_testing

        settings = get_settings_for_testing(feed_max_limit=5)

        assert settings.environment == "testing"
        assert settings.debug is True
        assert settings.feed_max_limit == 5
        # Default test values should be applied
        assert "test" in settings.supabase_url

    def test_get_settings_leaves_environment_untouched(self, monkeypatch):
        """Test that loading settings does not write process env vars."""
        import os

        from config.settings import get_settings

        monkeypatch.delenv("ENV_FILE", raising=False)
        get_settings.cache_clear()
        try:
            get_settings()
        finally:
            get_settings.cache_clear()

        assert "ENV_FILE" not in os.environ


class TestDatabase:
    """Tests for database module."""

    @pytest.fixture(autouse=True)
    def _reset_client(self):
        from config.database import reset_supabase_client
        reset_supabase_client()
        yield
        reset_supabase_client()

    async def test_supabase_client_singleton(self):
        """Test that get_supabase_client creates the client once."""
        from config.database import get_supabase_client
        from config.settings import get_settings_for_testing

        sentinel = object()
        settings = get_settings_for_testing()
        with patch("config.database.acreate_client", return_value=sentinel) as create:
            client1 = await get_supabase_client(settings)
            client2 = await get_supabase_client(settings)

        assert client1 is sentinel
        assert client2 is sentinel
        create.assert_called_once_with("https://test.supabase.co", "test-key")

    async def test_client_creation_failure_wrapped(self):
        """Test that creation errors surface as SupabaseClientError."""
        from config.database import SupabaseClientError, get_supabase_client

        with patch("config.database.acreate_client", side_effect=ValueError("bad url")):
            with pytest.raises(SupabaseClientError, match="bad url"):
                await get_supabase_client()

    async def test_supabase_client_optional_returns_none_on_error(self):
        """Test that get_supabase_client_optional handles errors gracefully."""
        from config.database import get_supabase_client_optional

        with patch("config.database.acreate_client", side_effect=RuntimeError("down")):
            client = await get_supabase_client_optional()

        assert client is None

    def test_client_type_is_supabase_async_client(self):
        """Test that the module exposes the library client type, not an alias."""
        from config import database

        assert not hasattr(database, "SupabaseClient")
        assert database.AsyncClient.__module__.startswith("supabase")
