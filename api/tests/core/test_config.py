"""Unit tests for core.config module.

Tests cover:
- DATABASE_URL requirement
- docs_enabled toggle
- allowed_origins composition with deduplication
- get_settings / clear_settings_cache lru_cache behavior
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, clear_settings_cache, get_settings

DB_URL = "postgresql+asyncpg://localhost/test"


@pytest.mark.unit
class TestSettingsValidation:
    def test_requires_database_url(self):
        with pytest.raises(ValidationError, match="Database configuration required"):
            Settings(database_url="")

    def test_defaults(self):
        settings = Settings(database_url=DB_URL, debug=False, enable_docs=False)

        assert settings.db_pool_size == 5
        assert settings.db_statement_timeout_ms == 10000
        assert settings.ratelimit_storage_uri == "memory://"
        assert settings.run_migrations_on_startup is True
        assert settings.docs_enabled is False

    @pytest.mark.parametrize(
        ("debug", "enable_docs", "expected"),
        [(True, False, True), (False, True, True), (False, False, False)],
    )
    def test_docs_enabled(self, debug, enable_docs, expected):
        settings = Settings(database_url=DB_URL, debug=debug, enable_docs=enable_docs)
        assert settings.docs_enabled is expected

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", DB_URL)
        monkeypatch.setenv("DB_POOL_SIZE", "12")
        monkeypatch.setenv("RUN_MIGRATIONS_ON_STARTUP", "false")

        settings = Settings()

        assert settings.database_url == DB_URL
        assert settings.db_pool_size == 12
        assert settings.run_migrations_on_startup is False


@pytest.mark.unit
class TestAllowedOrigins:
    def test_debug_includes_localhost(self):
        settings = Settings(database_url=DB_URL, debug=True, frontend_url="")

        assert settings.allowed_origins == [
            "http://localhost:3000",
            "http://localhost:5173",
        ]

    def test_production_uses_frontend_and_extra_origins(self):
        settings = Settings(
            database_url=DB_URL,
            debug=False,
            frontend_url="https://shop.example.com",
            cors_allowed_origins=" https://admin.example.com ,,https://shop.example.com",
        )

        assert settings.allowed_origins == [
            "https://shop.example.com",
            "https://admin.example.com",
        ]

    def test_frontend_duplicate_of_localhost_is_not_repeated(self):
        settings = Settings(
            database_url=DB_URL, debug=True, frontend_url="http://localhost:5173"
        )

        assert settings.allowed_origins.count("http://localhost:5173") == 1


@pytest.mark.unit
class TestSettingsCache:
    def test_cached_until_cleared(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", DB_URL)
        first = get_settings()
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings() is not first
