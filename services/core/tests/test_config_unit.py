"""Unit tests for settings loading."""

import pytest
from pydantic import ValidationError

from outlets_core.config import Settings, get_settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.service_name == "outlets-service"
        assert settings.api_key == ""
        assert settings.outlet_soft_delete_status == "to_delete"
        assert settings.low_domain_rating_threshold == 10
        assert settings.dr_retry_after_months == 1
        assert settings.dr_stale_after_years == 1

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOW_DOMAIN_RATING_THRESHOLD", "25")
        monkeypatch.setenv("OUTLET_SOFT_DELETE_STATUS", "archived")

        settings = Settings(_env_file=None)

        assert settings.low_domain_rating_threshold == 25
        assert settings.outlet_soft_delete_status == "archived"

    def test_empty_database_url_rejected(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
