"""
Tests for apikit configuration (pydantic-settings).
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from apikit import __version__
from apikit.config import (
    DEFAULT_DOWNLOADS_DIR,
    NetworkSettings,
    configure_settings,
    get_settings,
    reset_settings,
)


class TestNetworkSettings:
    """Tests for NetworkSettings pydantic-settings model."""

    def test_default_values(self):
        """Test default configuration values."""
        settings = NetworkSettings()

        assert settings.request_timeout == 30.0
        assert settings.resource_timeout == 30.0
        assert settings.download_chunk_size == 64 * 1024
        assert settings.business_success_code == 0
        assert settings.auth_token is None
        assert settings.app_version == __version__
        assert settings.downloads_dir == DEFAULT_DOWNLOADS_DIR
        assert settings.log_level == "INFO"
        assert settings.log_json is False

    def test_environment_variable_override(self):
        """Test that environment variables override defaults."""
        with patch.dict(os.environ, {
            "APIKIT_REQUEST_TIMEOUT": "12.5",
            "APIKIT_BUSINESS_SUCCESS_CODE": "200",
            "APIKIT_AUTH_TOKEN": "from-env",
            "APIKIT_DOWNLOADS_DIR": "/data/downloads",
            "APIKIT_LOG_LEVEL": "DEBUG",
        }):
            settings = NetworkSettings()

            assert settings.request_timeout == 12.5
            assert settings.business_success_code == 200
            assert settings.auth_token == "from-env"
            assert settings.downloads_dir == Path("/data/downloads")
            assert settings.log_level == "DEBUG"

    def test_incomplete_dir(self, tmp_path):
        settings = NetworkSettings(downloads_dir=tmp_path)
        assert settings.incomplete_dir == tmp_path / ".incomplete"

    def test_validation_request_timeout_min(self):
        """Test request_timeout minimum validation."""
        with pytest.raises(ValidationError):
            NetworkSettings(request_timeout=0.5)

    def test_validation_chunk_size_min(self):
        """Test chunk size minimum validation."""
        with pytest.raises(ValidationError):
            NetworkSettings(download_chunk_size=16)

    def test_validation_log_level(self):
        with pytest.raises(ValidationError):
            NetworkSettings(log_level="CHATTY")

    def test_validation_reachability_port(self):
        with pytest.raises(ValidationError):
            NetworkSettings(reachability_port=70000)


class TestSettingsSingleton:
    """Tests for settings singleton pattern."""

    def test_get_settings_returns_same_instance(self):
        """Test that get_settings returns singleton."""
        assert get_settings() is get_settings()

    def test_reset_settings_clears_singleton(self):
        """Test that reset_settings clears the singleton."""
        settings1 = get_settings()
        reset_settings()
        assert get_settings() is not settings1

    def test_configure_settings(self):
        """Test configure_settings replaces the singleton with overrides."""
        settings = configure_settings(auth_token="secret", request_timeout=10.0)

        assert get_settings() is settings
        assert settings.auth_token == "secret"
        assert settings.request_timeout == 10.0
