"""Tests for configuration management."""

import logging
import os
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from hycalc import create_app
from hycalc.config import Settings, get_global_settings, get_settings, reset_global_settings


class TestSettings:
    """Test cases for Settings."""

    def test_defaults(self):
        """Test default values."""
        with patch.dict(os.environ, {"SECRET_KEY": "valid-secret-123"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.app_env == "development"
        assert settings.log_level == "INFO"
        assert settings.xirr_initial_guess == 0.2
        assert settings.xirr_tolerance == 1e-7
        assert settings.xirr_max_iterations == 100

    def test_secret_key_validation(self):
        """Test that SECRET_KEY validation works correctly."""
        with patch.dict(
            os.environ, {"SECRET_KEY": "your-secret-key-here-change-in-production"}, clear=True
        ):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "SECRET_KEY must be set to a secure value" in str(exc_info.value)

    def test_app_env_validation(self):
        """Test that APP_ENV validation works correctly."""
        with patch.dict(
            os.environ, {"SECRET_KEY": "valid-secret-123", "APP_ENV": "invalid"}, clear=True
        ):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "APP_ENV must be one of" in str(exc_info.value)

    def test_log_level_is_normalized(self):
        """Test that LOG_LEVEL is upper-cased and validated."""
        with patch.dict(
            os.environ, {"SECRET_KEY": "valid-secret-123", "LOG_LEVEL": "debug"}, clear=True
        ):
            assert Settings(_env_file=None).log_level == "DEBUG"

        with patch.dict(
            os.environ, {"SECRET_KEY": "valid-secret-123", "LOG_LEVEL": "LOUD"}, clear=True
        ):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_xirr_settings_validation(self):
        """Test that solver settings are validated."""
        for key, value in (
            ("XIRR_INITIAL_GUESS", "-1"),
            ("XIRR_TOLERANCE", "0"),
            ("XIRR_MAX_ITERATIONS", "0"),
        ):
            with patch.dict(
                os.environ, {"SECRET_KEY": "valid-secret-123", key: value}, clear=True
            ):
                with pytest.raises(ValidationError):
                    Settings(_env_file=None)

    def test_env_file_loading(self):
        """Test that .env file loading works correctly."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            f.write("SECRET_KEY=test-secret-from-file\n")
            f.write("APP_ENV=production\n")
            f.write("XIRR_MAX_ITERATIONS=42\n")
            env_file = f.name

        try:
            with patch.dict(os.environ, {}, clear=True):
                settings = get_settings(env_file)

            assert settings.secret_key == "test-secret-from-file"
            assert settings.app_env == "production"
            assert settings.xirr_max_iterations == 42
        finally:
            os.unlink(env_file)

    def test_global_settings_are_cached(self):
        """Test the global settings accessor."""
        first = get_global_settings()

        assert get_global_settings() is first

        reset_global_settings()
        assert get_global_settings() is not first


class TestCreateApp:
    """Test cases for the application factory."""

    def test_app_config(self):
        """Settings are applied to the Flask configuration."""
        app = create_app()

        assert app.config["SECRET_KEY"] == "test-secret-key"
        assert app.config["TESTING"] is True
        assert app.config["DEBUG"] is False
        assert "projection_service" in app.extensions

    def test_log_level_applied(self, monkeypatch):
        """LOG_LEVEL sets the package logger level."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        reset_global_settings()

        create_app()

        assert logging.getLogger("hycalc").level == logging.WARNING

    def test_solver_settings_applied(self, monkeypatch):
        """Solver settings reach the projection service."""
        monkeypatch.setenv("XIRR_MAX_ITERATIONS", "75")
        reset_global_settings()

        app = create_app()

        service = app.extensions["projection_service"]
        assert service.engine.return_solver.config.max_iterations == 75
