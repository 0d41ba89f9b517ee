"""Tests for configuration validation.

Tests the Settings validation to ensure invalid configurations
are rejected at startup.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from authgate.core.config import Settings


def _settings(**env: str) -> Settings:
    with patch.dict(os.environ, env, clear=False):
        return Settings(_env_file=None)


class TestJwtSecretKeyValidation:
    """Tests for JWT signing key validation."""

    def test_long_secret_key_accepted(self):
        """Test that a 32+ character key is accepted."""
        settings = _settings(JWT_SECRET_KEY="k" * 32)
        assert settings.jwt_secret_key == "k" * 32
        assert settings.effective_jwt_secret_key == "k" * 32

    def test_short_secret_key_rejected(self):
        """Test that a short key is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _settings(JWT_SECRET_KEY="too-short")

        assert "32" in str(exc_info.value)

    def test_empty_secret_key_falls_back_to_ephemeral_key(self):
        """Test that an unset key yields a stable per-process fallback and a warning."""
        settings = _settings(JWT_SECRET_KEY="")
        assert len(settings.effective_jwt_secret_key) >= 32
        assert settings.effective_jwt_secret_key == _settings(
            JWT_SECRET_KEY=""
        ).effective_jwt_secret_key
        assert any("JWT_SECRET_KEY" in w for w in settings.check_security_configuration())


class TestJwtAlgorithmValidation:
    """Tests for JWT algorithm validation."""

    def test_algorithm_is_upper_cased(self):
        settings = _settings(JWT_ALGORITHM="hs512")
        assert settings.jwt_algorithm == "HS512"

    def test_unsupported_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            _settings(JWT_ALGORITHM="none")


class TestLogLevelValidation:
    """Tests for log level validation."""

    def test_log_level_normalized(self):
        settings = _settings(LOG_LEVEL="debug")
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            _settings(LOG_LEVEL="LOUD")


class TestDerivedSettings:
    """Tests for derived properties and defaults."""

    def test_token_ttl_defaults_to_one_hour(self):
        settings = _settings()
        assert settings.jwt_ttl_minutes == 60

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValidationError):
            _settings(JWT_TTL_MINUTES="0")

    def test_cors_origins_list_parses_comma_separated(self):
        settings = _settings(CORS_ORIGINS="http://a.example, http://b.example,")
        assert settings.cors_origins_list == ["http://a.example", "http://b.example"]

    def test_wildcard_cors_warns(self):
        settings = _settings(CORS_ORIGINS="*")
        assert any("CORS" in w for w in settings.check_security_configuration())
