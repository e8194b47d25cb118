#  Secret Board - Config Validation Tests
#
#  Tests for validate_config() startup checks.
#
#  Depends on: secretboard/config.py
#  Used by:    pytest

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from secretboard.config import ConfigError, validate_config

_GOOD_KEY = "a" * 32


class TestValidateConfig:
    def test_raises_on_empty_secret(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", ""):
            with pytest.raises(ConfigError, match="missing or too short"):
                validate_config()

    def test_raises_on_short_secret(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", "tooshort"):
            with pytest.raises(ConfigError, match="missing or too short"):
                validate_config()

    def test_passes_with_valid_secret(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", []):
            validate_config()  # should not raise

    def test_raises_on_bad_port(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.PORT", 70000):
            with pytest.raises(ConfigError, match="server.port"):
                validate_config()

    def test_raises_on_bcrypt_rounds_out_of_range(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_BCRYPT_ROUNDS", 2):
            with pytest.raises(ConfigError, match="bcrypt_rounds"):
                validate_config()

    def test_raises_on_non_positive_session_ttl(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.SESSION_TTL_DAYS", 0):
            with pytest.raises(ConfigError, match="ttl_days"):
                validate_config()

    def test_raises_when_stores_share_a_file(self, tmp_path):
        shared = Path(tmp_path / "one.db")
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.DB_PATH", shared), \
             patch("secretboard.config.SESSION_DB_PATH", shared):
            with pytest.raises(ConfigError, match="different files"):
                validate_config()

    def test_raises_on_oauth_provider_missing_name(self):
        bad_provider = [{"issuer": "https://x.com", "client_id": "id", "client_secret": "sec"}]
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", bad_provider):
            with pytest.raises(ConfigError, match="missing required 'name'"):
                validate_config()

    def test_raises_on_oauth_provider_missing_redirect_uri(self):
        bad_provider = [{
            "name": "google", "issuer": "https://x.com",
            "client_id": "id", "client_secret": "sec",
        }]
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", bad_provider):
            with pytest.raises(ConfigError, match="missing required 'redirect_uri'"):
                validate_config()

    def test_valid_oauth_provider_passes(self):
        good_provider = [{
            "name": "google", "issuer": "https://x.com", "client_id": "id",
            "client_secret": "sec", "redirect_uri": "http://localhost:3000/cb",
        }]
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", good_provider):
            validate_config()  # should not raise

    def test_raises_on_invalid_cors_origin(self):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.CORS_ORIGINS", ["not-a-url"]):
            with pytest.raises(ConfigError, match="CORS origin must start with"):
                validate_config()

    def test_warns_on_cors_wildcard(self, caplog):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", []), \
             patch("secretboard.config.CORS_ORIGINS", ["*"]):
            with caplog.at_level(logging.WARNING):
                validate_config()
            assert "allows all origins" in caplog.text

    def test_warns_on_insecure_cookie(self, caplog):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", []), \
             patch("secretboard.config.SESSION_COOKIE_SECURE", False):
            with caplog.at_level(logging.WARNING):
                validate_config()
            assert "cookie_secure is false" in caplog.text

    def test_warns_without_oauth_providers(self, caplog):
        with patch("secretboard.config.AUTH_SECRET_KEY", _GOOD_KEY), \
             patch("secretboard.config.AUTH_OAUTH_PROVIDERS", []):
            with caplog.at_level(logging.WARNING):
                validate_config()
            assert "only password login" in caplog.text
