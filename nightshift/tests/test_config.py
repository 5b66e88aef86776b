"""
Tests for environment settings.
"""

import pytest

from ..config import DEFAULT_MODEL, Settings, load_settings
from ..errors import ConfigurationError


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.api_key is None
        assert settings.model == DEFAULT_MODEL
        assert settings.thinking_budget == 1024
        assert settings.allowed_origins == ("*",)

    def test_api_key_fallback(self):
        assert load_settings({"API_KEY": "k2"}).api_key == "k2"
        assert load_settings({"GEMINI_API_KEY": "k1", "API_KEY": "k2"}).api_key == "k1"

    def test_overrides(self):
        settings = load_settings({
            "NIGHTSHIFT_MODEL": "gemini-2.5-pro",
            "NIGHTSHIFT_THINKING_BUDGET": "0",
            "NIGHTSHIFT_FEEDBACK_DELAY": "0",
            "NIGHTSHIFT_LOG_LEVEL": "debug",
            "ALLOWED_ORIGINS": "http://localhost:3000, https://ward.example.org",
        })
        assert settings.model == "gemini-2.5-pro"
        assert settings.thinking_budget == 0
        assert settings.feedback_delay == 0.0
        assert settings.log_level == "DEBUG"
        assert settings.allowed_origins == ("http://localhost:3000", "https://ward.example.org")

    def test_bad_number(self):
        with pytest.raises(ConfigurationError, match="NIGHTSHIFT_THINKING_BUDGET"):
            load_settings({"NIGHTSHIFT_THINKING_BUDGET": "lots"})

    def test_require_api_key(self):
        with pytest.raises(ConfigurationError):
            Settings().require_api_key()
        assert Settings(api_key="k").require_api_key() == "k"
