"""
Tests for application settings.
"""

from underwriting.config import Settings, get_env_file


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("DEBUG", raising=False)
        settings = Settings(_env_file=None)
        assert settings.app_name == "Portfolio Underwriting"
        assert settings.log_level == "INFO"
        assert settings.debug is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DEBUG", "true")
        settings = Settings(_env_file=None)
        assert settings.log_level == "DEBUG"
        assert settings.debug is True

    def test_env_file_follows_app_env(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        assert get_env_file() == ".env.production"
        monkeypatch.setenv("APP_ENV", "development")
        assert get_env_file() == ".env.development"

    def test_settings_config(self):
        assert Settings.model_config["extra"] == "ignore"
        assert Settings.model_config["env_file_encoding"] == "utf-8"
