"""Tests for environment-driven settings."""

from whatif.config.settings import Environment, LogLevel, Settings


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("DATABASE_URL", "COMPLETION_API_URL", "ENVIRONMENT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.COMPLETION_API_URL == "https://api.groq.com/openai/v1/chat/completions"
        assert settings.DEFAULT_MODEL == "llama-3.3-70b-versatile"
        assert settings.ENVIRONMENT == Environment.DEV
        assert settings.is_production is False

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5")
        settings = Settings(_env_file=None)
        assert settings.is_production is True
        assert settings.LOG_LEVEL == LogLevel.DEBUG
        assert settings.HTTP_TIMEOUT_SECONDS == 5.0
