"""
Tests for configuration module.

Tests for:
- Environment variable loading
- Configuration validation with Pydantic
- Default values
"""

import pytest
from pydantic import ValidationError


def test_config_loads_environment_variables(mock_env):
    """
    Test that configuration loads from environment variables.
    """
    from config import Settings

    settings = Settings()

    assert settings.ENVIRONMENT == "test"
    assert settings.LOG_LEVEL == "INFO"
    assert settings.APPWRITE_PROJECT_ID == "test-project"
    assert settings.APPWRITE_DATABASE_ID == "test-db"


def test_config_has_default_values(monkeypatch):
    """
    Test that coordination limits default to the documented values.
    """
    for name in ("BLOG_SUBMISSION_LIMIT", "BLOG_RATE_LIMIT_WINDOW_HOURS", "INVITE_CODE_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)

    from config import Settings

    settings = Settings(_env_file=None)

    assert settings.BLOG_SUBMISSION_LIMIT == 5
    assert settings.BLOG_RATE_LIMIT_WINDOW_HOURS == 24
    assert settings.INVITE_CODE_MAX_ATTEMPTS == 5
    assert settings.ADMIN_LABEL == "admin"


def test_config_cors_origins_is_list(mock_env):
    """
    Test that ALLOWED_ORIGINS is parsed into a list.
    """
    from config import Settings

    settings = Settings()

    assert settings.cors_origins == ["http://localhost:3000", "http://localhost:5173"]


def test_config_admin_emails_normalized(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", " Ops@Example.com, ,lead@example.com ")

    from config import Settings

    assert Settings().admin_emails == ["ops@example.com", "lead@example.com"]


def test_config_log_level_uppercased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    from config import Settings

    assert Settings().LOG_LEVEL == "DEBUG"


def test_config_rejects_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "CHATTY")

    from config import Settings

    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize("name", ["BLOG_SUBMISSION_LIMIT", "INVITE_CODE_MAX_ATTEMPTS"])
def test_config_rejects_non_positive_limits(monkeypatch, name):
    monkeypatch.setenv(name, "0")

    from config import Settings

    with pytest.raises(ValidationError):
        Settings()


def test_config_validation_enforces_types(monkeypatch):
    """
    Test that Pydantic validates configuration types.
    """
    monkeypatch.setenv("PORT", "not-a-number")

    from config import Settings

    with pytest.raises(ValidationError):
        Settings()
