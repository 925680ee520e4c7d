"""
Runtime settings for the coordination API.

Everything comes from the environment (or a local ``.env``); the Appwrite
and Resend credentials default to empty so tests and tooling can import
the module without a configured deployment.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings. Names match the variables one to one."""

    # Application settings
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    API_VERSION: str = Field(default="v1", description="API version prefix")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Server settings
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    # Appwrite document store
    APPWRITE_ENDPOINT: str = Field(
        default="https://cloud.appwrite.io/v1", description="Appwrite API endpoint"
    )
    APPWRITE_PROJECT_ID: str = Field(default="", description="Appwrite project ID")
    APPWRITE_API_KEY: str = Field(default="", description="Appwrite server API key")
    APPWRITE_DATABASE_ID: str = Field(default="", description="Appwrite database ID")
    APPWRITE_TIMEOUT: float = Field(default=30.0, description="Appwrite request timeout")

    # Session verification
    AUTH_TIMEOUT: float = Field(default=10.0, description="Session verification timeout")

    # Admin authorization
    ADMIN_LABEL: str = Field(default="admin", description="User label granting admin access")
    ADMIN_EMAILS: str = Field(
        default="", description="Comma-separated admin email allow-list"
    )

    # Coordination limits
    BLOG_SUBMISSION_LIMIT: int = Field(default=5, description="Blog posts per user per window")
    BLOG_RATE_LIMIT_WINDOW_HOURS: int = Field(
        default=24, description="Rolling window for the blog submission quota"
    )
    INVITE_CODE_MAX_ATTEMPTS: int = Field(
        default=5, description="Attempts to find an unused team invite code"
    )

    # Email delivery
    RESEND_API_URL: str = Field(default="https://api.resend.com", description="Resend API base URL")
    RESEND_API_KEY: str = Field(default="", description="Resend API key")
    EMAIL_FROM: str = Field(
        default="Community <events@example.com>", description="Sender for outgoing email"
    )
    SITE_NAME: str = Field(default="Community Platform", description="Name used in emails")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
    )

    @property
    def cors_origins(self) -> list[str]:
        """
        Parse comma-separated CORS origins into a list.

        Returns:
            List of origin strings
        """
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_emails(self) -> list[str]:
        """Lower-cased admin email allow-list."""
        return [email.strip().lower() for email in self.ADMIN_EMAILS.split(",") if email.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate log level is one of the standard Python logging levels.

        Args:
            v: Log level string

        Returns:
            Uppercase log level string

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    @field_validator("BLOG_SUBMISSION_LIMIT", "INVITE_CODE_MAX_ATTEMPTS", "BLOG_RATE_LIMIT_WINDOW_HOURS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Limits and attempt counts must be at least 1."""
        if v < 1:
            raise ValueError("must be a positive integer")
        return v


# Singleton instance
settings = Settings()
