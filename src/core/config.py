"""Configuration management for schedshare."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="./data/schedshare.db", description="Path to the SQLite database file")
    sqlite_busy_timeout_ms: int = Field(
        default=5000, description="How long a writer waits for the SQLite write lock before failing"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Sharing Configuration
    default_agenda_days: int = Field(default=7, description="Default horizon (in days) for the upcoming agenda")
    max_selected_tasks: int = Field(
        default=500, description="Maximum number of task ids a selective share may reference"
    )
    user_search_limit: int = Field(default=5, description="Maximum recipients returned by user search")

    # Admin Analytics Configuration
    admin_list_default_limit: int = Field(default=50, description="Default page size for the admin share list")
    admin_timeline_default_days: int = Field(default=30, description="Default window for the admin share timeline")

    @property
    def is_production(self) -> bool:
        """Return True when running in the production environment."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Identity
    PRINCIPAL_HEADER: str = "X-Principal-Id"

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500

    # Recipient search
    MIN_SEARCH_QUERY_LENGTH: int = 2
    MASKED_EMAIL_VISIBLE_CHARS: int = 2

    # Analytics
    RECENT_ACTIVITY_DAYS: int = 7  # Window for "new" and "accepted" counters in the admin summary


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
