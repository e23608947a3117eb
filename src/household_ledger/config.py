"""Configuration management for Household Ledger."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Household data service (PostgREST / Supabase)
    supabase_url: str
    supabase_api_key: str
    supabase_access_token: str | None = None  # Falls back to the API key

    # Household to compute balances for
    household_id: str

    # Display settings
    impacting_preview_limit: int = 20  # "first 20, plus N more"

    # HTTP settings
    request_timeout: float = 30.0

    # Snapshot cache path
    database_path: Path = Path.home() / ".household_ledger" / "household_ledger.db"

    def __init__(self, **kwargs):
        """Initialize settings and create the cache directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Make sure you have created a .env file "
            f"with SUPABASE_URL, SUPABASE_API_KEY and HOUSEHOLD_ID set.\n"
            f"Error: {e}"
        ) from e
