"""Configuration management for group-ledger."""

from decimal import Decimal
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

    # Caller identity (opaque to the ledger)
    account_id: str = "local"
    account_email: str = "me@localhost"
    account_name: str = ""  # Derived from account_email when empty

    # Group rules
    max_participants: int = 4  # Primary user + 3
    split_tolerance: Decimal = Decimal("0.01")

    # Defaults for new records
    default_category: str = "uncategorized"
    default_color: str = "#4b5563"
    owner_color: str = "#111827"

    # Database path
    database_path: Path = Path.home() / ".group_ledger" / "group_ledger.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your .env file and environment "
            f"variables.\n"
            f"Error: {e}"
        ) from e
