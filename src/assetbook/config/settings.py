"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / ".assetbook"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "assetbook"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"
    # Overrides log_level for the daily accrual run when set
    accrual_log_level: Optional[str] = None

    # Wall-clock timezone used for calendar days and the daily accrual run
    timezone: str = "Europe/Istanbul"

    # Deposit accrual
    accrual_run_hour: int = Field(default=9, ge=0, le=23)
    accrual_run_minute: int = Field(default=0, ge=0, le=59)
    maturity_warning_days: int = Field(default=7, ge=0)
    accrual_timer_enabled: bool = True

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "assetbook.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
