"""
Configuration Management for Sitebook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All process configuration is centralized here.
Project-level preferences (project name, budget, sheet URLs) live in the
record snapshot instead, because they travel with backups.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """Apps Script push-sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETS_SYNC_",
        extra="ignore"
    )

    backend: Literal["apps_script", "google_sheets"] = Field(
        default="apps_script",
        description="Where pushes go: the project's Apps Script URL or the Sheets API"
    )
    script_url: Optional[str] = Field(
        default=None,
        description="Fallback Apps Script web-app URL when the project has none"
    )
    timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=120,
        description="HTTP timeout for one sync request"
    )
    retry_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Transport-level attempts per sync"
    )


class GoogleSheetsSettings(BaseSettings):
    """Service-account Google Sheets mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to mirror into"
    )

    # Sheet names within the spreadsheet
    incomes_sheet_name: str = Field(
        default="Direct_Incomes",
        description="Name of the sheet for direct incomes"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    payments_sheet_name: str = Field(
        default="Labour_Payments",
        description="Name of the sheet for labour payments"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before enabling the sheets mirror."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Local persistence
    data_file: Optional[str] = Field(
        default=None,
        description="JSON file holding all records. In-memory only when unset"
    )
    export_dir: str = Field(
        default="exports",
        description="Directory for CSV reports and JSON backups"
    )

    # Validation thresholds
    max_amount_inr: float = Field(
        default=5000000.0,
        gt=0,
        description="Amount above which an entry is flagged for a second look"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a record date can be"
    )

    @property
    def data_path(self) -> Optional[Path]:
        """Get the data file as a Path, if configured."""
        return Path(self.data_file) if self.data_file else None

    @property
    def export_path(self) -> Path:
        """Get the export directory as a Path."""
        return Path(self.export_dir)


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.sync
        results["sync"] = True
    except Exception as e:
        results["sync"] = False
        results["sync_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
