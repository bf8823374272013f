"""Configuration management for habitshare."""

from enum import StrEnum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WeekStart(StrEnum):
    """First day of a habit week."""

    MONDAY = "monday"
    SUNDAY = "sunday"  # Legacy client convention, kept only for comparison


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HABITSHARE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Calendar Configuration
    reference_timezone: str = Field(
        default="UTC",
        description="IANA timezone in which timestamps are reduced to calendar dates",
    )
    week_start: WeekStart = Field(
        default=WeekStart.MONDAY,
        description="First day of the week for streaks and weekly progress",
    )

    # Sharing Configuration
    legacy_match_window_hours: int = Field(
        default=24,
        ge=0,
        description="Maximum gap between a legacy share edge and a candidate copy (0 disables the cap)",
    )

    # Refresh Configuration
    refresh_interval_seconds: int = Field(
        default=300,
        ge=0,
        description="Age after which a refresh context is considered stale",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment reported to Logfire")

    @field_validator("reference_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Reference timezone as a tzinfo object."""
        return ZoneInfo(self.reference_timezone)


# Application Constants
class Constants:
    """Application-wide constants."""

    DAYS_PER_WEEK: int = 7

    # Weekly target bounds for habits
    MIN_WEEKLY_TARGET: int = 1
    MAX_WEEKLY_TARGET: int = 7

    # Upper bound for forward scans when a rule has no cron form (~10 years)
    OCCURRENCE_SEARCH_HORIZON_DAYS: int = 3660

    # Copy ids written by the legacy client when a recipient accepted a share
    LEGACY_COPY_ID_PREFIX: str = "accepted"

    # Record store collections
    COLLECTION_TASKS: str = "tasks"
    COLLECTION_HABITS: str = "habits"
    COLLECTION_SHARE_EDGES: str = "share_edges"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
