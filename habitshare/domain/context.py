"""Refresh context passed explicitly between agenda builds."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

from habitshare.core.dates import to_aware_datetime


class RefreshContext(BaseModel):
    """When the caller last refreshed, and when share activity was last seen.

    This value is threaded through calls instead of living in process-wide
    state; each refresh returns a new context. Timestamps are always aware;
    naive ones are taken to be UTC.
    """

    model_config = ConfigDict(frozen=True)

    last_refreshed_at: datetime | None = Field(default=None, description="Time of the last completed refresh")
    last_share_activity_at: datetime | None = Field(
        default=None,
        description="Time of the newest share activity known to the caller",
    )

    @field_validator("last_refreshed_at", "last_share_activity_at")
    @classmethod
    def attach_timezone(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken to be UTC."""
        return None if v is None else to_aware_datetime(v)

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        """True if never refreshed or the last refresh is older than ``max_age``."""
        if self.last_refreshed_at is None:
            return True
        return to_aware_datetime(now) - self.last_refreshed_at >= max_age

    def has_unseen_share_activity(self) -> bool:
        """True if share activity happened after the last refresh."""
        if self.last_share_activity_at is None:
            return False
        if self.last_refreshed_at is None:
            return True
        return self.last_share_activity_at > self.last_refreshed_at

    def with_share_activity(self, at: datetime) -> "RefreshContext":
        """Record share activity, keeping the newest timestamp."""
        at = to_aware_datetime(at)
        if self.last_share_activity_at is not None and self.last_share_activity_at >= at:
            return self
        return self.model_copy(update={"last_share_activity_at": at})

    def refreshed(self, now: datetime) -> "RefreshContext":
        """Context after a refresh completed at ``now``."""
        return self.model_copy(update={"last_refreshed_at": to_aware_datetime(now)})
