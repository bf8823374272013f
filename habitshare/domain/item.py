"""Item, recurring item and habit domain models."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from habitshare.core.config import Constants
from habitshare.core.dates import to_aware_datetime
from habitshare.domain.completion import CompletionLog
from habitshare.domain.recurrence import RepeatRule


class Item(BaseModel):
    """Anything a user owns and can share (task, habit, event, note)."""

    id: str = Field(..., description="Unique item ID from the record store")
    owner_id: str = Field(..., description="User ID of the owner")
    title: str = Field(default="", description="Display title")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")

    @field_validator("created_at")
    @classmethod
    def attach_timezone(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken to be UTC."""
        return None if v is None else to_aware_datetime(v)


class RecurringItem(Item):
    """Item scheduled from an anchor date by a repeat rule."""

    anchor_date: date = Field(..., description="Date the rule is scheduled from")
    repeat_rule: RepeatRule = Field(default_factory=RepeatRule.none, description="Repeat rule")
    repeat_end_date: date | None = Field(default=None, description="Inclusive last possible occurrence")
    completion_log: CompletionLog = Field(default_factory=CompletionLog, description="Dates marked done")
    skipped_dates: frozenset[date] = Field(
        default_factory=frozenset,
        description="Single occurrences removed without changing the rule",
    )

    def is_completed_on(self, day: date) -> bool:
        """True if the owner marked ``day`` done."""
        return day in self.completion_log


class Habit(RecurringItem):
    """Recurring item with a weekly adherence target."""

    weekly_target: int = Field(
        default=1,
        ge=Constants.MIN_WEEKLY_TARGET,
        le=Constants.MAX_WEEKLY_TARGET,
        description="Completions per week needed for the week to count toward a streak",
    )
