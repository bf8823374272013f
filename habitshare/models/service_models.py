"""Pydantic models for service layer return types.

These models give the computation services typed, serializable results that
list and badge renderers consume directly.
"""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field

from habitshare.domain.share import MatchConfidence, ParticipantRole, ShareStatus


class DayStatus(StrEnum):
    """Per-day state of a habit in a week view."""

    COMPLETED = "completed"
    MISSED = "missed"
    PENDING = "pending"


class WeeklyProgress(BaseModel):
    """Current-week completion count against the weekly target."""

    completed: int
    target: int
    percent: float
    week_start_date: date
    target_met: bool


class ConventionDivergence(BaseModel):
    """Weekly counts under both week-start conventions for the same day."""

    monday_completed: int
    sunday_completed: int
    monday_target_met: bool
    sunday_target_met: bool

    @property
    def diverges(self) -> bool:
        """True when the two conventions disagree on whether the target is met."""
        return self.monday_target_met != self.sunday_target_met


class Participant(BaseModel):
    """Other party of a share, as seen by the current user."""

    user_id: str
    role: ParticipantRole
    status: ShareStatus
    edge_id: str
    confidence: MatchConfidence = MatchConfidence.EXPLICIT


class VisibleItem(BaseModel):
    """Item the current user should see, with share participants attached."""

    item_id: str
    participants: list[Participant] = Field(default_factory=list)

    @property
    def is_shared(self) -> bool:
        """True if anyone else takes part in this item."""
        return bool(self.participants)


class ResolutionResult(BaseModel):
    """Visible item list plus what could not be reconciled."""

    items: list[VisibleItem] = Field(default_factory=list)
    unresolved_references: int = 0
    unresolved_edge_ids: list[str] = Field(default_factory=list)
    low_confidence_edge_ids: list[str] = Field(default_factory=list)

    def item_ids(self) -> list[str]:
        """Visible item IDs in display order."""
        return [item.item_id for item in self.items]


class LegacyMatch(BaseModel):
    """Copy chosen for an edge that carries no copy reference."""

    item_id: str
    confidence: MatchConfidence


class CopyBackfill(BaseModel):
    """Proposed copied_item_id for a legacy share edge."""

    edge_id: str
    copied_item_id: str
    confidence: MatchConfidence


class DueItem(BaseModel):
    """Item occurring on the agenda date."""

    item_id: str
    title: str
    completed: bool


class HabitBadge(BaseModel):
    """Streak and weekly progress shown on a habit card."""

    habit_id: str
    title: str
    streak: int
    progress: WeeklyProgress
    week: list[DayStatus] = Field(default_factory=list)


class DailyAgenda(BaseModel):
    """Everything the day view needs for one user."""

    user_id: str
    on_date: date
    due_items: list[DueItem] = Field(default_factory=list)
    habit_badges: list[HabitBadge] = Field(default_factory=list)
    sharing: ResolutionResult = Field(default_factory=ResolutionResult)
    skipped_records: int = 0
    malformed_rule_item_ids: list[str] = Field(default_factory=list)
