"""Domain models."""

from habitshare.domain.completion import CompletionEntry, CompletionLog
from habitshare.domain.context import RefreshContext
from habitshare.domain.item import Habit, Item, RecurringItem
from habitshare.domain.recurrence import RepeatKind, RepeatRule, RepeatUnit, Weekday
from habitshare.domain.share import MatchConfidence, ParticipantRole, ShareEdge, ShareStatus


__all__ = [
    "CompletionEntry",
    "CompletionLog",
    "Habit",
    "Item",
    "MatchConfidence",
    "ParticipantRole",
    "RecurringItem",
    "RefreshContext",
    "RepeatKind",
    "RepeatRule",
    "RepeatUnit",
    "ShareEdge",
    "ShareStatus",
    "Weekday",
]
