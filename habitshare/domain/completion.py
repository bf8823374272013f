"""Completion log domain models."""

from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, tzinfo
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_serializer, field_validator

from habitshare.core.dates import to_calendar_date


class CompletionEntry(BaseModel):
    """What was recorded alongside a completed day."""

    model_config = ConfigDict(frozen=True)

    note: str | None = Field(default=None, description="Free-text note for the day")
    photo_url: str | None = Field(default=None, description="Proof photo for the day")


class CompletionLog(BaseModel):
    """Ordered mapping from completed calendar date to its entry.

    Each date appears at most once and entries are always held in ascending
    date order. The log is frozen and ``entries`` is a read-only view, so
    changes produce a new log.
    """

    model_config = ConfigDict(frozen=True)

    entries: Mapping[date, CompletionEntry] = Field(default_factory=dict, validate_default=True)

    _dates: tuple[date, ...] = PrivateAttr(default_factory=tuple)

    @field_validator("entries")
    @classmethod
    def sort_by_date(cls, v: Mapping[date, CompletionEntry]) -> Mapping[date, CompletionEntry]:
        """Hold entries in ascending date order behind a read-only view."""
        return MappingProxyType(dict(sorted(v.items())))

    @field_serializer("entries")
    def serialize_entries(self, v: Mapping[date, CompletionEntry]) -> dict[date, CompletionEntry]:
        return dict(v)

    def model_post_init(self, __context: Any) -> None:
        """Cache the sorted date list for range queries."""
        self._dates = tuple(self.entries)

    def __contains__(self, day: object) -> bool:
        return day in self.entries

    def __len__(self) -> int:
        return len(self._dates)

    def dates(self) -> list[date]:
        """Completed dates in ascending order."""
        return list(self._dates)

    def get(self, day: date) -> CompletionEntry | None:
        """Entry for a date, or None if the date is not completed."""
        return self.entries.get(day)

    def earliest(self) -> date | None:
        """First completed date, if any."""
        return self._dates[0] if self._dates else None

    def latest(self) -> date | None:
        """Last completed date, if any."""
        return self._dates[-1] if self._dates else None

    def count_between(self, start: date, end: date) -> int:
        """Number of completed dates in the inclusive range [start, end]."""
        if end < start:
            return 0
        return bisect_right(self._dates, end) - bisect_left(self._dates, start)

    def with_completion(self, day: date, entry: CompletionEntry | None = None) -> "CompletionLog":
        """Return a new log with ``day`` marked done.

        A given ``entry`` replaces the existing one; without it an existing entry is kept.
        """
        return CompletionLog(entries={**self.entries, day: entry or self.entries.get(day) or CompletionEntry()})

    def without_completion(self, day: date) -> "CompletionLog":
        """Return a new log with ``day`` no longer marked done."""
        return CompletionLog(entries={d: e for d, e in self.entries.items() if d != day})

    @classmethod
    def from_dates(cls, days: Iterable[date | datetime | str], tz: tzinfo = UTC) -> "CompletionLog":
        """Build a log from bare completed dates; duplicates collapse to one entry."""
        return cls(entries={to_calendar_date(d, tz): CompletionEntry() for d in days})

    @classmethod
    def from_legacy(
        cls,
        completed_days: Iterable[date | datetime | str],
        notes: Mapping[str, str] | None = None,
        photos: Mapping[str, str] | None = None,
        tz: tzinfo = UTC,
    ) -> "CompletionLog":
        """Build a log from the loosely-typed shape of older records.

        Older records keep a list of completed day strings plus separate
        ``{date: text}`` dictionaries for notes and photos. Notes and photos for
        days that are not completed are dropped.

        Raises:
            ValueError: If a date string cannot be parsed
        """
        notes_by_day = {to_calendar_date(k, tz): v for k, v in (notes or {}).items() if v}
        photos_by_day = {to_calendar_date(k, tz): v for k, v in (photos or {}).items() if v}

        entries = {}
        for raw in completed_days:
            day = to_calendar_date(raw, tz)
            entries[day] = CompletionEntry(note=notes_by_day.get(day), photo_url=photos_by_day.get(day))
        return cls(entries=entries)

    def to_legacy(self) -> dict[str, Any]:
        """Serialize back to the ``completed_days``/``notes``/``photos`` record shape."""
        return {
            "completed_days": [d.isoformat() for d in self._dates],
            "notes": {d.isoformat(): e.note for d, e in self.entries.items() if e.note},
            "photos": {d.isoformat(): e.photo_url for d, e in self.entries.items() if e.photo_url},
        }
