"""Repeat-rule domain models and enums."""

from collections.abc import Iterable, Mapping
from datetime import date
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RepeatKind(StrEnum):
    """Top-level repeat option chosen by the owner."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class RepeatUnit(StrEnum):
    """Step unit of a custom rule."""

    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class Weekday(StrEnum):
    """Day of the week, stored by short name."""

    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        """Weekday of a calendar date."""
        return _WEEKDAY_ORDER[day.weekday()]

    @property
    def iso_index(self) -> int:
        """Python weekday index (0 = Monday)."""
        return _WEEKDAY_ORDER.index(self)

    @property
    def cron_index(self) -> int:
        """Cron day-of-week index (0 = Sunday)."""
        return (self.iso_index + 1) % 7

    @property
    def label(self) -> str:
        """Short display label (e.g. 'Mon')."""
        return self.value.capitalize()

    @property
    def full_name(self) -> str:
        """Full display name (e.g. 'Monday')."""
        return _FULL_NAMES[self.iso_index]


_WEEKDAY_ORDER = [Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI, Weekday.SAT, Weekday.SUN]
_FULL_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def sort_weekdays(weekdays: Iterable[Weekday]) -> list[Weekday]:
    """Order weekdays Monday first."""
    return sorted(weekdays, key=lambda w: w.iso_index)


def _normalize_weekday(value: Any) -> Weekday | str:
    """Map a short or full weekday name to Weekday, keeping unknown names as lowercase strings."""
    if isinstance(value, Weekday):
        return value
    name = str(value).strip().lower()
    try:
        return Weekday(name[:3])
    except ValueError:
        return name


def _unknown_weekdays(weekdays: Iterable[Weekday | str]) -> list[str]:
    return [w for w in weekdays if not isinstance(w, Weekday)]


class RepeatRule(BaseModel):
    """How an item repeats relative to its anchor date.

    Custom parameters are stored as given, including malformed ones (frequency
    below 1, an unknown unit or weekday name, a weeks rule with no weekdays), so
    evaluation can answer "never occurs" instead of failing to load the item.
    """

    model_config = ConfigDict(frozen=True)

    kind: RepeatKind = Field(default=RepeatKind.NONE, description="Repeat option")
    frequency: int | None = Field(default=None, description="Custom step size (every N units)")
    unit: RepeatUnit | str | None = Field(
        default=None,
        union_mode="left_to_right",
        description="Custom step unit",
    )
    weekdays: frozenset[Annotated[Weekday | str, Field(union_mode="left_to_right")]] = Field(
        default_factory=frozenset,
        description="Weekdays on which a custom weeks rule occurs",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        """Accept any capitalisation ('Daily', 'WEEKLY') and empty values as none."""
        if v is None or v == "":
            return RepeatKind.NONE
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("unit", mode="before")
    @classmethod
    def normalize_unit(cls, v: Any) -> Any:
        """Map known unit names to RepeatUnit and keep unknown ones as raw strings."""
        if isinstance(v, str):
            v = v.strip().lower()
            if not v:
                return None
            try:
                return RepeatUnit(v)
            except ValueError:
                return v
        return v

    @field_validator("weekdays", mode="before")
    @classmethod
    def normalize_weekdays(cls, v: Any) -> Any:
        """Accept short or full weekday names in any case and keep unknown names as raw strings."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.split(",")
        return frozenset(_normalize_weekday(w) for w in v if isinstance(w, Weekday) or str(w).strip())

    @classmethod
    def none(cls) -> "RepeatRule":
        """One-off item."""
        return cls(kind=RepeatKind.NONE)

    @classmethod
    def daily(cls) -> "RepeatRule":
        """Every day from the anchor."""
        return cls(kind=RepeatKind.DAILY)

    @classmethod
    def weekly(cls) -> "RepeatRule":
        """Every week on the anchor's weekday."""
        return cls(kind=RepeatKind.WEEKLY)

    @classmethod
    def monthly(cls) -> "RepeatRule":
        """Every month on the anchor's day of month."""
        return cls(kind=RepeatKind.MONTHLY)

    @classmethod
    def custom(
        cls,
        frequency: int,
        unit: RepeatUnit | str,
        weekdays: Iterable[Weekday | str] | None = None,
    ) -> "RepeatRule":
        """Every ``frequency`` units, optionally restricted to weekdays for weeks rules."""
        return cls(kind=RepeatKind.CUSTOM, frequency=frequency, unit=unit, weekdays=weekdays or frozenset())

    def problems(self) -> list[str]:
        """Describe what makes this rule malformed (empty when well formed)."""
        if self.kind != RepeatKind.CUSTOM:
            return []

        issues = []
        if self.frequency is None or self.frequency < 1:
            issues.append(f"frequency must be at least 1, got {self.frequency}")
        if not isinstance(self.unit, RepeatUnit):
            issues.append(f"unknown repeat unit {self.unit!r}")
        elif self.unit == RepeatUnit.WEEKS and not self.weekdays:
            issues.append("weeks rule has no weekdays selected")
        elif self.unit == RepeatUnit.WEEKS:
            issues.extend(f"unknown weekday {w!r}" for w in sorted(_unknown_weekdays(self.weekdays)))
        return issues

    @property
    def is_well_formed(self) -> bool:
        """True when the rule can produce occurrences."""
        return not self.problems()

    def to_record(self) -> dict[str, Any]:
        """Serialize to the storage columns used by item records."""
        if self.kind != RepeatKind.CUSTOM:
            return {
                "repeat_type": str(self.kind),
                "custom_repeat_frequency": None,
                "custom_repeat_unit": None,
                "custom_repeat_weekdays": [],
            }
        return {
            "repeat_type": str(self.kind),
            "custom_repeat_frequency": self.frequency,
            "custom_repeat_unit": None if self.unit is None else str(self.unit),
            "custom_repeat_weekdays": [
                *(str(w) for w in sort_weekdays(w for w in self.weekdays if isinstance(w, Weekday))),
                *sorted(_unknown_weekdays(self.weekdays)),
            ],
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RepeatRule":
        """Build a rule from storage columns.

        Raises:
            pydantic.ValidationError: If the repeat type is unknown
        """
        kind = record.get("repeat_type")
        if kind is None or str(kind).strip().lower() != RepeatKind.CUSTOM:
            return cls(kind=kind)
        return cls(
            kind=RepeatKind.CUSTOM,
            frequency=record.get("custom_repeat_frequency"),
            unit=record.get("custom_repeat_unit"),
            weekdays=record.get("custom_repeat_weekdays") or frozenset(),
        )
