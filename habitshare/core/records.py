"""Conversion between plain store records and domain objects.

Records use the client's column names (``user_id``, ``date``, ``repeat_type``,
``completed_days``, ``shared_by`` ...). Timestamps are converted to the
reference timezone before dates are taken from them.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from habitshare.core.config import Constants
from habitshare.core.dates import to_aware_datetime, to_calendar_date
from habitshare.core.errors import RecordParseError
from habitshare.domain.completion import CompletionLog
from habitshare.domain.item import Habit, RecurringItem
from habitshare.domain.recurrence import RepeatRule
from habitshare.domain.share import ShareEdge


# Per-type original columns written by older clients
_ORIGINAL_ID_KEYS = ("original_item_id", "original_task_id", "original_habit_id", "original_event_id")
_COPY_ID_KEYS = ("copied_item_id", "copied_task_id", "copied_habit_id", "copied_event_id")


def _first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Value of the first key that holds something other than None or ''."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _optional_date(value: Any, tz: tzinfo) -> date | None:
    if value is None or value == "":
        return None
    return to_calendar_date(value, tz)


def _optional_timestamp(value: Any, tz: tzinfo) -> datetime | None:
    if value is None or value == "":
        return None
    return to_aware_datetime(value, tz)


def _item_fields(record: Mapping[str, Any], tz: tzinfo) -> dict[str, Any]:
    """Fields shared by recurring items and habits."""
    created_at = _optional_timestamp(_first_present(record, ("created_at", "created")), tz)

    anchor_raw = _first_present(record, ("date", "anchor_date"))
    if anchor_raw is not None:
        anchor_date = to_calendar_date(anchor_raw, tz)
    elif created_at is not None:
        anchor_date = to_calendar_date(created_at, tz)
    else:
        raise ValueError("record has neither a date nor a creation timestamp")

    return {
        "id": str(record["id"]),
        "owner_id": str(_first_present(record, ("user_id", "owner_id"))),
        "title": _first_present(record, ("title", "text")) or "",
        "created_at": created_at,
        "anchor_date": anchor_date,
        "repeat_rule": RepeatRule.from_record(record),
        "repeat_end_date": _optional_date(record.get("repeat_end_date"), tz),
        "completion_log": CompletionLog.from_legacy(
            record.get("completed_days") or [],
            notes=record.get("notes") or {},
            photos=record.get("photos") or {},
            tz=tz,
        ),
        "skipped_dates": frozenset(to_calendar_date(d, tz) for d in record.get("deleted_instances") or []),
    }


def parse_item_record(
    record: Mapping[str, Any],
    *,
    collection: str = Constants.COLLECTION_TASKS,
    tz: tzinfo = UTC,
) -> RecurringItem:
    """Parse a task or event record.

    Raises:
        RecordParseError: If the record is missing fields or holds invalid values
    """
    try:
        if _first_present(record, ("user_id", "owner_id")) is None:
            raise ValueError("record has no owner")
        return RecurringItem(**_item_fields(record, tz))
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise RecordParseError(collection, _record_id(record), str(e)) from e


def parse_habit_record(record: Mapping[str, Any], *, tz: tzinfo = UTC) -> Habit:
    """Parse a habit record; a missing or zero ``target_per_week`` means 1.

    Raises:
        RecordParseError: If the record is missing fields or holds invalid values
    """
    try:
        if _first_present(record, ("user_id", "owner_id")) is None:
            raise ValueError("record has no owner")
        fields = _item_fields(record, tz)
        weekly_target = _first_present(record, ("target_per_week", "weekly_target")) or Constants.MIN_WEEKLY_TARGET
        return Habit(**fields, weekly_target=weekly_target)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise RecordParseError(Constants.COLLECTION_HABITS, _record_id(record), str(e)) from e


def parse_share_edge_record(record: Mapping[str, Any], *, tz: tzinfo = UTC) -> ShareEdge:
    """Parse a share edge record.

    Raises:
        RecordParseError: If the record is missing fields or holds invalid values
    """
    try:
        return ShareEdge(
            id=str(record["id"]),
            original_item_id=_first_present(record, _ORIGINAL_ID_KEYS),
            copied_item_id=_first_present(record, _COPY_ID_KEYS),
            sender_id=_first_present(record, ("shared_by", "sender_id")),
            recipient_id=_first_present(record, ("shared_with", "recipient_id")),
            status=record.get("status") or "pending",
            created_at=_optional_timestamp(_first_present(record, ("created_at", "created")), tz),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise RecordParseError(Constants.COLLECTION_SHARE_EDGES, _record_id(record), str(e)) from e


def item_to_record(item: RecurringItem) -> dict[str, Any]:
    """Serialize a recurring item (or habit) back to record columns."""
    record: dict[str, Any] = {
        "id": item.id,
        "user_id": item.owner_id,
        "title": item.title,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "date": item.anchor_date.isoformat(),
        "repeat_end_date": item.repeat_end_date.isoformat() if item.repeat_end_date else None,
        "deleted_instances": sorted(d.isoformat() for d in item.skipped_dates),
        **item.repeat_rule.to_record(),
        **item.completion_log.to_legacy(),
    }
    if isinstance(item, Habit):
        record["target_per_week"] = item.weekly_target
    return record


def _record_id(record: Mapping[str, Any]) -> str | None:
    value = record.get("id") if isinstance(record, Mapping) else None
    return None if value is None else str(value)
