"""Agenda service: builds a user's day view from store records.

Loads items, habits and share edges through a RecordStore, then combines:
- the recurrence evaluator for "due today"
- the streak calculator and adherence tracker for habit badges
- the shared-item resolver for the de-duplicated item list

Unreadable records and malformed repeat rules are logged and counted rather
than failing the view. Store failures propagate to the caller.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import TypeVar

from habitshare.core.config import Constants, Settings, WeekStart, settings
from habitshare.core.errors import ErrorCode, RecordParseError, RecordStoreError
from habitshare.core.logging import log_with_context, log_with_user_context, span
from habitshare.core.record_store import RecordStore, eq_filter
from habitshare.core.records import parse_habit_record, parse_item_record, parse_share_edge_record
from habitshare.domain.context import RefreshContext
from habitshare.domain.item import Habit, RecurringItem
from habitshare.domain.share import ShareEdge
from habitshare.models.service_models import DailyAgenda, DueItem, HabitBadge
from habitshare.services.adherence_service import current_week_start, week_status, weekly_progress
from habitshare.services.recurrence_service import item_occurs_on
from habitshare.services.sharing_service import visible_items
from habitshare.services.streak_service import habit_streak


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_all(
    records: list[dict],
    parser: Callable[[dict], T],
) -> tuple[list[T], int]:
    """Parse records, skipping (and logging) the unreadable ones."""
    parsed = []
    skipped = 0
    for record in records:
        try:
            parsed.append(parser(record))
        except RecordParseError as e:
            skipped += 1
            log_with_context(
                logger,
                "warning",
                "Skipping unreadable record",
                collection=e.collection,
                record_id=e.record_id,
                error_code=ErrorCode.ERR_INVALID_RECORD,
                reason=e.reason,
            )
    return parsed, skipped


async def _list(store: RecordStore, *, collection: str, filter_query: str, user_id: str) -> list[dict]:
    try:
        return await store.list_records(collection=collection, filter_query=filter_query)
    except RecordStoreError:
        log_with_user_context(logger, "error", f"Failed to list {collection}", user_id=user_id)
        raise


async def load_items(store: RecordStore, *, owner_id: str, tz: tzinfo = UTC) -> tuple[list[RecurringItem], int]:
    """Load a user's tasks.

    Returns:
        Tuple of (items, number of skipped records)

    Raises:
        RecordStoreError: If the store query fails
    """
    with span("agenda_service.load_items"):
        records = await _list(
            store,
            collection=Constants.COLLECTION_TASKS,
            filter_query=eq_filter("user_id", owner_id),
            user_id=owner_id,
        )
        return _parse_all(records, lambda r: parse_item_record(r, tz=tz))


async def load_habits(store: RecordStore, *, owner_id: str, tz: tzinfo = UTC) -> tuple[list[Habit], int]:
    """Load a user's habits.

    Returns:
        Tuple of (habits, number of skipped records)

    Raises:
        RecordStoreError: If the store query fails
    """
    with span("agenda_service.load_habits"):
        records = await _list(
            store,
            collection=Constants.COLLECTION_HABITS,
            filter_query=eq_filter("user_id", owner_id),
            user_id=owner_id,
        )
        return _parse_all(records, lambda r: parse_habit_record(r, tz=tz))


async def load_share_edges(store: RecordStore, *, user_id: str, tz: tzinfo = UTC) -> tuple[list[ShareEdge], int]:
    """Load share edges where the user is sender or recipient.

    Returns:
        Tuple of (edges, number of skipped records)

    Raises:
        RecordStoreError: If the store query fails
    """
    with span("agenda_service.load_share_edges"):
        records = await _list(
            store,
            collection=Constants.COLLECTION_SHARE_EDGES,
            filter_query=f"{eq_filter('shared_by', user_id)} || {eq_filter('shared_with', user_id)}",
            user_id=user_id,
        )
        return _parse_all(records, lambda r: parse_share_edge_record(r, tz=tz))


def due_items(items: Sequence[RecurringItem], on_date: date) -> tuple[list[DueItem], list[str]]:
    """Items due on a date, plus the IDs of items whose rule is malformed.

    Malformed rules never occur; they are logged here so they can be fixed.
    """
    due = []
    malformed = []
    for item in items:
        problems = item.repeat_rule.problems()
        if problems:
            malformed.append(item.id)
            log_with_context(
                logger,
                "warning",
                "Malformed repeat rule",
                item_id=item.id,
                error_code=ErrorCode.ERR_MALFORMED_RULE,
                problems=problems,
            )
            continue
        if item_occurs_on(item, on_date):
            due.append(DueItem(item_id=item.id, title=item.title, completed=item.is_completed_on(on_date)))
    return due, malformed


def habit_badges(
    habits: Sequence[Habit],
    on_date: date,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
) -> list[HabitBadge]:
    """Streak, weekly progress and week strip for each habit."""
    first_day = current_week_start(on_date, week_start=week_start)
    return [
        HabitBadge(
            habit_id=habit.id,
            title=habit.title,
            streak=habit_streak(habit, on_date, week_start=week_start),
            progress=weekly_progress(habit.weekly_target, habit.completion_log, on_date, week_start=week_start),
            week=week_status(habit.completion_log, first_day, on_date),
        )
        for habit in habits
    ]


def should_refresh(context: RefreshContext, now: datetime, app_settings: Settings = settings) -> bool:
    """True if the context is stale or share activity arrived since the last refresh."""
    max_age = timedelta(seconds=app_settings.refresh_interval_seconds)
    return context.is_stale(now, max_age) or context.has_unseen_share_activity()


async def build_agenda(
    store: RecordStore,
    *,
    user_id: str,
    on_date: date,
    context: RefreshContext,
    now: datetime,
    app_settings: Settings = settings,
) -> tuple[DailyAgenda, RefreshContext]:
    """Build the day view for a user.

    Args:
        store: Record store to read from
        user_id: User whose agenda is built
        on_date: Calendar date of the view
        context: Refresh context from the previous build
        now: Current time, recorded as the refresh time
        app_settings: Settings providing timezone, week start and legacy match window

    Returns:
        Tuple of (agenda, updated refresh context)

    Raises:
        RecordStoreError: If the store cannot be read
    """
    with span("agenda_service.build_agenda"):
        tz = app_settings.tzinfo

        items, skipped_items = await load_items(store, owner_id=user_id, tz=tz)
        habits, skipped_habits = await load_habits(store, owner_id=user_id, tz=tz)
        edges, skipped_edges = await load_share_edges(store, user_id=user_id, tz=tz)

        window_hours = app_settings.legacy_match_window_hours
        sharing = visible_items(
            [*items, *habits],
            edges,
            user_id,
            legacy_match_window=timedelta(hours=window_hours) if window_hours else None,
        )
        if sharing.unresolved_references:
            log_with_user_context(
                logger,
                "warning",
                "Unresolved share edges",
                user_id=user_id,
                error_code=ErrorCode.ERR_UNRESOLVED_SHARE,
                edge_ids=sharing.unresolved_edge_ids,
            )
        if sharing.low_confidence_edge_ids:
            log_with_user_context(
                logger,
                "info",
                "Legacy share edges matched by timestamp",
                user_id=user_id,
                error_code=ErrorCode.ERR_LOW_CONFIDENCE_SHARE,
                edge_ids=sharing.low_confidence_edge_ids,
            )

        visible_ids = set(sharing.item_ids())
        due, malformed = due_items([*items, *habits], on_date)

        agenda = DailyAgenda(
            user_id=user_id,
            on_date=on_date,
            due_items=[d for d in due if d.item_id in visible_ids],
            habit_badges=habit_badges(
                [h for h in habits if h.id in visible_ids],
                on_date,
                week_start=app_settings.week_start,
            ),
            sharing=sharing,
            skipped_records=skipped_items + skipped_habits + skipped_edges,
            malformed_rule_item_ids=malformed,
        )

        new_context = context
        share_times = [edge.created_at for edge in edges if edge.created_at is not None]
        if share_times:
            new_context = new_context.with_share_activity(max(share_times))
        new_context = new_context.refreshed(now)

        logger.info(
            "Built agenda for %s on %s: %d due, %d habits, %d visible",
            user_id,
            on_date.isoformat(),
            len(agenda.due_items),
            len(agenda.habit_badges),
            len(sharing.items),
        )

        return agenda, new_context
