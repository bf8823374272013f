"""Current-week adherence for habits (progress bars and week strips)."""

from datetime import UTC, date, datetime, timedelta, tzinfo

from habitshare.core.config import Constants, WeekStart
from habitshare.core.dates import get_week_start_date, to_calendar_date, week_window
from habitshare.domain.completion import CompletionLog
from habitshare.models.service_models import ConventionDivergence, DayStatus, WeeklyProgress


def weekly_progress(
    weekly_target: int,
    completion_log: CompletionLog,
    now: date | datetime,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
    tz: tzinfo = UTC,
) -> WeeklyProgress:
    """Count this week's completions against the weekly target.

    Uses the same week boundaries as the streak calculator.

    Args:
        weekly_target: Completions needed per week; values below 1 count as 1
        completion_log: Completed dates
        now: Current date or time
        week_start: First day of the week
        tz: Reference timezone for datetime inputs

    Returns:
        WeeklyProgress with percent capped at 100
    """
    target = max(weekly_target, Constants.MIN_WEEKLY_TARGET)
    first, last = week_window(to_calendar_date(now, tz), week_start)
    completed = completion_log.count_between(first, last)
    percent = min(100.0, completed / target * 100)

    return WeeklyProgress(
        completed=completed,
        target=target,
        percent=round(percent, 2),
        week_start_date=first,
        target_met=completed >= target,
    )


def week_status(completion_log: CompletionLog, week_start_date: date, today: date) -> list[DayStatus]:
    """Status of each of the seven days starting at ``week_start_date``.

    Completed days are COMPLETED, earlier days without a completion are MISSED,
    and today or later days are PENDING.
    """
    statuses = []
    for offset in range(Constants.DAYS_PER_WEEK):
        day = week_start_date + timedelta(days=offset)
        if day in completion_log:
            statuses.append(DayStatus.COMPLETED)
        elif day < today:
            statuses.append(DayStatus.MISSED)
        else:
            statuses.append(DayStatus.PENDING)
    return statuses


def week_convention_divergence(
    weekly_target: int,
    completion_log: CompletionLog,
    now: date | datetime,
    *,
    tz: tzinfo = UTC,
) -> ConventionDivergence:
    """Compare this week's progress under Monday and Sunday week starts.

    Older clients counted weeks from Sunday in the progress bar and from Monday
    in the streak. This measures where switching everything to Monday changes
    what a user sees.
    """
    monday = weekly_progress(weekly_target, completion_log, now, week_start=WeekStart.MONDAY, tz=tz)
    sunday = weekly_progress(weekly_target, completion_log, now, week_start=WeekStart.SUNDAY, tz=tz)
    return ConventionDivergence(
        monday_completed=monday.completed,
        sunday_completed=sunday.completed,
        monday_target_met=monday.target_met,
        sunday_target_met=sunday.target_met,
    )


def current_week_start(now: date | datetime, *, week_start: WeekStart = WeekStart.MONDAY, tz: tzinfo = UTC) -> date:
    """First day of the week containing ``now``."""
    return get_week_start_date(to_calendar_date(now, tz), week_start)
