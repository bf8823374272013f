"""Weekly adherence streaks for habits.

A week counts toward a streak when the habit was completed at least
``weekly_target`` times within it. The current streak is the number of
consecutive qualifying weeks ending with the week that contains the as-of
date, so it is zero whenever the current week's target is not met yet.
"""

from collections import Counter
from datetime import UTC, date, datetime, timedelta, tzinfo

from habitshare.core.config import Constants, WeekStart
from habitshare.core.dates import get_week_start_date, to_calendar_date
from habitshare.domain.completion import CompletionLog
from habitshare.domain.item import Habit


_ONE_WEEK = timedelta(days=Constants.DAYS_PER_WEEK)
_WEEK_SPAN = timedelta(days=Constants.DAYS_PER_WEEK - 1)


def current_streak(
    weekly_target: int,
    completion_log: CompletionLog,
    as_of_date: date | datetime,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
    tz: tzinfo = UTC,
) -> int:
    """Count consecutive qualifying weeks ending with the current week.

    Walks backwards one week at a time from the week containing ``as_of_date``
    and stops at the first week below target. Weeks entirely before the first
    logged completion cannot qualify, which bounds the walk.

    Args:
        weekly_target: Completions needed per week (at least 1)
        completion_log: Completed dates
        as_of_date: Day whose week is the current week
        week_start: First day of the week
        tz: Reference timezone for datetime inputs

    Returns:
        Streak length in weeks (0 for a malformed target or an empty log)
    """
    if weekly_target < Constants.MIN_WEEKLY_TARGET:
        return 0

    earliest = completion_log.earliest()
    if earliest is None:
        return 0

    week = get_week_start_date(to_calendar_date(as_of_date, tz), week_start)
    streak = 0
    while week + _WEEK_SPAN >= earliest:
        if completion_log.count_between(week, week + _WEEK_SPAN) < weekly_target:
            break
        streak += 1
        week -= _ONE_WEEK

    return streak


def longest_streak(
    weekly_target: int,
    completion_log: CompletionLog,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
) -> int:
    """Longest run of consecutive qualifying weeks anywhere in the history."""
    if weekly_target < Constants.MIN_WEEKLY_TARGET:
        return 0

    counts = Counter(get_week_start_date(day, week_start) for day in completion_log.dates())
    qualifying = sorted(week for week, count in counts.items() if count >= weekly_target)

    best = 0
    run = 0
    previous: date | None = None
    for week in qualifying:
        run = run + 1 if previous is not None and week - previous == _ONE_WEEK else 1
        best = max(best, run)
        previous = week

    return best


def habit_streak(
    habit: Habit,
    as_of_date: date | datetime,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
    tz: tzinfo = UTC,
) -> int:
    """Current streak of a habit using its own weekly target."""
    return current_streak(habit.weekly_target, habit.completion_log, as_of_date, week_start=week_start, tz=tz)
