"""Recurrence evaluation for repeat rules.

Decides whether an item occurs on a calendar date. Everything here is pure:
results depend only on the rule, the anchor date, the optional end date and
the query date.

Rule semantics (all variants treat ``repeat_end_date`` as inclusive):
- none: only the anchor date
- daily: every day from the anchor
- weekly: the anchor's weekday, from the anchor
- monthly: the anchor's day of month, from the anchor; shorter months are skipped
- custom days: every N days from the anchor
- custom weeks: selected weekdays in every Nth week counted from the anchor
- custom months: the anchor's day of month in every Nth month

Malformed custom rules never occur. Callers decide whether to log them.
"""

from datetime import date, datetime, time, timedelta

from croniter import croniter

from habitshare.core.config import Constants
from habitshare.core.dates import days_between, month_distance
from habitshare.domain.item import RecurringItem
from habitshare.domain.recurrence import RepeatKind, RepeatRule, RepeatUnit, Weekday, sort_weekdays


def occurs_on(
    rule: RepeatRule,
    anchor_date: date,
    query_date: date,
    repeat_end_date: date | None = None,
) -> bool:
    """Check whether a rule anchored on ``anchor_date`` occurs on ``query_date``.

    Args:
        rule: Repeat rule
        anchor_date: Date the rule is scheduled from
        query_date: Date to test
        repeat_end_date: Optional inclusive last date

    Returns:
        True if the item is due on ``query_date``
    """
    if repeat_end_date is not None and query_date > repeat_end_date:
        return False

    if rule.kind == RepeatKind.NONE:
        return query_date == anchor_date

    if query_date < anchor_date:
        return False

    if rule.kind == RepeatKind.DAILY:
        return True

    if rule.kind == RepeatKind.WEEKLY:
        return query_date.weekday() == anchor_date.weekday()

    if rule.kind == RepeatKind.MONTHLY:
        return query_date.day == anchor_date.day

    return _custom_occurs_on(rule, anchor_date, query_date)


def _custom_occurs_on(rule: RepeatRule, anchor_date: date, query_date: date) -> bool:
    """Evaluate a custom rule for a query date on or after the anchor."""
    if not rule.is_well_formed:
        return False

    frequency = rule.frequency
    assert frequency is not None  # For type checker (is_well_formed guarantees it)

    elapsed_days = days_between(anchor_date, query_date)

    if rule.unit == RepeatUnit.DAYS:
        return elapsed_days % frequency == 0

    if rule.unit == RepeatUnit.WEEKS:
        week_index = elapsed_days // Constants.DAYS_PER_WEEK
        return week_index % frequency == 0 and Weekday.from_date(query_date) in rule.weekdays

    # RepeatUnit.MONTHS
    return month_distance(anchor_date, query_date) % frequency == 0 and query_date.day == anchor_date.day


def item_occurs_on(item: RecurringItem, query_date: date) -> bool:
    """Check whether an item is due on a date, honouring its skipped occurrences."""
    if query_date in item.skipped_dates:
        return False
    return occurs_on(item.repeat_rule, item.anchor_date, query_date, item.repeat_end_date)


def occurrences_between(
    rule: RepeatRule,
    anchor_date: date,
    start: date,
    end: date,
    repeat_end_date: date | None = None,
) -> list[date]:
    """List occurrence dates in the inclusive window [start, end], ascending."""
    first = max(start, anchor_date)
    last = end if repeat_end_date is None else min(end, repeat_end_date)

    occurrences = []
    day = first
    while day <= last:
        if occurs_on(rule, anchor_date, day, repeat_end_date):
            occurrences.append(day)
        day += timedelta(days=1)
    return occurrences


def rule_to_cron(rule: RepeatRule, anchor_date: date) -> str | None:
    """Express a rule as a midnight CRON line when one line can describe it.

    Weekday fields use cron numbering (0 = Sunday). Rules whose step spans more
    than one unit have no CRON form.

    Returns:
        CRON expression, or None
    """
    daily = "0 0 * * *"
    weekly = f"0 0 * * {Weekday.from_date(anchor_date).cron_index}"
    monthly = f"0 0 {anchor_date.day} * *"

    if rule.kind == RepeatKind.DAILY:
        return daily
    if rule.kind == RepeatKind.WEEKLY:
        return weekly
    if rule.kind == RepeatKind.MONTHLY:
        return monthly

    if rule.kind != RepeatKind.CUSTOM or not rule.is_well_formed or rule.frequency != 1:
        return None

    if rule.unit == RepeatUnit.DAYS:
        return daily
    if rule.unit == RepeatUnit.WEEKS:
        days = ",".join(str(w.cron_index) for w in sort_weekdays(rule.weekdays))
        return f"0 0 * * {days}"
    return monthly


def next_occurrence(
    rule: RepeatRule,
    anchor_date: date,
    on_or_after: date,
    repeat_end_date: date | None = None,
) -> date | None:
    """Find the first occurrence on or after a date.

    Uses croniter when the rule has a CRON form, otherwise scans forward up to
    ``Constants.OCCURRENCE_SEARCH_HORIZON_DAYS``.

    Returns:
        Next occurrence date, or None if the rule never occurs again
    """
    start = max(anchor_date, on_or_after)
    if repeat_end_date is not None and start > repeat_end_date:
        return None

    if rule.kind == RepeatKind.NONE:
        return anchor_date if on_or_after <= anchor_date else None

    cron_expr = rule_to_cron(rule, anchor_date)
    if cron_expr is not None:
        # croniter returns the first match strictly after its base time
        base_time = datetime.combine(start, time.min) - timedelta(seconds=1)
        candidate = croniter(cron_expr, base_time).get_next(datetime).date()
        if repeat_end_date is not None and candidate > repeat_end_date:
            return None
        return candidate

    if not rule.is_well_formed:
        return None

    for offset in range(Constants.OCCURRENCE_SEARCH_HORIZON_DAYS):
        day = start + timedelta(days=offset)
        if repeat_end_date is not None and day > repeat_end_date:
            return None
        if occurs_on(rule, anchor_date, day, repeat_end_date):
            return day
    return None


def _ordinal(day: int) -> str:
    """Day of month with its English ordinal suffix (1st, 22nd, 13th)."""
    suffix = "th"
    if day in (1, 21, 31):
        suffix = "st"
    elif day in (2, 22):
        suffix = "nd"
    elif day in (3, 23):
        suffix = "rd"
    return f"{day}{suffix}"


def describe_rule(rule: RepeatRule, anchor_date: date, repeat_end_date: date | None = None) -> str:
    """Convert a rule to human-readable text.

    Returns:
        Description such as "every Monday", "monthly on the 31st" or
        "every 2 weeks on Mon, Fri until 2024-06-30"
    """
    if rule.kind == RepeatKind.NONE:
        return f"once on {anchor_date.isoformat()}"

    if rule.kind == RepeatKind.DAILY:
        text = "daily"
    elif rule.kind == RepeatKind.WEEKLY:
        text = f"every {Weekday.from_date(anchor_date).full_name}"
    elif rule.kind == RepeatKind.MONTHLY:
        text = f"monthly on the {_ordinal(anchor_date.day)}"
    elif not rule.is_well_formed:
        return f"invalid repeat rule ({'; '.join(rule.problems())})"
    elif rule.unit == RepeatUnit.DAYS:
        text = "daily" if rule.frequency == 1 else f"every {rule.frequency} days"
    elif rule.unit == RepeatUnit.WEEKS:
        days = ", ".join(w.label for w in sort_weekdays(rule.weekdays))
        text = f"every week on {days}" if rule.frequency == 1 else f"every {rule.frequency} weeks on {days}"
    else:
        day_text = f"the {_ordinal(anchor_date.day)}"
        text = f"monthly on {day_text}" if rule.frequency == 1 else f"every {rule.frequency} months on {day_text}"

    if repeat_end_date is not None:
        text += f" until {repeat_end_date.isoformat()}"
    return text
