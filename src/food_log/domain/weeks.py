"""Monday-anchored week keys.

A week key counts whole Monday-to-Sunday weeks from the Unix epoch. The epoch
(1970-01-01) is a Thursday, so its week starts on Monday 1969-12-29, which is
key 0. Every call site that derives a week boundary goes through this module.
"""

from datetime import date, datetime, timedelta

EPOCH = date(1970, 1, 1)
DAYS_PER_WEEK = 7
# Days from the Monday of the epoch week to the epoch itself.
_EPOCH_WEEKDAY_OFFSET = EPOCH.weekday()


def as_day(value: date) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def week_key_of(value: date) -> int:
    """Return the week key for a calendar date."""
    days = (as_day(value) - EPOCH).days
    return (days + _EPOCH_WEEKDAY_OFFSET) // DAYS_PER_WEEK


def week_start_of(week_key: int) -> date:
    """Return the Monday that starts the given week."""
    return EPOCH + timedelta(days=week_key * DAYS_PER_WEEK - _EPOCH_WEEKDAY_OFFSET)


def monday_of(value: date) -> date:
    """Return the Monday on or before the given date."""
    day = as_day(value)
    return day - timedelta(days=day.weekday())


def week_days(week_key: int) -> list[date]:
    """Return the seven dates of a week, Monday first."""
    start = week_start_of(week_key)
    return [start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def days_between(start: date, end: date) -> int:
    """Return whole calendar days from start to end (negative if end is earlier)."""
    return (as_day(end) - as_day(start)).days
