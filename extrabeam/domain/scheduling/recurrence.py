"""
Recurring unavailability expansion

Turns stored unavailability series into one dated occurrence per matching
day of a query window.
"""

from datetime import date, timedelta
from typing import Iterable, Optional, Union

# Series without an end date are treated as running until this day
OPEN_ENDED = date(2100, 1, 1)

RECURRENCE_TYPES = ("none", "daily", "weekly", "monthly")


def sunday_based_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


def _as_date(value: Union[date, str, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def exception_days(item: dict) -> set[str]:
    return {str(e)[:10] for e in item.get("exceptions") or []}


def occurs_on(item: dict, day: date, exceptions: Optional[set[str]] = None) -> bool:
    """Whether a series has an occurrence on `day`"""
    start = _as_date(item["start_date"])
    end = _as_date(item.get("recurrence_end")) or OPEN_ENDED
    recurrence = item.get("recurrence_type") or "none"

    if exceptions is None:
        exceptions = exception_days(item)
    if day.isoformat() in exceptions:
        return False

    if recurrence == "none":
        return day == start
    if not (start <= day <= end):
        return False
    if recurrence == "daily":
        return True
    if recurrence == "weekly":
        weekday = item.get("weekday")
        if weekday is None:
            weekday = sunday_based_weekday(start)
        return sunday_based_weekday(day) == weekday
    if recurrence == "monthly":
        return day.day == start.day
    return False


def expand_recurrences(items: Iterable[dict], window_start: date, window_end: date) -> list[dict]:
    """
    Expand unavailability series into dated occurrences within [window_start, window_end].

    Each occurrence is a copy of its series with `start_date` set to the
    occurrence day; the series start is kept as `series_start_date`.
    """
    occurrences = []
    for item in items:
        start = _as_date(item["start_date"])
        if (item.get("recurrence_type") or "none") == "none":
            end = start
        else:
            end = _as_date(item.get("recurrence_end")) or OPEN_ENDED

        first = max(window_start, start)
        last = min(window_end, end)
        if first > last:
            continue

        exceptions = exception_days(item)
        for offset in range((last - first).days + 1):
            day = first + timedelta(days=offset)
            if occurs_on(item, day, exceptions):
                occurrence = dict(item)
                occurrence["series_start_date"] = start
                occurrence["start_date"] = day
                occurrences.append(occurrence)
    return occurrences
