"""Date algebra for holiday rules - no dependencies beyond the stdlib.

Provides the primitives every rule variant is built on: Easter Sunday,
nth weekday of a month and weekend observance shifting.
"""

from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Sequence
import calendar

from .errors import InvalidArgument


class WeekendPolicy(str, Enum):
    """How a holiday falling on a weekend is observed."""
    NONE = "none"
    NEAREST_WEEKDAY = "nearest_weekday"      # Sat -> Fri, Sun -> Mon
    FOLLOWING_MONDAY = "following_monday"    # Sat/Sun -> Mon


SATURDAY = 5
SUNDAY = 6


def easter_sunday(year: int) -> date:
    """Western (Gregorian) Easter Sunday for a year.

    Anonymous Gregorian algorithm (Meeus/Jones/Butcher), valid for any
    year from 1583 on.
    """
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """Get the nth occurrence of a weekday in a month.

    Args:
        year: Year
        month: Month (1-12)
        weekday: Day of week (0=Monday, 6=Sunday)
        n: Which occurrence (1=first, 2=second, etc.), or -1 for the last

    Raises:
        InvalidArgument: for n == 0, n < -1, or an nth occurrence the month
            does not have (e.g. a 5th Monday). These indicate a defect in
            the calling rule data and are not clamped.
    """
    if n == 0 or n < -1:
        raise InvalidArgument(f"n must be >= 1 or -1, got {n}")
    if not 0 <= weekday <= 6:
        raise InvalidArgument(f"weekday must be 0-6, got {weekday}")

    if n == -1:
        last_day = last_day_of_month(year, month)
        days_since_weekday = (last_day.weekday() - weekday) % 7
        return last_day - timedelta(days=days_since_weekday)

    # Find first occurrence of target weekday
    first_day = date(year, month, 1)
    days_until_weekday = (weekday - first_day.weekday()) % 7
    first_occurrence = first_day + timedelta(days=days_until_weekday)

    # Add weeks to get nth occurrence
    target_date = first_occurrence + timedelta(weeks=n - 1)
    if target_date.month != month:
        raise InvalidArgument(
            f"{calendar.month_name[month]} {year} has no occurrence {n} "
            f"of {calendar.day_name[weekday]}"
        )
    return target_date


def shift_weekend(day: date, policy: WeekendPolicy) -> Optional[date]:
    """Observed date for a holiday under a weekend policy.

    Returns None when the policy does not move the date (weekday, or
    policy NONE), otherwise the shifted date.
    """
    policy = WeekendPolicy(policy)
    weekday = day.weekday()
    if policy == WeekendPolicy.NONE or weekday < SATURDAY:
        return None

    if policy == WeekendPolicy.NEAREST_WEEKDAY:
        if weekday == SATURDAY:
            return day - timedelta(days=1)
        return day + timedelta(days=1)

    # FOLLOWING_MONDAY
    return day + timedelta(days=7 - weekday)


def is_weekend(day: date, weekend: Sequence[int] = (SATURDAY, SUNDAY)) -> bool:
    return day.weekday() in weekend


def dates_in_range(start: date, end: date) -> List[date]:
    """Every date from start to end, both inclusive; empty when start > end."""
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]
