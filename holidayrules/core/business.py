"""
Business day calculations on top of resolved holidays.

Uses numpy's business-day machinery (``busdaycalendar``, ``busday_offset``,
``busday_count``) with the jurisdiction's holidays as the holiday list and a
configurable weekend. Both a holiday's base date and, by default, its
observed date count as non-business days.
"""

from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict

from .dates import dates_in_range, is_weekend, last_day_of_month
from .record import HolidayRecord

HolidayLookup = Callable[[int], Dict[date, HolidayRecord]]

# Holiday calendars cover the queried year plus this many years each side
_YEAR_PADDING = 1


class BusinessDayCalculator:
    """
    Business day arithmetic for one jurisdiction.

    Args:
        holidays_for_year: Callable returning the resolved holidays for a year,
            e.g. ``lambda y: registry.get_regional_holidays("US", y, ["NY"])``
        weekend: Weekday numbers treated as weekend (0=Monday, 6=Sunday)
        include_observed: Treat observed dates as non-business days too
    """

    def __init__(
        self,
        holidays_for_year: HolidayLookup,
        weekend: Sequence[int] = (5, 6),
        include_observed: bool = True,
    ):
        self.holidays_for_year = holidays_for_year
        self.weekend = tuple(sorted(set(weekend)))
        self.include_observed = include_observed
        self.weekmask = "".join("0" if day in self.weekend else "1" for day in range(7))
        if "1" not in self.weekmask:
            raise ValueError("weekend cannot cover every day of the week")
        self._calendars: Dict[Tuple[int, int], np.busdaycalendar] = {}

    @classmethod
    def for_country(
        cls,
        country_code: str,
        subdivisions: Optional[Iterable[str]] = None,
        registry=None,
        **kwargs,
    ) -> "BusinessDayCalculator":
        """Build a calculator over a registered jurisdiction."""
        if registry is None:
            from .registry import JurisdictionRegistry
            registry = JurisdictionRegistry
        codes = list(subdivisions or [])

        def holidays_for_year(year: int) -> Dict[date, HolidayRecord]:
            # Calendars are padded past the configured range at its edges
            if not registry.config.min_year <= year <= registry.config.max_year:
                return {}
            return registry.get_regional_holidays(country_code, year, codes)

        return cls(holidays_for_year, **kwargs)

    def holiday_dates(self, start_year: int, end_year: int) -> List[date]:
        days = set()
        for year in range(start_year, end_year + 1):
            for holiday_date, record in self.holidays_for_year(year).items():
                days.add(holiday_date)
                if self.include_observed and record.observed_date is not None:
                    days.add(record.observed_date)
        return sorted(days)

    def _calendar(self, start_year: int, end_year: int) -> np.busdaycalendar:
        key = (start_year, end_year)
        if key not in self._calendars:
            holidays = np.array(
                [day.isoformat() for day in self.holiday_dates(start_year, end_year)],
                dtype="datetime64[D]",
            )
            self._calendars[key] = np.busdaycalendar(weekmask=self.weekmask, holidays=holidays)
        return self._calendars[key]

    def _calendar_around(self, day: date, business_days: int = 0) -> np.busdaycalendar:
        span = abs(business_days) // 200 + _YEAR_PADDING
        return self._calendar(day.year - span, day.year + span)

    def is_business_day(self, day: date) -> bool:
        """Not a weekend day and not a holiday."""
        return bool(np.is_busday(np.datetime64(day, "D"), busdaycal=self._calendar_around(day)))

    def add_business_days(self, day: date, days: int) -> date:
        """Step ``days`` business days forward (or backward when negative).

        Zero returns ``day`` unchanged. A non-business start date is stepped
        from, so adding one business day to a Saturday gives the Monday.
        """
        if days == 0:
            return day
        # Rolling against the direction of travel makes the first step land
        # on the next business day after a non-business start.
        roll = "backward" if days > 0 else "forward"
        result = np.busday_offset(
            np.datetime64(day, "D"),
            days,
            roll=roll,
            busdaycal=self._calendar_around(day, days),
        )
        return result.item()

    def next_business_day(self, day: date) -> date:
        return self.add_business_days(day, 1)

    def previous_business_day(self, day: date) -> date:
        return self.add_business_days(day, -1)

    def business_days_between(self, start: date, end: date) -> int:
        """Business days in [start, end); the negated count of [end, start) when reversed."""
        if start > end:
            return -self.business_days_between(end, start)
        count = np.busday_count(
            np.datetime64(start, "D"),
            np.datetime64(end, "D"),
            busdaycal=self._calendar(start.year - _YEAR_PADDING, end.year + _YEAR_PADDING),
        )
        return int(count)

    def last_business_day_of_month(self, year: int, month: int) -> date:
        last_day = last_day_of_month(year, month)
        if self.is_business_day(last_day):
            return last_day
        return self.previous_business_day(last_day)

    def is_end_of_month(self, day: date) -> bool:
        """Is ``day`` the last business day of its month?"""
        return self.is_business_day(day) and day == self.last_business_day_of_month(day.year, day.month)

    def business_days_in_month(self, year: int, month: int) -> List[date]:
        days = dates_in_range(date(year, month, 1), last_day_of_month(year, month))
        return [day for day in days if self.is_business_day(day)]

    def _holidays_by_day(self, year: int) -> Dict[date, HolidayRecord]:
        """Records keyed by base date and, when counted, by observed date."""
        by_day: Dict[date, HolidayRecord] = {}
        for lookup_year in range(year - _YEAR_PADDING, year + _YEAR_PADDING + 1):
            for holiday_date, record in self.holidays_for_year(lookup_year).items():
                if self.include_observed and record.observed_date is not None:
                    by_day.setdefault(record.observed_date, record)
                by_day[holiday_date] = record
        return by_day

    def month_calendar(self, year: int, month: int) -> List["CalendarDay"]:
        """One entry per day of the month."""
        holidays = self._holidays_by_day(year)
        entries = []
        for day in dates_in_range(date(year, month, 1), last_day_of_month(year, month)):
            holiday = holidays.get(day)
            entries.append(CalendarDay(
                day=day,
                is_holiday=holiday is not None,
                is_weekend=is_weekend(day, self.weekend),
                is_business_day=self.is_business_day(day),
                holiday=holiday,
            ))
        return entries


class CalendarDay(BaseModel):
    """A day in a month calendar view."""

    model_config = ConfigDict(frozen=True)

    day: date
    is_holiday: bool
    is_weekend: bool
    is_business_day: bool
    holiday: Optional[HolidayRecord] = None


class HolidayScheduler:
    """Places recurring events on business days."""

    def __init__(self, calculator: BusinessDayCalculator):
        self.calculator = calculator

    def schedule_recurring(self, start: date, every: timedelta, count: int) -> List[date]:
        """``count`` occurrences every ``every`` from ``start``.

        An occurrence on a non-business day moves to the next business day;
        the cadence stays anchored to ``start``.
        """
        if every <= timedelta(0):
            raise ValueError("every must be a positive interval")
        schedule = []
        cursor = start
        for _ in range(count):
            if self.calculator.is_business_day(cursor):
                schedule.append(cursor)
            else:
                schedule.append(self.calculator.next_business_day(cursor))
            cursor += every
        return schedule

    def schedule_month_end(self, start: date, months: int) -> List[date]:
        """Last business day of ``months`` consecutive months from ``start``'s month."""
        schedule = []
        year, month = start.year, start.month
        for _ in range(months):
            schedule.append(self.calculator.last_business_day_of_month(year, month))
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        return schedule
