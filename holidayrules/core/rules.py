"""Declarative holiday rule variants.

Rules are immutable pydantic models discriminated by ``kind``. They carry
no behavior beyond validation and computing their base date for a year;
filtering, observance and collision handling live in the resolver.
"""

from datetime import date, timedelta
from typing import Annotated, Any, Dict, FrozenSet, Literal, Optional, Union
import calendar
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .dates import WeekendPolicy, easter_sunday, last_day_of_month, nth_weekday_of_month
from .errors import InvalidRule


_WEEKDAY_NAMES = {name.lower(): index for index, name in enumerate(calendar.day_name)}


def slugify(name: str) -> str:
    """Derive a rule id from a display name ("New Year's Day" -> "new_years_day")."""
    slug = re.sub(r"[^0-9a-z]+", "_", name.lower().replace("'", ""))
    return slug.strip("_")


class BaseRule(BaseModel):
    """Metadata shared by every rule variant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Unique id within a rule set")
    name: str = Field(..., min_length=1, description="Canonical display name")
    category: str = Field(default="public")
    languages: Dict[str, str] = Field(default_factory=dict)
    valid_from: Optional[int] = Field(default=None, description="First year the rule applies")
    valid_until: Optional[int] = Field(default=None, description="Last year the rule applies")
    subdivisions: FrozenSet[str] = Field(default_factory=frozenset)
    observance: Optional[WeekendPolicy] = Field(
        default=None, description="Overrides the jurisdiction weekend policy"
    )

    @model_validator(mode="before")
    @classmethod
    def default_id_from_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and data.get("name"):
            data = {**data, "id": slugify(data["name"])}
        return data

    @model_validator(mode="after")
    def check_validity_window(self):
        if (self.valid_from is not None and self.valid_until is not None
                and self.valid_from > self.valid_until):
            raise InvalidRule(
                f"Rule '{self.id}': valid_from {self.valid_from} is after "
                f"valid_until {self.valid_until}"
            )
        return self

    def is_valid_for(self, year: int) -> bool:
        """Check the year against the rule's open-ended validity window."""
        if self.valid_from is not None and year < self.valid_from:
            return False
        if self.valid_until is not None and year > self.valid_until:
            return False
        return True

    def applies_to(self, subdivisions: FrozenSet[str]) -> bool:
        """Nationwide rules always apply; restricted ones need an overlapping filter."""
        if not subdivisions or not self.subdivisions:
            return True
        return not self.subdivisions.isdisjoint(subdivisions)

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        raise NotImplementedError


class FixedDateRule(BaseRule):
    """Same month and day every year, e.g. Christmas Day."""

    kind: Literal["fixed"] = "fixed"
    month: int
    day: int

    @model_validator(mode="after")
    def check_calendar_date(self):
        if not 1 <= self.month <= 12:
            raise InvalidRule(f"Rule '{self.id}': month {self.month} is not 1-12")
        # Leap year as the widest month length, so Feb 29 is accepted
        if not 1 <= self.day <= calendar.monthrange(2000, self.month)[1]:
            raise InvalidRule(
                f"Rule '{self.id}': {calendar.month_name[self.month]} has no day {self.day}"
            )
        return self

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        # Feb 29 yields nothing outside leap years
        if self.day > calendar.monthrange(year, self.month)[1]:
            return None
        return date(year, self.month, self.day)


class EasterOffsetRule(BaseRule):
    """Days relative to Easter Sunday (negative = before)."""

    kind: Literal["easter_offset"] = "easter_offset"
    offset_days: int = 0

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        return easter_sunday(year) + timedelta(days=self.offset_days)


class NthWeekdayRule(BaseRule):
    """The nth (or last, n=-1) given weekday of a month, e.g. 4th Thursday of November."""

    kind: Literal["nth_weekday"] = "nth_weekday"
    month: int
    weekday: int
    n: int

    @field_validator("weekday", mode="before")
    @classmethod
    def weekday_from_name(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in _WEEKDAY_NAMES:
            return _WEEKDAY_NAMES[v.strip().lower()]
        return v

    @model_validator(mode="after")
    def check_occurrence(self):
        if not 1 <= self.month <= 12:
            raise InvalidRule(f"Rule '{self.id}': month {self.month} is not 1-12")
        if not 0 <= self.weekday <= 6:
            raise InvalidRule(f"Rule '{self.id}': weekday {self.weekday} is not 0-6")
        if self.n != -1 and not 1 <= self.n <= 5:
            raise InvalidRule(f"Rule '{self.id}': n must be 1-5 or -1, got {self.n}")
        return self

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        if self.n == 5:
            # Only some months have a fifth occurrence
            first_day = date(year, self.month, 1)
            first = 1 + (self.weekday - first_day.weekday()) % 7
            if first + 28 > last_day_of_month(year, self.month).day:
                return None
        return nth_weekday_of_month(year, self.month, self.weekday, self.n)


class LookupTableRule(BaseRule):
    """Externally supplied per-year dates (equinoxes, lunar calendars, Matariki)."""

    kind: Literal["lookup"] = "lookup"
    dates: Dict[int, date] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_years_match(self):
        for year, day in self.dates.items():
            if day.year != year:
                raise InvalidRule(
                    f"Rule '{self.id}': entry for {year} has date {day.isoformat()}"
                )
        return self

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        return self.dates.get(year)


class CompositeRule(BaseRule):
    """Offset from another rule's resolved date, e.g. the day after Thanksgiving."""

    kind: Literal["composite"] = "composite"
    base_rule: str = Field(..., min_length=1, description="Id of the rule this one follows")
    offset_days: int = 0

    def base_date(self, year: int, dependency: Optional[date] = None) -> Optional[date]:
        if dependency is None:
            return None
        return dependency + timedelta(days=self.offset_days)


Rule = Annotated[
    Union[FixedDateRule, EasterOffsetRule, NthWeekdayRule, LookupTableRule, CompositeRule],
    Field(discriminator="kind"),
]
