"""Core holidayrules components - date algebra, rule model and resolution."""

from .dates import WeekendPolicy, easter_sunday, nth_weekday_of_month, shift_weekend
from .errors import (
    DataLoadError,
    HolidayCollisionError,
    HolidayError,
    InvalidArgument,
    InvalidRule,
    InvalidYearError,
    UnknownJurisdictionError,
)
from .record import HolidayRecord
from .rules import (
    CompositeRule,
    EasterOffsetRule,
    FixedDateRule,
    LookupTableRule,
    NthWeekdayRule,
    Rule,
)
from .ruleset import Jurisdiction, JurisdictionRuleSet
from .resolver import compose_regional, resolve, resolve_range
from .registry import JurisdictionRegistry
from .business import BusinessDayCalculator, CalendarDay, HolidayScheduler
from .config import CountryOverrides, EngineConfig

__all__ = [
    "BusinessDayCalculator",
    "CalendarDay",
    "CompositeRule",
    "CountryOverrides",
    "DataLoadError",
    "EasterOffsetRule",
    "EngineConfig",
    "FixedDateRule",
    "HolidayCollisionError",
    "HolidayError",
    "HolidayRecord",
    "HolidayScheduler",
    "InvalidArgument",
    "InvalidRule",
    "InvalidYearError",
    "Jurisdiction",
    "JurisdictionRegistry",
    "JurisdictionRuleSet",
    "LookupTableRule",
    "NthWeekdayRule",
    "Rule",
    "UnknownJurisdictionError",
    "WeekendPolicy",
    "compose_regional",
    "easter_sunday",
    "nth_weekday_of_month",
    "resolve",
    "resolve_range",
    "shift_weekend",
]
