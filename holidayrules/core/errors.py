"""Exception taxonomy for holiday rule resolution.

Construction-time problems (bad rule data) raise ``InvalidRule`` and keep a
jurisdiction from being registered. Resolution itself never raises for
"no holiday this year" outcomes.
"""

from typing import Optional


class HolidayError(Exception):
    """Base class for every error raised by holidayrules."""

    def __init__(
        self,
        message: str,
        country_code: Optional[str] = None,
        year: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.country_code = country_code
        self.year = year


class InvalidRule(HolidayError):
    """Structurally invalid rule or rule set.

    Deliberately not a ``ValueError``: pydantic only wraps ``ValueError`` and
    ``AssertionError`` raised inside validators, so this propagates unchanged
    out of model construction.
    """


class InvalidArgument(HolidayError, ValueError):
    """A date-algebra primitive was called with a disallowed argument."""


class InvalidYearError(InvalidArgument):
    """Year outside the configured query range."""


class HolidayCollisionError(HolidayError):
    """Two rules resolved to the same date while strict resolution was on."""


class UnknownJurisdictionError(HolidayError, KeyError):
    """No rule set registered under the requested country code."""

    def __str__(self) -> str:
        return self.message


class DataLoadError(HolidayError):
    """Jurisdiction data file could not be read or parsed."""
