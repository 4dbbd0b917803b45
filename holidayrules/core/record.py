import datetime
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class HolidayRecord(BaseModel):
    """One resolved holiday occurrence."""

    model_config = ConfigDict(frozen=True)

    name: str
    date: datetime.date
    category: str
    languages: Dict[str, str] = Field(default_factory=dict)
    observed_date: Optional[datetime.date] = Field(
        default=None, description="Weekday the holiday is taken when date falls on a weekend"
    )
    subdivisions: FrozenSet[str] = Field(
        default_factory=frozenset, description="Empty means nationwide"
    )
    rule_id: str = ""
    default_language: Optional[str] = Field(
        default=None, description="Jurisdiction language used when a requested one is missing"
    )

    @property
    def is_observed(self) -> bool:
        return self.observed_date is not None

    @property
    def effective_date(self) -> datetime.date:
        """The day actually taken off."""
        return self.observed_date or self.date

    @property
    def is_nationwide(self) -> bool:
        return not self.subdivisions

    def localized_name(self, language: Optional[str] = None) -> str:
        """Name in the requested language, or the canonical name.

        Without a language the jurisdiction's default language is used.
        """
        language = language or self.default_language
        return self.languages.get(language, self.name) if language else self.name
