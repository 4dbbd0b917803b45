"""holidayrules - Declarative holiday rule resolution for many jurisdictions."""

__version__ = "0.1.0"
__description__ = "Resolve country and subdivision holidays from declarative rule sets"

from .core.record import HolidayRecord
from .core.registry import (
    JurisdictionRegistry,
    get_holidays,
    get_regional_holidays,
    is_category_supported,
    is_subdivision_supported,
)
from .core.resolver import compose_regional, resolve
from .core.ruleset import JurisdictionRuleSet

__all__ = [
    "HolidayRecord",
    "JurisdictionRegistry",
    "JurisdictionRuleSet",
    "compose_regional",
    "get_holidays",
    "get_regional_holidays",
    "is_category_supported",
    "is_subdivision_supported",
    "resolve",
]
