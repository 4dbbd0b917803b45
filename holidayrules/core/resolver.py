"""Evaluate jurisdiction rule sets into date-keyed holiday collections.

Resolution is a pure function of (rule set, year, subdivision filter): every
call builds a fresh dict and reads only immutable rule data, so concurrent
calls need no locking.

Collision policy: when two rules resolve to the same base date, the rule
declared later in the rule set wins. This is intentional; rule sets should
avoid colliding rules unless the overwrite is what they want. Pass
``strict=True`` to turn collisions into ``HolidayCollisionError``.
"""

from datetime import date
from typing import Dict, Iterable, Mapping, Optional
import logging

from .dates import WeekendPolicy, shift_weekend
from .errors import HolidayCollisionError
from .record import HolidayRecord
from .rules import CompositeRule
from .ruleset import JurisdictionRuleSet

logger = logging.getLogger(__name__)


def normalize_subdivisions(subdivisions: Optional[Iterable[str]]) -> frozenset:
    if not subdivisions:
        return frozenset()
    if isinstance(subdivisions, str):
        subdivisions = [subdivisions]
    return frozenset(code.strip() for code in subdivisions if code and code.strip())


def _base_dates(ruleset: JurisdictionRuleSet, year: int) -> Dict[int, Optional[date]]:
    """Base date per rule position, dependencies first.

    Composite dependencies are computed regardless of the subdivision
    filter; the dependency's own validity window still applies.
    """
    dates: Dict[int, Optional[date]] = {}
    parent_dates: Optional[Dict[int, Optional[date]]] = None
    for position in ruleset.evaluation_order:
        rule = ruleset.rules[position]
        if not rule.is_valid_for(year):
            dates[position] = None
            continue

        dependency = None
        if isinstance(rule, CompositeRule):
            if ruleset.get_rule(rule.base_rule) is not None:
                dependency = dates[ruleset.position_of(rule.base_rule)]
            else:
                # Regional layer referring to a nationwide rule
                if parent_dates is None:
                    parent_dates = _base_dates(ruleset.parent, year)
                dependency = parent_dates[ruleset.parent.position_of(rule.base_rule)]
        dates[position] = rule.base_date(year, dependency)
    return dates


def resolve(
    ruleset: JurisdictionRuleSet,
    year: int,
    subdivisions: Optional[Iterable[str]] = None,
    strict: bool = False,
    nationwide_only: bool = False,
) -> Dict[date, HolidayRecord]:
    """Resolve every applicable rule for a year.

    Args:
        ruleset: Validated jurisdiction rule set
        year: Calendar year
        subdivisions: Optional filter; rules restricted to subdivisions
            disjoint from it are skipped. Empty means no filtering.
        strict: Raise on same-date collisions instead of last-write-wins
        nationwide_only: Skip every subdivision-restricted rule before
            collisions are considered

    Returns:
        Dict of base date -> HolidayRecord, ordered by date
    """
    subdivision_filter = normalize_subdivisions(subdivisions)
    base_dates = _base_dates(ruleset, year)

    holidays: Dict[date, HolidayRecord] = {}
    for position, rule in enumerate(ruleset.rules):
        holiday_date = base_dates[position]
        if holiday_date is None or not rule.applies_to(subdivision_filter):
            continue
        if nationwide_only and rule.subdivisions:
            continue

        observed = None
        policy = ruleset.effective_policy(rule)
        if policy != WeekendPolicy.NONE:
            observed = shift_weekend(holiday_date, policy)

        record = HolidayRecord(
            name=rule.name,
            date=holiday_date,
            category=rule.category,
            languages=dict(rule.languages),
            observed_date=observed,
            subdivisions=rule.subdivisions,
            rule_id=rule.id,
            default_language=ruleset.default_language,
        )

        previous = holidays.get(holiday_date)
        if previous is not None:
            if strict:
                raise HolidayCollisionError(
                    f"Rules '{previous.rule_id}' and '{rule.id}' both fall on "
                    f"{holiday_date.isoformat()}",
                    country_code=ruleset.country_code,
                    year=year,
                )
            logger.debug(
                "%s %d: '%s' overwrites '%s' on %s",
                ruleset.country_code, year, rule.id, previous.rule_id, holiday_date,
            )
        holidays[holiday_date] = record

    return dict(sorted(holidays.items()))


def compose_regional(
    base_result: Mapping[date, HolidayRecord],
    regional_ruleset: JurisdictionRuleSet,
    year: int,
    subdivisions: Optional[Iterable[str]] = None,
    strict: bool = False,
) -> Dict[date, HolidayRecord]:
    """Merge a regional rule set's holidays over an already resolved base.

    Regional entries win on date collisions. ``base_result`` is never
    mutated. With an empty filter only the regional set's nationwide rules
    contribute, so subdivision-specific holidays never leak nationwide.
    """
    subdivision_filter = normalize_subdivisions(subdivisions)
    regional = resolve(
        regional_ruleset, year, subdivision_filter,
        strict=strict, nationwide_only=not subdivision_filter,
    )

    merged = dict(base_result)
    merged.update(regional)
    return dict(sorted(merged.items()))


def resolve_range(
    ruleset: JurisdictionRuleSet,
    start: date,
    end: date,
    subdivisions: Optional[Iterable[str]] = None,
    regional_ruleset: Optional[JurisdictionRuleSet] = None,
) -> Dict[date, HolidayRecord]:
    """Holidays whose base date lies within [start, end], across years."""
    if start > end:
        start, end = end, start

    holidays: Dict[date, HolidayRecord] = {}
    for year in range(start.year, end.year + 1):
        year_holidays = resolve(ruleset, year, subdivisions)
        if regional_ruleset is not None:
            year_holidays = compose_regional(year_holidays, regional_ruleset, year, subdivisions)
        for holiday_date, record in year_holidays.items():
            if start <= holiday_date <= end:
                holidays[holiday_date] = record
    return holidays
