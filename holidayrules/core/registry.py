from datetime import date
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging
import threading

from .config import CountryOverrides, EngineConfig, set_log_level
from .errors import HolidayError, InvalidYearError, UnknownJurisdictionError
from .loader import bundled_data_files, iter_yaml_files, load_jurisdiction_yaml
from .record import HolidayRecord
from .resolver import compose_regional, normalize_subdivisions, resolve
from .ruleset import Jurisdiction, JurisdictionRuleSet

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, int, FrozenSet[str]]


def custom_layer(
    jurisdiction: Jurisdiction, overrides: CountryOverrides
) -> Optional[JurisdictionRuleSet]:
    """Rule set holding a country's configured custom holidays, if any.

    Custom composites may refer to the jurisdiction's nationwide rules.
    """
    if not overrides.custom_holidays:
        return None
    base = jurisdiction.base
    return JurisdictionRuleSet(
        country_code=base.country_code,
        rules=overrides.custom_holidays,
        categories=jurisdiction.categories
        | {rule.category for rule in overrides.custom_holidays},
        subdivisions=jurisdiction.subdivisions,
        weekend_policy=base.weekend_policy,
        default_language=base.default_language,
        parent=base,
    )


def apply_overrides(
    holidays: Dict[date, HolidayRecord], overrides: CountryOverrides
) -> Dict[date, HolidayRecord]:
    """Drop excluded holidays, keep the configured categories and rename."""
    excluded = set(overrides.excluded_holidays)
    categories = set(overrides.categories)
    result: Dict[date, HolidayRecord] = {}
    for holiday_date, record in holidays.items():
        if record.rule_id in excluded or record.name in excluded:
            continue
        if categories and record.category not in categories:
            continue
        name = overrides.overrides.get(record.rule_id) or overrides.overrides.get(record.name)
        if name:
            record = record.model_copy(update={"name": name})
        result[holiday_date] = record
    return result


class JurisdictionRegistry:
    _instance: Optional["JurisdictionRegistry"] = None
    _jurisdictions: Dict[str, Jurisdiction] = {}
    _cache: Dict[CacheKey, Dict[date, HolidayRecord]] = {}
    _lock = threading.Lock()
    config: EngineConfig = EngineConfig.from_env()

    def __new__(cls) -> "JurisdictionRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def configure(cls, config: EngineConfig) -> None:
        """Swap the engine config, apply its log level and drop cached results."""
        cls.config = config
        set_log_level(config.log_level)
        cls.clear_cache()

    @classmethod
    def configure_from_env(cls) -> EngineConfig:
        cls.configure(EngineConfig.from_env())
        return cls.config

    @classmethod
    def register(
        cls,
        ruleset: JurisdictionRuleSet,
        regional: Optional[JurisdictionRuleSet] = None,
    ) -> Jurisdiction:
        """Register a jurisdiction, replacing any previous one for the same code.

        Rule sets are validated on construction, so anything reaching here is
        resolvable; a bad regional layer still keeps the whole jurisdiction out.
        """
        if not isinstance(ruleset, JurisdictionRuleSet):
            raise TypeError(f"Expected JurisdictionRuleSet, got {type(ruleset).__name__}")
        return cls.register_jurisdiction(Jurisdiction(base=ruleset, regional=regional))

    @classmethod
    def register_jurisdiction(cls, jurisdiction: Jurisdiction) -> Jurisdiction:
        code = jurisdiction.country_code.upper()
        with cls._lock:
            cls._jurisdictions[code] = jurisdiction
            for key in [key for key in cls._cache if key[0] == code]:
                del cls._cache[key]
        logger.info(
            "Registered %s: %d rules, %d regional rules",
            code,
            len(jurisdiction.base.rules),
            len(jurisdiction.regional.rules) if jurisdiction.regional else 0,
        )
        return jurisdiction

    @classmethod
    def unregister(cls, country_code: str) -> None:
        code = country_code.upper()
        with cls._lock:
            cls._jurisdictions.pop(code, None)
            for key in [key for key in cls._cache if key[0] == code]:
                del cls._cache[key]

    @classmethod
    def get_jurisdiction(cls, country_code: str) -> Optional[Jurisdiction]:
        return cls._jurisdictions.get(country_code.upper())

    @classmethod
    def is_enabled(cls, country_code: str) -> bool:
        return cls.config.overrides_for(country_code).enabled

    @classmethod
    def list_jurisdictions(cls) -> List[str]:
        """Registered country codes, minus those disabled in the config."""
        return sorted(code for code in cls._jurisdictions if cls.is_enabled(code))

    @classmethod
    def clear(cls) -> None:
        with cls._lock:
            cls._jurisdictions.clear()
            cls._cache.clear()

    @classmethod
    def clear_cache(cls) -> None:
        with cls._lock:
            cls._cache.clear()

    @classmethod
    def discover_jurisdictions(cls, include_bundled: bool = True) -> List[str]:
        """Load bundled jurisdiction files plus any configured data paths.

        A file that fails to load is logged and skipped; it never registers a
        partial jurisdiction.
        """
        paths = bundled_data_files() if include_bundled else []
        for directory in cls.config.data_paths:
            paths.extend(iter_yaml_files(directory))

        loaded = []
        for path in paths:
            try:
                jurisdiction = load_jurisdiction_yaml(path)
            except HolidayError as e:
                logger.error("Skipping jurisdiction file %s: %s", path, e)
                continue
            cls.register_jurisdiction(jurisdiction)
            loaded.append(jurisdiction.country_code.upper())
        return loaded

    @classmethod
    def _require(cls, country_code: str) -> Jurisdiction:
        jurisdiction = cls.get_jurisdiction(country_code)
        if jurisdiction is None or not cls.is_enabled(country_code):
            raise UnknownJurisdictionError(
                f"Unknown jurisdiction: {country_code}", country_code=country_code
            )
        return jurisdiction

    @classmethod
    def _check_year(cls, country_code: str, year: int) -> None:
        if not cls.config.min_year <= year <= cls.config.max_year:
            raise InvalidYearError(
                f"Year {year} is outside the supported range "
                f"({cls.config.min_year}-{cls.config.max_year})",
                country_code=country_code,
                year=year,
            )

    @classmethod
    def _cached(
        cls, key: CacheKey, compute: Callable[[], Dict[date, HolidayRecord]]
    ) -> Dict[date, HolidayRecord]:
        if not cls.config.cache_enabled:
            return compute()

        with cls._lock:
            hit = cls._cache.get(key)
        if hit is None:
            result = compute()
            with cls._lock:
                # Write once per key; a concurrent fill of the same key is equal
                hit = cls._cache.setdefault(key, result)
            logger.debug("Cached holidays for %s %d %s", key[0], key[1], sorted(key[2]))
        return {holiday_date: record.model_copy(deep=True) for holiday_date, record in hit.items()}

    @classmethod
    def _query(
        cls, jurisdiction: Jurisdiction, year: int, subdivisions: FrozenSet[str]
    ) -> Dict[date, HolidayRecord]:
        code = jurisdiction.country_code.upper()
        strict = cls.config.strict_collisions
        overrides = cls.config.overrides_for(code)

        def compute() -> Dict[date, HolidayRecord]:
            result = resolve(jurisdiction.base, year, subdivisions, strict=strict)
            for layer in (jurisdiction.regional, custom_layer(jurisdiction, overrides)):
                if layer is not None:
                    result = compose_regional(result, layer, year, subdivisions, strict=strict)
            return apply_overrides(result, overrides)

        return cls._cached((code, year, subdivisions), compute)

    @classmethod
    def get_holidays(cls, country_code: str, year: int) -> Dict[date, HolidayRecord]:
        """Nationwide holidays for a country and year.

        Includes the regional layer's nationwide rules and any configured
        custom holidays.
        """
        jurisdiction = cls._require(country_code)
        cls._check_year(country_code, year)
        return cls._query(jurisdiction, year, frozenset())

    @classmethod
    def supported_subdivisions(
        cls, country_code: str, subdivision_codes: Optional[Iterable[str]]
    ) -> FrozenSet[str]:
        """Drop (and log) codes the jurisdiction does not declare."""
        jurisdiction = cls._require(country_code)
        requested = normalize_subdivisions(subdivision_codes)
        supported = frozenset(code for code in requested if code in jurisdiction.subdivisions)
        ignored = requested - supported
        if ignored:
            logger.warning(
                "Ignoring unsupported subdivisions for %s: %s",
                jurisdiction.country_code, ", ".join(sorted(ignored)),
            )
        return supported

    @classmethod
    def get_regional_holidays(
        cls, country_code: str, year: int, subdivision_codes: Optional[Iterable[str]]
    ) -> Dict[date, HolidayRecord]:
        """Nationwide holidays merged with those of the given subdivisions.

        When none of the codes is supported the result equals get_holidays.
        """
        jurisdiction = cls._require(country_code)
        cls._check_year(country_code, year)
        subdivisions = cls.supported_subdivisions(country_code, subdivision_codes)
        return cls._query(jurisdiction, year, subdivisions)

    @classmethod
    def get_holidays_in_range(
        cls,
        country_code: str,
        start: date,
        end: date,
        subdivision_codes: Optional[Iterable[str]] = None,
    ) -> Dict[date, HolidayRecord]:
        if start > end:
            start, end = end, start
        holidays: Dict[date, HolidayRecord] = {}
        for year in range(start.year, end.year + 1):
            for holiday_date, record in cls.get_regional_holidays(
                country_code, year, subdivision_codes
            ).items():
                if start <= holiday_date <= end:
                    holidays[holiday_date] = record
        return holidays

    @classmethod
    def is_holiday(
        cls,
        country_code: str,
        day: date,
        subdivision_codes: Optional[Iterable[str]] = None,
    ) -> Optional[HolidayRecord]:
        return cls.get_regional_holidays(country_code, day.year, subdivision_codes).get(day)

    @classmethod
    def holiday_names(
        cls,
        country_code: str,
        year: int,
        subdivision_codes: Optional[Iterable[str]] = None,
        language: Optional[str] = None,
    ) -> Dict[date, str]:
        """Holiday names by date in ``language`` (default: the configured language)."""
        language = language or cls.config.default_language
        return {
            holiday_date: record.localized_name(language)
            for holiday_date, record in cls.get_regional_holidays(
                country_code, year, subdivision_codes
            ).items()
        }

    @classmethod
    def is_subdivision_supported(cls, country_code: str, code: str) -> bool:
        jurisdiction = cls.get_jurisdiction(country_code)
        return (
            jurisdiction is not None
            and cls.is_enabled(country_code)
            and code in jurisdiction.subdivisions
        )

    @classmethod
    def is_category_supported(cls, country_code: str, category: str) -> bool:
        jurisdiction = cls.get_jurisdiction(country_code)
        if jurisdiction is None or not cls.is_enabled(country_code):
            return False
        overrides = cls.config.overrides_for(country_code)
        if overrides.categories and category not in overrides.categories:
            return False
        custom = {rule.category for rule in overrides.custom_holidays}
        return category in jurisdiction.categories or category in custom


def register_jurisdiction(regional: Optional[Callable[[], JurisdictionRuleSet]] = None):
    """Decorator registering the rule set returned by a builder function."""
    def decorator(builder: Callable[[], JurisdictionRuleSet]) -> Callable[[], JurisdictionRuleSet]:
        JurisdictionRegistry.register(builder(), regional() if regional else None)
        return builder
    return decorator


def get_holidays(country_code: str, year: int) -> Dict[date, HolidayRecord]:
    return JurisdictionRegistry.get_holidays(country_code, year)


def get_regional_holidays(
    country_code: str, year: int, subdivision_codes: Iterable[str]
) -> Dict[date, HolidayRecord]:
    return JurisdictionRegistry.get_regional_holidays(country_code, year, subdivision_codes)


def is_subdivision_supported(country_code: str, code: str) -> bool:
    return JurisdictionRegistry.is_subdivision_supported(country_code, code)


def is_category_supported(country_code: str, category: str) -> bool:
    return JurisdictionRegistry.is_category_supported(country_code, category)
