from typing import Dict, List, Optional, Union
from pathlib import Path
import logging
import os

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import DataLoadError
from .rules import Rule


ENV_PREFIX = "HOLIDAYRULES_"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_paths(name: str) -> List[Path]:
    raw = os.getenv(name)
    if raw is None:
        return []
    return [Path(chunk.strip()) for chunk in raw.split(os.pathsep) if chunk.strip()]


class CountryOverrides(BaseModel):
    """Per-country adjustments applied on top of a registered jurisdiction."""

    enabled: bool = Field(default=True, description="Disabled countries behave as unregistered")
    categories: List[str] = Field(
        default_factory=list, description="Keep only these categories (empty keeps all)"
    )
    overrides: Dict[str, str] = Field(
        default_factory=dict, description="Display name by rule id or holiday name"
    )
    excluded_holidays: List[str] = Field(
        default_factory=list, description="Rule ids or holiday names to drop"
    )
    custom_holidays: List[Rule] = Field(
        default_factory=list, description="Extra rules layered over the jurisdiction"
    )


class EngineConfig(BaseModel):
    # Resolution behaviour
    cache_enabled: bool = Field(default=True, description="Memoize results per (country, year, subdivisions)")
    strict_collisions: bool = Field(default=False, description="Raise when two rules land on the same date")

    # Query bounds
    min_year: int = Field(default=1900, ge=1583, description="Earliest queryable year")
    max_year: int = Field(default=2200, le=9999, description="Latest queryable year")

    # Presentation defaults
    default_language: str = Field(default="en", min_length=2)
    log_level: str = Field(default="WARNING")

    # Extra directories of jurisdiction YAML files
    data_paths: List[Path] = Field(default_factory=list)

    # Per-country adjustments, keyed by country code
    countries: Dict[str, CountryOverrides] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("countries")
    @classmethod
    def normalize_country_codes(cls, v: Dict[str, CountryOverrides]) -> Dict[str, CountryOverrides]:
        return {code.upper(): overrides for code, overrides in v.items()}

    @model_validator(mode="after")
    def validate_year_range(self):
        if self.min_year > self.max_year:
            raise ValueError("min_year must be <= max_year")
        return self

    def overrides_for(self, country_code: str) -> CountryOverrides:
        return self.countries.get(country_code.upper()) or CountryOverrides()

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load a config file; keys mirror the model fields.

        Raises:
            DataLoadError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise DataLoadError(f"Config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            raise DataLoadError(f"Cannot load config {path}: {e}") from e

        if not isinstance(data, dict):
            raise DataLoadError(f"{path} must contain a YAML mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DataLoadError(f"Invalid config in {path}: {e}") from e

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from HOLIDAYRULES_* environment variables.

        HOLIDAYRULES_CONFIG_FILE, when set, supplies the starting values;
        the other variables override it. Unparseable values fall back to
        those starting values.
        """
        config_file = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
        defaults = cls.from_yaml(config_file) if config_file else cls()
        log_level = _env_str(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level)
        if log_level.upper() not in LOG_LEVELS:
            log_level = defaults.log_level
        return cls(
            cache_enabled=_env_bool(f"{ENV_PREFIX}CACHE_ENABLED", defaults.cache_enabled),
            strict_collisions=_env_bool(f"{ENV_PREFIX}STRICT_COLLISIONS", defaults.strict_collisions),
            min_year=_env_int(f"{ENV_PREFIX}MIN_YEAR", defaults.min_year),
            max_year=_env_int(f"{ENV_PREFIX}MAX_YEAR", defaults.max_year),
            default_language=_env_str(f"{ENV_PREFIX}DEFAULT_LANGUAGE", defaults.default_language),
            log_level=log_level,
            data_paths=_env_paths(f"{ENV_PREFIX}DATA_PATHS") or defaults.data_paths,
            countries=defaults.countries,
        )


def set_log_level(level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger("holidayrules")
    logger.setLevel(getattr(logging, (level or "WARNING").upper(), logging.WARNING))
    return logger


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the package logger."""
    logger = set_log_level(level)
    if not any(getattr(handler, "_holidayrules", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._holidayrules = True
        logger.addHandler(handler)
    return logger
