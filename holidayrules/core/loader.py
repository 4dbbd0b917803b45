"""Load jurisdiction rule sets from plain data (dicts or YAML files).

A jurisdiction file looks like::

    country_code: DE
    name: Germany
    weekend_policy: none
    categories: [public, religious]
    subdivisions: [BY, SN]
    rules:
      - {kind: fixed, name: Neujahr, month: 1, day: 1}
      - {kind: easter_offset, name: Karfreitag, offset_days: -2}
    regional_rules:
      - {kind: fixed, name: Mariä Himmelfahrt, month: 8, day: 15, subdivisions: [BY]}

``categories``, ``subdivisions`` and ``weekend_policy`` are shared by the
nationwide rules and the regional layer.
"""

from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union
import logging

import yaml
from pydantic import ValidationError

from .errors import DataLoadError, InvalidRule
from .ruleset import Jurisdiction, JurisdictionRuleSet

logger = logging.getLogger(__name__)

_SHARED_KEYS = ("country_code", "name", "categories", "subdivisions", "weekend_policy", "default_language")


def load_ruleset_dict(data: Dict[str, Any]) -> JurisdictionRuleSet:
    """Validate a single rule set from a dictionary.

    Raises:
        InvalidRule: If the data does not describe a valid rule set
    """
    country_code = data.get("country_code") if isinstance(data, dict) else None
    try:
        return JurisdictionRuleSet.model_validate(data)
    except ValidationError as e:
        raise InvalidRule(
            f"Invalid rule set for {country_code or '<unknown>'}: {e}",
            country_code=country_code,
        ) from e


def load_jurisdiction_dict(data: Dict[str, Any]) -> Jurisdiction:
    """Build a jurisdiction (nationwide + regional rule sets) from a dictionary."""
    if not isinstance(data, dict):
        raise InvalidRule("Jurisdiction data must be a dictionary")

    shared = {key: data[key] for key in _SHARED_KEYS if key in data}
    base = load_ruleset_dict({**shared, "rules": data.get("rules") or []})

    regional = None
    if data.get("regional_rules"):
        regional = load_ruleset_dict({**shared, "rules": data["regional_rules"], "parent": base})

    unknown = set(data) - set(_SHARED_KEYS) - {"rules", "regional_rules"}
    if unknown:
        raise InvalidRule(
            f"Unknown keys in jurisdiction data: {sorted(unknown)}",
            country_code=base.country_code,
        )

    try:
        return Jurisdiction(base=base, regional=regional)
    except ValidationError as e:
        raise InvalidRule(str(e), country_code=base.country_code) from e


def load_jurisdiction_yaml(path: Union[str, Path]) -> Jurisdiction:
    """Load and validate a jurisdiction YAML file.

    Raises:
        DataLoadError: If the file cannot be read or is not a YAML mapping
        InvalidRule: If the rules inside are invalid
    """
    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"Jurisdiction file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise DataLoadError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise DataLoadError(f"{path} must contain a YAML mapping")

    jurisdiction = load_jurisdiction_dict(data)
    logger.debug("Loaded %s from %s", jurisdiction.country_code, path)
    return jurisdiction


def iter_yaml_files(directory: Union[str, Path]) -> Iterator[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        return
    for path in sorted(directory.iterdir()):
        if path.suffix in (".yaml", ".yml"):
            yield path


def bundled_data_files() -> List[Path]:
    """Jurisdiction files shipped inside the package."""
    data_dir = resources.files("holidayrules") / "data"
    return list(iter_yaml_files(Path(str(data_dir))))
