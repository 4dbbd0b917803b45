"""Jurisdiction rule sets.

A rule set is the immutable, declarative description of one jurisdiction's
holidays. All structural checks happen here, at construction, so that
resolving a validated rule set cannot fail.
"""

from graphlib import CycleError, TopologicalSorter
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from .dates import WeekendPolicy
from .errors import InvalidRule
from .rules import CompositeRule, Rule


class JurisdictionRuleSet(BaseModel):
    """All holiday rules for one country (or one country's regional layer)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    country_code: str = Field(..., min_length=2, max_length=3)
    name: Optional[str] = None
    rules: Tuple[Rule, ...] = Field(default_factory=tuple)
    categories: FrozenSet[str] = Field(default_factory=lambda: frozenset({"public"}))
    subdivisions: FrozenSet[str] = Field(default_factory=frozenset)
    weekend_policy: WeekendPolicy = Field(default=WeekendPolicy.NONE)
    default_language: str = "en"
    parent: Optional["JurisdictionRuleSet"] = Field(
        default=None, repr=False, exclude=True,
        description="Nationwide rule set a regional layer's composites may refer to",
    )

    _evaluation_order: Tuple[int, ...] = PrivateAttr(default=())
    _index: Dict[str, int] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def validate_rules(self):
        index: Dict[str, int] = {}
        for position, rule in enumerate(self.rules):
            if rule.id in index:
                raise InvalidRule(
                    f"Duplicate rule id '{rule.id}'", country_code=self.country_code
                )
            index[rule.id] = position

            if rule.category not in self.categories:
                raise InvalidRule(
                    f"Rule '{rule.id}' uses undeclared category '{rule.category}'",
                    country_code=self.country_code,
                )
            unknown = rule.subdivisions - self.subdivisions
            if unknown:
                raise InvalidRule(
                    f"Rule '{rule.id}' uses undeclared subdivisions {sorted(unknown)}",
                    country_code=self.country_code,
                )

        self._index = index
        self._evaluation_order = self._topological_order(index)
        return self

    def _topological_order(self, index: Dict[str, int]) -> Tuple[int, ...]:
        """Rule positions ordered so composites come after their base rule."""
        graph: Dict[int, List[int]] = {}
        for position, rule in enumerate(self.rules):
            graph[position] = []
            if isinstance(rule, CompositeRule):
                if rule.base_rule not in index:
                    if self.parent is not None and self.parent.get_rule(rule.base_rule) is not None:
                        # Resolved against the parent, which is already acyclic
                        continue
                    raise InvalidRule(
                        f"Composite rule '{rule.id}' references unknown rule '{rule.base_rule}'",
                        country_code=self.country_code,
                    )
                graph[position].append(index[rule.base_rule])

        sorter = TopologicalSorter(graph)
        try:
            return tuple(sorter.static_order())
        except CycleError as e:
            cycle = " -> ".join(self.rules[position].id for position in e.args[1])
            raise InvalidRule(
                f"Composite rules form a cycle: {cycle}", country_code=self.country_code
            ) from e

    @property
    def evaluation_order(self) -> Tuple[int, ...]:
        return self._evaluation_order

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        position = self._index.get(rule_id)
        return None if position is None else self.rules[position]

    def position_of(self, rule_id: str) -> int:
        return self._index[rule_id]

    def supports_subdivision(self, code: str) -> bool:
        return code in self.subdivisions

    def supports_category(self, category: str) -> bool:
        return category in self.categories

    def effective_policy(self, rule: Rule) -> WeekendPolicy:
        return rule.observance if rule.observance is not None else self.weekend_policy

    @classmethod
    def empty(cls, country_code: str, **kwargs) -> "JurisdictionRuleSet":
        return cls(country_code=country_code, rules=(), **kwargs)


class Jurisdiction(BaseModel):
    """A country's nationwide rule set plus its optional regional layer."""

    model_config = ConfigDict(frozen=True)

    base: JurisdictionRuleSet
    regional: Optional[JurisdictionRuleSet] = None

    @model_validator(mode="after")
    def check_same_country(self):
        if self.regional is not None and self.regional.country_code != self.base.country_code:
            raise InvalidRule(
                f"Regional rule set for {self.regional.country_code} attached to "
                f"{self.base.country_code}",
                country_code=self.base.country_code,
            )
        return self

    @property
    def country_code(self) -> str:
        return self.base.country_code

    @property
    def subdivisions(self) -> FrozenSet[str]:
        if self.regional is None:
            return self.base.subdivisions
        return self.base.subdivisions | self.regional.subdivisions

    @property
    def categories(self) -> FrozenSet[str]:
        if self.regional is None:
            return self.base.categories
        return self.base.categories | self.regional.categories
