"""
Lightweight, immutable descriptor for repository read queries.

Supported operators:
    =, !=, >, >=, <, <=, like, date, in, between, null, not_null,
    exists, not_exists

Base model columns:
    "status":     "active"                  # =
    "price":      [">", 100]                # >, >=, <, <=, !=
    "name":       ["like", "furkan"]        # LIKE (wrapped as %...%)
    "created_at": ["date", "2025-08-10"]    # DATE(created_at) = '2025-08-10'
    "id":         ["in", [1, 2, 3]]         # IN
    "score":      ["between", [50, 90]]     # BETWEEN (inclusive)
    "deleted_at": ["null"]                  # IS NULL
    "updated_at": ["not_null"]              # IS NOT NULL

Relation columns, two equivalent spellings:
    1) dot notation inside ``filters``:
        "profile.city":            ["like", "elaz"]
        "orders.total":            [">=", 500]
        "profile.categories.name": "Electronics"

    2) ``relation_filters``, grouped per relation path:
        relation_filters={
            "profile": {"city": ["like", "elaz"]},
            "profile.categories": {"name": ["=", "Electronics"], "priority": [">=", 2]},
            "orders": {"created_at": ["date", "2025-08-01"], "total": [">", 500]},
        }

Relation presence (relation names only):
    "exists":     ["orders", "roles"]       # at least one related record each
    "not_exists": ["bans"]                  # no related record
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from repokit.criteria.operators import (
    RelationExists,
    Rule,
    parse_relation_exists,
    parse_rule,
)
from shared.config.constants import (
    ALL_COLUMNS,
    EXISTS_KEY,
    NOT_EXISTS_KEY,
    PATH_SEPARATOR,
    SortDirection,
)
from shared.utils.exceptions import MalformedCriteriaError


def clean_path(path: Any) -> str:
    """Validate a (possibly dotted) field or relation path."""
    if not isinstance(path, str):
        raise MalformedCriteriaError(f"Field path must be a string, got {path!r}")
    path = path.strip()
    if not path or any(not segment.strip() for segment in path.split(PATH_SEPARATOR)):
        raise MalformedCriteriaError("Empty segment in field path", path=path)
    return path


def _to_names(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = (value,)
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        raise MalformedCriteriaError(f"{what} must be a list of names")
    names: list[str] = []
    for name in value:
        name = clean_path(name)
        if name not in names:
            names.append(name)
    return tuple(names)


@dataclass(frozen=True)
class QueryParameters:
    """
    Criteria for one read query.

    Attributes:
        filters: Field path -> rule. Dotted paths filter through relations.
        relation_filters: Relation path -> {column: rule}. Applied after
            ``filters``.
        relations: Relation paths to eager-load, in order.
        order_by: Field -> "asc" | "desc". Iteration order is sort precedence.
        limit: Maximum rows for unpaginated reads.
        columns: Columns to load. Defaults to ("*",), meaning all columns.

    Raw rules are parsed into typed rules on construction; the instance is
    never mutated afterwards.
    """

    filters: Mapping[str, Any] = field(default_factory=dict)
    relation_filters: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    relations: Iterable[str] = ()
    order_by: Mapping[str, str] = field(default_factory=dict)
    limit: int | None = None
    columns: Iterable[str] = ALL_COLUMNS

    def __post_init__(self):
        object.__setattr__(self, "filters", MappingProxyType(self._parse_filters(self.filters)))
        object.__setattr__(
            self, "relation_filters", MappingProxyType(self._parse_relation_filters(self.relation_filters))
        )
        object.__setattr__(self, "relations", _to_names(self.relations, "relations"))
        object.__setattr__(self, "order_by", MappingProxyType(self._parse_order_by(self.order_by)))
        object.__setattr__(self, "columns", _to_names(self.columns, "columns") or ALL_COLUMNS)

        if self.limit is not None:
            if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 0:
                raise MalformedCriteriaError(f"limit must be a non-negative integer, got {self.limit!r}")

    # =========================================================================
    # Parsing
    # =========================================================================

    @staticmethod
    def _parse_filters(filters: Mapping[str, Any] | None) -> dict[str, Rule | RelationExists]:
        if filters is None:
            return {}
        if not isinstance(filters, Mapping):
            raise MalformedCriteriaError("filters must be a mapping of field path to rule")

        parsed: dict[str, Rule | RelationExists] = {}
        for path, raw in filters.items():
            path = clean_path(path)
            if path == EXISTS_KEY:
                parsed[path] = parse_relation_exists(raw, negated=False, path=path)
            elif path == NOT_EXISTS_KEY:
                parsed[path] = parse_relation_exists(raw, negated=True, path=path)
            else:
                parsed[path] = parse_rule(raw, path)
        return parsed

    @staticmethod
    def _parse_relation_filters(
        relation_filters: Mapping[str, Mapping[str, Any]] | None,
    ) -> dict[str, Mapping[str, Rule]]:
        if relation_filters is None:
            return {}
        if not isinstance(relation_filters, Mapping):
            raise MalformedCriteriaError("relation_filters must be a mapping of relation path to columns")

        parsed: dict[str, Mapping[str, Rule]] = {}
        for relation, columns in relation_filters.items():
            relation = clean_path(relation)
            if not isinstance(columns, Mapping):
                raise MalformedCriteriaError("Expected a mapping of column to rule", path=relation)

            rules: dict[str, Rule] = {}
            for column, raw in columns.items():
                column = clean_path(column)
                path = f"{relation}{PATH_SEPARATOR}{column}"
                if PATH_SEPARATOR in column:
                    raise MalformedCriteriaError(
                        "Nest relations in the relation path, not in the column name", path=path
                    )
                rules[column] = parse_rule(raw, path)
            parsed[relation] = MappingProxyType(rules)
        return parsed

    @staticmethod
    def _parse_order_by(order_by: Mapping[str, str] | None) -> dict[str, str]:
        if order_by is None:
            return {}
        if not isinstance(order_by, Mapping):
            raise MalformedCriteriaError("order_by must be a mapping of field to direction")

        parsed: dict[str, str] = {}
        for column, direction in order_by.items():
            column = clean_path(column)
            normalized = direction.strip().lower() if isinstance(direction, str) else direction
            if normalized not in SortDirection.ALL:
                raise MalformedCriteriaError(
                    f"Sort direction must be 'asc' or 'desc', got {direction!r}", path=column
                )
            parsed[column] = normalized
        return parsed

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def selects_all_columns(self) -> bool:
        """True when no column projection is requested."""
        return "*" in self.columns

    def replace(self, **changes: Any) -> QueryParameters:
        """Return a copy with the given fields changed."""
        return replace(self, **changes)
