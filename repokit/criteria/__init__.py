"""
Query criteria: descriptor, operators and translation to SQLAlchemy.

Usage:
    from repokit.criteria import QueryParameters, CriteriaApplier

    criteria = QueryParameters(
        filters={"status": "active", "price": [">", 100]},
        order_by={"created_at": "desc"},
        limit=20,
    )
    query = CriteriaApplier(Product).apply(None, criteria)
"""

from .operators import (
    Operator,
    Rule,
    Comparison,
    Like,
    DateEquals,
    In,
    Between,
    IsNull,
    NotNull,
    RelationExists,
    parse_rule,
)
from .parameters import QueryParameters
from .registry import EntityDescriptor, RelationStep, describe, resolve_relation_path
from .applier import CriteriaApplier, apply_criteria

__all__ = [
    # operators
    "Operator",
    "Rule",
    "Comparison",
    "Like",
    "DateEquals",
    "In",
    "Between",
    "IsNull",
    "NotNull",
    "RelationExists",
    "parse_rule",
    # parameters
    "QueryParameters",
    # registry
    "EntityDescriptor",
    "RelationStep",
    "describe",
    "resolve_relation_path",
    # applier
    "CriteriaApplier",
    "apply_criteria",
]
