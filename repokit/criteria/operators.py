"""
Filter operators and typed filter rules.

Each operator maps to one rule variant carrying exactly the operand shape it
needs, so a rule that exists is a rule that can be translated:

    Comparison(Operator.GT, 100)        # price > 100
    Like("furkan")                      # name LIKE '%furkan%'
    DateEquals("2025-08-10")            # DATE(created_at) = '2025-08-10'
    In((1, 2, 3))                       # id IN (1, 2, 3)
    Between(50, 90)                     # score BETWEEN 50 AND 90
    IsNull() / NotNull()                # deleted_at IS [NOT] NULL
    RelationExists(("orders",))         # EXISTS (... orders ...)

Callers usually write the raw list form instead (``["between", [50, 90]]``);
``parse_rule`` turns it into a variant and rejects anything malformed.
"""

from __future__ import annotations

import operator
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable

from sqlalchemy import func
from sqlalchemy.sql.elements import ColumnElement

from shared.utils.exceptions import MalformedCriteriaError


class Operator(str, Enum):
    """Closed set of filter operator tokens."""

    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "like"
    DATE = "date"
    IN = "in"
    BETWEEN = "between"
    NULL = "null"
    NOT_NULL = "not_null"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


COMPARISON_OPERATORS: frozenset[Operator] = frozenset(
    {Operator.EQ, Operator.NE, Operator.GT, Operator.GTE, Operator.LT, Operator.LTE}
)
RELATION_OPERATORS: frozenset[Operator] = frozenset({Operator.EXISTS, Operator.NOT_EXISTS})

_COMPARATORS: dict[Operator, Callable[[Any, Any], Any]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
}


class Rule:
    """
    Base class for column filter rules.

    Subclasses implement to_expression() to turn a mapped column into a
    boolean SQL expression.
    """

    operator: Operator

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        raise NotImplementedError


@dataclass(frozen=True)
class Comparison(Rule):
    """``=``, ``!=``, ``>``, ``>=``, ``<``, ``<=`` against a scalar."""

    operator: Operator
    value: Any

    def __post_init__(self):
        if self.operator not in COMPARISON_OPERATORS:
            raise MalformedCriteriaError(
                f"'{self.operator.value}' is not a comparison operator"
            )
        _require_scalar(self.operator, self.value)

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        # == None / != None render IS NULL / IS NOT NULL
        return _COMPARATORS[self.operator](column, self.value)


@dataclass(frozen=True)
class Like(Rule):
    """Substring match; wildcards are added unless the caller supplied some."""

    value: str
    operator = Operator.LIKE

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, (str, int)):
            raise MalformedCriteriaError("Operator 'like' expects a string pattern")

    @property
    def pattern(self) -> str:
        text = str(self.value)
        if "%" in text:
            return text
        return f"%{text}%"

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return column.like(self.pattern)


@dataclass(frozen=True)
class DateEquals(Rule):
    """Equality on the date portion of a timestamp column."""

    value: date | datetime | str
    operator = Operator.DATE

    def __post_init__(self):
        object.__setattr__(self, "value", _to_date(self.value))

    @property
    def day(self) -> date:
        return self.value  # type: ignore[return-value]

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return func.date(column) == self.day.isoformat()


@dataclass(frozen=True)
class In(Rule):
    """Membership in a set of values."""

    values: tuple[Any, ...]
    operator = Operator.IN

    def __post_init__(self):
        if isinstance(self.values, (str, bytes, Mapping)) or not isinstance(self.values, Iterable):
            raise MalformedCriteriaError("Operator 'in' expects a list of values")
        object.__setattr__(self, "values", tuple(self.values))

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return column.in_(self.values)


@dataclass(frozen=True)
class Between(Rule):
    """Inclusive range ``low <= column <= high``."""

    low: Any
    high: Any
    operator = Operator.BETWEEN

    def __post_init__(self):
        _require_scalar(self.operator, self.low)
        _require_scalar(self.operator, self.high)

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return column.between(self.low, self.high)


@dataclass(frozen=True)
class IsNull(Rule):
    operator = Operator.NULL

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return column.is_(None)


@dataclass(frozen=True)
class NotNull(Rule):
    operator = Operator.NOT_NULL

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        return column.is_not(None)


@dataclass(frozen=True)
class RelationExists:
    """
    Presence (or absence, when ``negated``) of at least one related record
    for every named relation path. No column is compared.
    """

    relations: tuple[str, ...]
    negated: bool = False

    def __post_init__(self):
        object.__setattr__(self, "relations", _to_relation_names(self.relations))

    @property
    def operator(self) -> Operator:
        return Operator.NOT_EXISTS if self.negated else Operator.EXISTS


# =============================================================================
# Parsing raw rules
# =============================================================================


def _require_scalar(op: Operator, value: Any) -> None:
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        raise MalformedCriteriaError(
            f"Operator '{op.value}' expects a single value, got {type(value).__name__}"
        )


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            raise MalformedCriteriaError(f"'{value}' is not an ISO date") from None
    raise MalformedCriteriaError("Operator 'date' expects a date, datetime or ISO string")


def _to_relation_names(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = (value,)
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        raise MalformedCriteriaError("Relation existence expects relation names")
    names = tuple(value)
    if not names:
        raise MalformedCriteriaError("Relation existence needs at least one relation name")
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise MalformedCriteriaError(f"Invalid relation name {name!r}")
    return tuple(name.strip() for name in names)


def _build_between(operands: list[Any]) -> Between:
    bounds = operands[0]
    if isinstance(bounds, (str, bytes, Mapping)) or not isinstance(bounds, Iterable):
        raise MalformedCriteriaError("Operator 'between' expects [low, high]")
    bounds = tuple(bounds)
    if len(bounds) != 2:
        raise MalformedCriteriaError(
            f"Operator 'between' expects exactly 2 bounds, got {len(bounds)}"
        )
    return Between(bounds[0], bounds[1])


_BUILDERS: dict[Operator, Callable[[Operator, list[Any]], Rule]] = {
    Operator.LIKE: lambda _, operands: Like(operands[0]),
    Operator.DATE: lambda _, operands: DateEquals(operands[0]),
    Operator.IN: lambda _, operands: In(operands[0]),
    Operator.BETWEEN: lambda _, operands: _build_between(operands),
    Operator.NULL: lambda _, operands: IsNull(),
    Operator.NOT_NULL: lambda _, operands: NotNull(),
    **{
        op: (lambda o, operands: Comparison(o, operands[0]))
        for op in COMPARISON_OPERATORS
    },
}


def parse_rule(raw: Any, path: str | None = None) -> Rule:
    """
    Convert a raw filter rule into a typed Rule.

    Accepted forms:
        "active"              -> Comparison(EQ, "active")
        [">", 100]            -> Comparison(GT, 100)
        ["like", "elaz"]      -> Like("elaz")
        ["null"]              -> IsNull()
        Between(50, 90)       -> returned unchanged

    A list or tuple is always read as ``[operator, operand]``.

    Raises:
        MalformedCriteriaError: Unknown operator, wrong arity or operand shape.
    """
    if isinstance(raw, Rule):
        return raw
    if not isinstance(raw, (list, tuple)):
        return Comparison(Operator.EQ, raw)

    if not raw:
        raise MalformedCriteriaError("Empty filter rule", path=path)

    token, *operands = raw
    if isinstance(token, Operator):
        op = token
    elif isinstance(token, str):
        try:
            op = Operator(token.strip().lower())
        except ValueError:
            raise MalformedCriteriaError(f"Unknown operator '{token}'", path=path) from None
    else:
        raise MalformedCriteriaError(f"Unknown operator {token!r}", path=path)

    if op in RELATION_OPERATORS:
        raise MalformedCriteriaError(
            f"'{op.value}' is a filter key taking relation names, not a column operator",
            path=path,
        )

    arity = 0 if op in (Operator.NULL, Operator.NOT_NULL) else 1
    if len(operands) != arity:
        raise MalformedCriteriaError(
            f"Operator '{op.value}' expects {arity} operand(s), got {len(operands)}",
            path=path,
        )

    try:
        return _BUILDERS[op](op, operands)
    except MalformedCriteriaError as exc:
        if path is None or exc.path is not None:
            raise
        raise MalformedCriteriaError(exc.detail, path=path) from None


def parse_relation_exists(raw: Any, negated: bool, path: str | None = None) -> RelationExists:
    """Convert the value of an ``exists`` / ``not_exists`` key."""
    if isinstance(raw, RelationExists):
        return RelationExists(raw.relations, negated=negated)
    try:
        return RelationExists(raw, negated=negated)
    except MalformedCriteriaError as exc:
        raise MalformedCriteriaError(exc.detail, path=path) from None
