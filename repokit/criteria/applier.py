"""
Translation of QueryParameters into SQLAlchemy Select statements.

Constraints are applied in a fixed order so identical criteria always
produce identical SQL:

    1. filters (mapping order)
    2. relation_filters (mapping order; win over the same relation/column
       given in dot notation)
    3. order_by (mapping order, each entry a secondary sort key)
    4. relations (selectinload chains)
    5. limit (skipped for pagination)
    6. columns (load_only projection, primary key always loaded)

Relation conditions are expressed as EXISTS sub-queries (``has``/``any``),
never as joins, so a base row is returned at most once.

Usage:
    applier = CriteriaApplier(User)
    query = applier.apply(select(User), QueryParameters(filters={"profile.city": ["like", "elaz"]}))
    users = session.scalars(query).all()
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, not_, select
from sqlalchemy.orm import load_only, selectinload

from repokit.criteria.operators import RelationExists, Rule
from repokit.criteria.parameters import QueryParameters
from repokit.criteria.registry import EntityDescriptor, describe, resolve_relation_path
from shared.config.constants import PATH_SEPARATOR, SortDirection
from shared.config.logging import get_logger
from shared.utils.exceptions import MalformedCriteriaError

logger = get_logger(__name__)

EMPTY_CRITERIA = QueryParameters()


class CriteriaApplier:
    """
    Applies QueryParameters to queries over one entity type.

    The entity's columns and relationships are resolved when the applier is
    created; unknown names in criteria raise MalformedCriteriaError before
    any SQL runs.
    """

    def __init__(self, model: type):
        self._model = model
        self._descriptor = describe(model)

    @property
    def model(self) -> type:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def descriptor(self) -> EntityDescriptor:
        """Columns, relationships and primary key of the model."""
        return self._descriptor

    # =========================================================================
    # Entry points
    # =========================================================================

    def apply(
        self,
        query: Select | None,
        criteria: QueryParameters | None,
        *,
        with_limit: bool = True,
    ) -> Select:
        """
        Apply every part of ``criteria`` to ``query``.

        Args:
            query: Base query; ``select(model)`` when None.
            criteria: Criteria to apply; None means no criteria.
            with_limit: Apply ``criteria.limit``. Pagination passes False.

        Returns:
            The constrained query.
        """
        criteria = criteria or EMPTY_CRITERIA
        query = select(self._model) if query is None else query

        query = self.apply_filters(query, criteria)
        query = self.apply_order(query, criteria)
        query = self.apply_relations(query, criteria.relations)
        if with_limit and criteria.limit is not None:
            query = query.limit(criteria.limit)
        query = self.apply_columns(query, criteria.columns)

        logger.debug(
            "Criteria applied",
            entity=self._descriptor.name,
            filters=len(criteria.filters),
            relation_filters=len(criteria.relation_filters),
            order_by=list(criteria.order_by),
            relations=list(criteria.relations),
            limit=criteria.limit if with_limit else None,
        )
        return query

    def apply_filters(self, query: Select, criteria: QueryParameters) -> Select:
        """Apply ``filters`` and ``relation_filters`` only."""
        for condition in self.conditions(criteria):
            query = query.where(condition)
        return query

    def conditions(self, criteria: QueryParameters) -> list[Any]:
        """
        Boolean SQL expressions for every filter of ``criteria``, in
        application order.
        """
        # (relation path or None, column) -> rule; later entries replace
        # earlier ones and move to the end
        keyed: dict[tuple[str | None, str], Rule | RelationExists] = {}

        for path, rule in criteria.filters.items():
            if isinstance(rule, RelationExists):
                key = (None, path)
            elif PATH_SEPARATOR in path:
                relation, column = path.rsplit(PATH_SEPARATOR, 1)
                key = (relation, column)
            else:
                key = (None, path)
            keyed.pop(key, None)
            keyed[key] = rule

        for relation, rules in criteria.relation_filters.items():
            for column, rule in rules.items():
                key = (relation, column)
                keyed.pop(key, None)
                keyed[key] = rule

        conditions: list[Any] = []
        for (relation, column), rule in keyed.items():
            if isinstance(rule, RelationExists):
                conditions.extend(self.relation_exists_conditions(rule))
            elif relation is None:
                conditions.append(self.column_condition(column, rule))
            else:
                conditions.append(self.relation_condition(relation, column, rule))
        return conditions

    def apply_order(self, query: Select, criteria: QueryParameters) -> Select:
        """Apply ``order_by`` entries as successive sort keys."""
        for field, direction in criteria.order_by.items():
            if PATH_SEPARATOR in field:
                raise MalformedCriteriaError("Ordering by relation columns is not supported", path=field)
            column = self._descriptor.column(field)
            query = query.order_by(column.desc() if direction == SortDirection.DESC else column.asc())
        return query

    def apply_relations(self, query: Select, relations: tuple[str, ...]) -> Select:
        """Eager-load every relation path with chained selectinload."""
        for relation in relations:
            steps = resolve_relation_path(self._model, relation)
            loader = selectinload(steps[0].attribute)
            for step in steps[1:]:
                loader = loader.selectinload(step.attribute)
            query = query.options(loader)
        return query

    def apply_columns(self, query: Select, columns: tuple[str, ...]) -> Select:
        """Restrict loaded columns; "*" keeps every column."""
        if not columns or "*" in columns:
            return query
        attributes = []
        for name in columns:
            if PATH_SEPARATOR in name:
                raise MalformedCriteriaError("Only base entity columns can be selected", path=name)
            attributes.append(self._descriptor.column(name))
        return query.options(load_only(*attributes))

    # =========================================================================
    # Condition builders
    # =========================================================================

    def column_condition(self, column: str, rule: Rule) -> Any:
        """Condition on a direct column of the base entity."""
        return rule.to_expression(self._descriptor.column(column))

    def relation_condition(self, relation: str, column: str, rule: Rule) -> Any:
        """
        Condition on a column reached through ``relation`` (possibly nested),
        wrapped in one EXISTS per hop.
        """
        path = f"{relation}{PATH_SEPARATOR}{column}"
        steps = resolve_relation_path(self._model, relation)
        target_column = describe(steps[-1].target).column(column, path=path)

        condition = rule.to_expression(target_column)
        for step in reversed(steps):
            condition = step.exists(condition)
        return condition

    def relation_exists_conditions(self, rule: RelationExists) -> list[Any]:
        """One EXISTS (or NOT EXISTS) per named relation path."""
        conditions = []
        for relation in rule.relations:
            steps = resolve_relation_path(self._model, relation)
            condition = None
            for step in reversed(steps):
                condition = step.exists(condition)
            conditions.append(not_(condition) if rule.negated else condition)
        return conditions


def apply_criteria(
    model: type,
    criteria: QueryParameters | None = None,
    query: Select | None = None,
) -> Select:
    """Functional shortcut for ``CriteriaApplier(model).apply(query, criteria)``."""
    return CriteriaApplier(model).apply(query, criteria)
