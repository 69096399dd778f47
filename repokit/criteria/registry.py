"""
Per-entity registry of mapped columns and relationships.

Relation paths and column names in criteria are resolved here, once per
entity type, instead of being discovered while a query runs.

Usage:
    descriptor = describe(User)
    descriptor.column("email")                  # User.email
    resolve_relation_path(User, "profile.categories")
    # -> (RelationStep(User.profile, ...), RelationStep(Profile.categories, ...))
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Mapping

from sqlalchemy import and_, inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import RelationshipProperty, configure_mappers

from shared.config.constants import PATH_SEPARATOR
from shared.utils.exceptions import MalformedCriteriaError


@dataclass(frozen=True, eq=False)
class RelationStep:
    """One hop of a relation path."""

    attribute: Any
    target: type
    uselist: bool

    def exists(self, criterion: Any = None) -> Any:
        """EXISTS over this hop, optionally constrained on the target."""
        if self.uselist:
            return self.attribute.any(criterion)
        return self.attribute.has(criterion)


@dataclass(frozen=True, eq=False)
class EntityDescriptor:
    """Mapped columns, relationships and primary key of one entity type."""

    model: type
    columns: Mapping[str, Any]
    relationships: Mapping[str, RelationshipProperty]
    primary_key: tuple[Any, ...]

    @property
    def name(self) -> str:
        return self.model.__name__

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def column(self, name: str, path: str | None = None) -> Any:
        """Mapped column attribute ``name``."""
        try:
            return self.columns[name]
        except KeyError:
            raise MalformedCriteriaError(
                f"{self.name} has no column '{name}'", path=path or name
            ) from None

    def relationship(self, name: str, path: str | None = None) -> RelationshipProperty:
        """Relationship property ``name``."""
        try:
            return self.relationships[name]
        except KeyError:
            raise MalformedCriteriaError(
                f"{self.name} has no relation '{name}'", path=path or name
            ) from None

    def identity_clause(self, entity_id: Any) -> Any:
        """WHERE clause selecting one record by primary key."""
        if len(self.primary_key) == 1:
            return self.primary_key[0] == entity_id

        if not isinstance(entity_id, (tuple, list)) or len(entity_id) != len(self.primary_key):
            raise MalformedCriteriaError(
                f"{self.name} has a composite key of {len(self.primary_key)} columns"
            )
        return and_(*(column == value for column, value in zip(self.primary_key, entity_id)))


@lru_cache(maxsize=None)
def describe(model: type) -> EntityDescriptor:
    """
    Build (once) the descriptor of a mapped model class.

    Raises:
        TypeError: ``model`` is not a mapped class.
    """
    try:
        mapper = inspect(model)
    except NoInspectionAvailable:
        raise TypeError(f"{model!r} is not a mapped SQLAlchemy model") from None

    configure_mappers()

    columns = {attr.key: getattr(model, attr.key) for attr in mapper.column_attrs}
    relationships = {rel.key: rel for rel in mapper.relationships}
    primary_key = tuple(
        getattr(model, mapper.get_property_by_column(column).key)
        for column in mapper.primary_key
    )

    return EntityDescriptor(
        model=model,
        columns=MappingProxyType(columns),
        relationships=MappingProxyType(relationships),
        primary_key=primary_key,
    )


@lru_cache(maxsize=None)
def resolve_relation_path(model: type, relation_path: str) -> tuple[RelationStep, ...]:
    """
    Resolve every segment of a dotted relation path.

    Raises:
        MalformedCriteriaError: A segment is not a relation of the entity
            reached so far.
    """
    steps: list[RelationStep] = []
    current = model
    for segment in relation_path.split(PATH_SEPARATOR):
        relationship = describe(current).relationship(segment, path=relation_path)
        target = relationship.mapper.class_
        steps.append(
            RelationStep(
                attribute=getattr(current, segment),
                target=target,
                uselist=bool(relationship.uselist),
            )
        )
        current = target
    return tuple(steps)
