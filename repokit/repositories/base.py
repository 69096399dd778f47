"""
SQLAlchemy implementation of the repository contract.

Usage:
    from repokit.repositories import BaseRepository
    from repokit.criteria import QueryParameters

    repo = BaseRepository(Product, db)

    products = repo.get(QueryParameters(
        filters={"status": "active", "price": [">", 100]},
        order_by={"price": "desc"},
        limit=10,
    ))
    product = repo.find_by_id_or_fail(42, relations=["category"])
    repo.update(42, {"price": 120})

Mutations add and flush through the session but never commit; the service
layer (or the caller) owns the transaction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel
from sqlalchemy import Select, func, inspect, select
from sqlalchemy.orm import Session

from repokit.criteria import CriteriaApplier, EntityDescriptor, QueryParameters
from repokit.criteria.applier import EMPTY_CRITERIA
from repokit.models import supports_soft_delete
from repokit.repositories.contracts import BaseRepositoryContract, EntityData, ModelT
from repokit.repositories.pagination import Page, page_offset, resolve_page
from shared.config.constants import ALL_COLUMNS, Limits
from shared.config.logging import get_logger
from shared.utils.exceptions import NotFoundError, UnknownFieldError, ValidationError

logger = get_logger(__name__)


class BaseRepository(BaseRepositoryContract[ModelT]):
    """
    Repository for one entity type over a SQLAlchemy session.

    Entities using SoftDeleteMixin are scoped to active records and are
    archived instead of removed by ``delete``.
    """

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session
        self._applier = CriteriaApplier(model)
        self._soft_deletes = supports_soft_delete(model)

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    @property
    def descriptor(self) -> EntityDescriptor:
        """Columns, relationships and primary key of the model."""
        return self._applier.descriptor

    @property
    def entity_name(self) -> str:
        """Entity name for messages."""
        return self._model.__name__

    # =========================================================================
    # Query scopes
    # =========================================================================

    def _base_query(self) -> Select:
        """Unscoped select over the model."""
        return select(self._model)

    def _apply_active_filter(self, query: Select) -> Select:
        """Hide archived records if the model has the archived marker."""
        if self._soft_deletes:
            query = query.where(self._model.deleted_at.is_(None))
        return query

    def _new_query(self) -> Select:
        """Default scope for every read of this repository."""
        return self._apply_active_filter(self._base_query())

    # =========================================================================
    # Read helpers shared by every scope
    # =========================================================================

    def _get(self, query: Select, criteria: QueryParameters | None) -> Sequence[ModelT]:
        return self._session.scalars(self._applier.apply(query, criteria)).all()

    def _paginate(
        self,
        query: Select,
        criteria: QueryParameters | None,
        per_page: int,
        page_name: str,
        page: int | None,
    ) -> Page[ModelT]:
        if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
            raise ValidationError("per_page must be an integer of at least 1", per_page=per_page)
        per_page = min(per_page, Limits.MAX_PAGE_SIZE)
        current_page = resolve_page(page)

        filtered = self._applier.apply_filters(query, criteria or EMPTY_CRITERIA)
        total = self._session.scalar(select(func.count()).select_from(filtered.subquery())) or 0

        items_query = (
            self._applier.apply(query, criteria, with_limit=False)
            .offset(page_offset(current_page, per_page))
            .limit(per_page)
        )
        items = self._session.scalars(items_query).all()

        return Page(
            items=list(items),
            total=total,
            per_page=per_page,
            current_page=current_page,
            page_name=page_name,
        )

    def _first(self, query: Select, criteria: QueryParameters | None) -> ModelT | None:
        query = self._applier.apply(query, criteria, with_limit=False).limit(1)
        return self._session.scalars(query).first()

    def _first_or_fail(self, query: Select, criteria: QueryParameters | None, **context: Any) -> ModelT:
        entity = self._first(query, criteria)
        if entity is None:
            raise NotFoundError(self.entity_name, **context)
        return entity

    def _find_by_id(
        self,
        query: Select,
        entity_id: Any,
        relations: Sequence[str],
        columns: Sequence[str],
    ) -> ModelT | None:
        query = query.where(self.descriptor.identity_clause(entity_id))
        criteria = QueryParameters(relations=relations, columns=columns)
        return self._session.scalars(self._applier.apply(query, criteria)).first()

    def _find_by_id_or_fail(
        self,
        query: Select,
        entity_id: Any,
        relations: Sequence[str],
        columns: Sequence[str],
        **context: Any,
    ) -> ModelT:
        entity = self._find_by_id(query, entity_id, relations, columns)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id, **context)
        return entity

    # =========================================================================
    # Listing
    # =========================================================================

    def all(self) -> Sequence[ModelT]:
        return self._session.scalars(self._new_query()).all()

    def get(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._get(self._new_query(), criteria)

    def paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._paginate(self._new_query(), criteria, per_page, page_name, page)

    def count(self, criteria: QueryParameters | None = None) -> int:
        """Number of records matching the criteria filters."""
        filtered = self._applier.apply_filters(self._new_query(), criteria or EMPTY_CRITERIA)
        return self._session.scalar(select(func.count()).select_from(filtered.subquery())) or 0

    def exists(self, criteria: QueryParameters | None = None) -> bool:
        """Whether any record matches the criteria filters."""
        filtered = self._applier.apply_filters(self._new_query(), criteria or EMPTY_CRITERIA)
        return bool(self._session.scalar(select(filtered.exists())))

    # =========================================================================
    # Finding
    # =========================================================================

    def find_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._first(self._new_query(), criteria)

    def find_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._first_or_fail(self._new_query(), criteria)

    def find_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._find_by_id(self._new_query(), entity_id, relations, columns)

    def find_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._find_by_id_or_fail(self._new_query(), entity_id, relations, columns)

    # =========================================================================
    # Mutations
    # =========================================================================

    def _prepare_data(self, data: EntityData) -> dict[str, Any]:
        """Field map from a mapping or pydantic model, restricted to mapped fields."""
        if isinstance(data, BaseModel):
            values = data.model_dump(exclude_unset=True)
        elif isinstance(data, Mapping):
            values = dict(data)
        else:
            raise ValidationError(
                f"{self.entity_name} data must be a mapping or a pydantic model",
                data_type=type(data).__name__,
            )

        descriptor = self.descriptor
        unknown = [
            key for key in values
            if key not in descriptor.columns and key not in descriptor.relationships
        ]
        if unknown:
            raise UnknownFieldError(self.entity_name, unknown)
        return values

    def identity_of(self, entity: ModelT) -> Any:
        """Primary key value of a persistent entity (tuple for composite keys)."""
        identity = inspect(entity).identity
        if identity is None:
            return None
        return identity[0] if len(identity) == 1 else identity

    def create(self, data: EntityData) -> ModelT:
        entity = self._model(**self._prepare_data(data))
        self._session.add(entity)
        self._session.flush()
        self._session.refresh(entity)
        logger.debug("Entity flushed", entity=self.entity_name, entity_id=self.identity_of(entity))
        return entity

    def update(self, entity_id: Any, data: EntityData) -> ModelT:
        values = self._prepare_data(data)
        entity = self.find_by_id_or_fail(entity_id)
        for key, value in values.items():
            setattr(entity, key, value)
        self._session.flush()
        self._session.refresh(entity)
        logger.debug("Entity updated", entity=self.entity_name, entity_id=entity_id, fields=list(values))
        return entity

    def delete(self, entity_id: Any) -> None:
        entity = self.find_by_id_or_fail(entity_id)
        if self._soft_deletes:
            entity.soft_delete()
        else:
            self._session.delete(entity)
        self._session.flush()
        logger.debug(
            "Entity deleted",
            entity=self.entity_name,
            entity_id=entity_id,
            soft=self._soft_deletes,
        )
