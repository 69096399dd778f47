"""
Repository for entities using SoftDeleteMixin.

Default reads (inherited from BaseRepository) see active records only;
``with_trashed*`` reads see active and archived records and ``only_trashed*``
reads see archived records only.

Usage:
    repo = SoftDeletesRepository(Product, db)
    repo.delete(7)                      # archives
    repo.only_trashed()                 # [Product(id=7, ...)]
    repo.restore(7)                     # True
    repo.force_delete(7)                # True, row is gone
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, delete, update
from sqlalchemy.orm import Session

from repokit.criteria import QueryParameters
from repokit.models import supports_soft_delete
from repokit.repositories.base import BaseRepository
from repokit.repositories.contracts import ModelT, SoftDeletesRepositoryContract
from repokit.repositories.pagination import Page
from shared.config.constants import ALL_COLUMNS, Limits
from shared.config.logging import get_logger

logger = get_logger(__name__)


def _affected(rowcount: int | None) -> bool:
    """Some drivers report -1 or None when the count is unknown."""
    return rowcount is not None and rowcount > 0


class SoftDeletesRepository(BaseRepository[ModelT], SoftDeletesRepositoryContract[ModelT]):
    """BaseRepository plus the trashed scopes, restore and force_delete."""

    def __init__(self, model: type[ModelT], session: Session):
        if not supports_soft_delete(model):
            raise TypeError(f"{model.__name__} does not use SoftDeleteMixin")
        super().__init__(model, session)

    def _with_trashed_query(self) -> Select:
        return self._base_query()

    def _only_trashed_query(self) -> Select:
        return self._base_query().where(self._model.deleted_at.is_not(None))

    # =========================================================================
    # Listing
    # =========================================================================

    def with_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._get(self._with_trashed_query(), criteria)

    def with_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._paginate(self._with_trashed_query(), criteria, per_page, page_name, page)

    def only_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._get(self._only_trashed_query(), criteria)

    def only_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._paginate(self._only_trashed_query(), criteria, per_page, page_name, page)

    # =========================================================================
    # Finding
    # =========================================================================

    def find_with_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._first(self._with_trashed_query(), criteria)

    def find_with_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._first_or_fail(self._with_trashed_query(), criteria)

    def find_with_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._find_by_id(self._with_trashed_query(), entity_id, relations, columns)

    def find_with_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._find_by_id_or_fail(self._with_trashed_query(), entity_id, relations, columns)

    def find_only_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._first(self._only_trashed_query(), criteria)

    def find_only_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._first_or_fail(self._only_trashed_query(), criteria, scope="only_trashed")

    def find_only_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._find_by_id(self._only_trashed_query(), entity_id, relations, columns)

    def find_only_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._find_by_id_or_fail(
            self._only_trashed_query(), entity_id, relations, columns, scope="only_trashed"
        )

    # =========================================================================
    # Restore & permanent delete
    # =========================================================================

    def restore(self, entity_id: Any) -> bool:
        self.find_only_trashed_by_id_or_fail(entity_id)
        self._session.flush()

        result = self._session.execute(
            update(self._model)
            .where(
                self.descriptor.identity_clause(entity_id),
                self._model.deleted_at.is_not(None),
            )
            .values(deleted_at=None)
        )
        restored = _affected(result.rowcount)
        logger.debug("Entity restored", entity=self.entity_name, entity_id=entity_id, restored=restored)
        return restored

    def force_delete(self, entity_id: Any) -> bool:
        self.find_with_trashed_by_id_or_fail(entity_id)
        self._session.flush()

        result = self._session.execute(
            delete(self._model).where(self.descriptor.identity_clause(entity_id))
        )
        removed = _affected(result.rowcount)
        logger.debug("Entity force deleted", entity=self.entity_name, entity_id=entity_id, removed=removed)
        return removed
