"""
Base Service Classes.

Services sit between callers and repositories: reads are delegated
unchanged, mutations run inside a TransactionManager so they either commit
as a whole or leave the database untouched.

Architecture:
    Caller → Service (transaction boundary) → Repository (data access) → Model

Usage:
    from repokit.services import BaseService

    class ProductService(BaseService[Product]):
        def reprice(self, product_id: int, price: Decimal) -> Product:
            return self.update(product_id, {"price": price})

    service = ProductService(BaseRepository(Product, db))
    product = service.create({"name": "Lamp", "price": 40})
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic

from sqlalchemy.orm import Session

from repokit.criteria import QueryParameters
from repokit.repositories import BaseRepository, SoftDeletesRepository
from repokit.repositories.contracts import EntityData, ModelT
from repokit.repositories.pagination import Page
from shared.config.constants import ALL_COLUMNS, Limits
from shared.config.logging import get_logger
from shared.infrastructure.db import TransactionManager

logger = get_logger(__name__)


class BaseService(Generic[ModelT]):
    """
    Service over one repository.

    Subclasses add business operations; nested ``create``/``update``/``delete``
    calls made from inside another transactional operation on the same
    session run in a savepoint of that transaction and commit with it.
    """

    def __init__(
        self,
        repository: BaseRepository[ModelT],
        transactions: TransactionManager | None = None,
    ):
        self._repo = repository
        self._transactions = transactions or TransactionManager(repository.session)

    @property
    def repo(self) -> BaseRepository[ModelT]:
        """Repository for data access."""
        return self._repo

    @property
    def db(self) -> Session:
        """Database session."""
        return self._repo.session

    @property
    def transactions(self) -> TransactionManager:
        return self._transactions

    @property
    def entity_name(self) -> str:
        return self._repo.entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def all(self) -> Sequence[ModelT]:
        return self._repo.all()

    def get(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._repo.get(criteria)

    def paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._repo.paginate(criteria, per_page=per_page, page_name=page_name, page=page)

    def count(self, criteria: QueryParameters | None = None) -> int:
        return self._repo.count(criteria)

    def exists(self, criteria: QueryParameters | None = None) -> bool:
        return self._repo.exists(criteria)

    def find_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._repo.find_by(criteria)

    def find_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._repo.find_by_or_fail(criteria)

    def find_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._repo.find_by_id(entity_id, relations=relations, columns=columns)

    def find_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._repo.find_by_id_or_fail(entity_id, relations=relations, columns=columns)

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(self, data: EntityData) -> ModelT:
        """
        Create an entity in its own transaction.

        Raises:
            ValidationError: ``data`` names fields the entity does not have.
        """
        entity = self._transactions.run(lambda: self._repo.create(data))
        self._log_committed("Entity created", entity_id=self._repo.identity_of(entity))
        return entity

    def update(self, entity_id: Any, data: EntityData) -> ModelT:
        """
        Update an entity in its own transaction.

        Raises:
            NotFoundError: No record has the primary key.
            ValidationError: ``data`` names fields the entity does not have.
        """
        entity = self._transactions.run(lambda: self._repo.update(entity_id, data))
        self._log_committed("Entity updated", entity_id=entity_id)
        return entity

    def delete(self, entity_id: Any) -> None:
        """
        Delete (or archive) an entity in its own transaction.

        Raises:
            NotFoundError: No record has the primary key.
        """
        self._transactions.run(lambda: self._repo.delete(entity_id))
        self._log_committed("Entity deleted", entity_id=entity_id)

    def _log_committed(self, message: str, **context: Any) -> None:
        # Inside an outer transaction nothing is committed yet
        if self._transactions.active:
            return
        logger.info(message, entity=self.entity_name, **context)


class SoftDeletesService(BaseService[ModelT]):
    """BaseService plus the trashed reads, restore and force_delete."""

    def __init__(
        self,
        repository: SoftDeletesRepository[ModelT],
        transactions: TransactionManager | None = None,
    ):
        if not isinstance(repository, SoftDeletesRepository):
            raise TypeError(f"{type(repository).__name__} is not a SoftDeletesRepository")
        super().__init__(repository, transactions)

    @property
    def repo(self) -> SoftDeletesRepository[ModelT]:
        return self._repo

    # =========================================================================
    # Read Operations
    # =========================================================================

    def with_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._repo.with_trashed(criteria)

    def with_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._repo.with_trashed_paginate(criteria, per_page=per_page, page_name=page_name, page=page)

    def only_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        return self._repo.only_trashed(criteria)

    def only_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        return self._repo.only_trashed_paginate(criteria, per_page=per_page, page_name=page_name, page=page)

    def find_with_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._repo.find_with_trashed_by(criteria)

    def find_with_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._repo.find_with_trashed_by_or_fail(criteria)

    def find_with_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._repo.find_with_trashed_by_id(entity_id, relations=relations, columns=columns)

    def find_with_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._repo.find_with_trashed_by_id_or_fail(entity_id, relations=relations, columns=columns)

    def find_only_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        return self._repo.find_only_trashed_by(criteria)

    def find_only_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        return self._repo.find_only_trashed_by_or_fail(criteria)

    def find_only_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        return self._repo.find_only_trashed_by_id(entity_id, relations=relations, columns=columns)

    def find_only_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        return self._repo.find_only_trashed_by_id_or_fail(entity_id, relations=relations, columns=columns)

    # =========================================================================
    # Restore & permanent delete
    # =========================================================================

    def restore(self, entity_id: Any) -> bool:
        """
        Restore an archived entity in its own transaction.

        Raises:
            NotFoundError: No archived record has the primary key.
        """
        restored = self._transactions.run(lambda: self._repo.restore(entity_id))
        self._log_committed("Entity restored", entity_id=entity_id, restored=restored)
        return restored

    def force_delete(self, entity_id: Any) -> bool:
        """
        Permanently remove an entity, archived or not, in its own transaction.

        Raises:
            NotFoundError: No record has the primary key.
        """
        removed = self._transactions.run(lambda: self._repo.force_delete(entity_id))
        self._log_committed("Entity force deleted", entity_id=entity_id, removed=removed)
        return removed
