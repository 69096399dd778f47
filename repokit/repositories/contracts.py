"""
Repository contracts.

BaseRepositoryContract: CRUD plus criteria-driven reads for one entity type.
SoftDeletesRepositoryContract: reads over active+archived and archived-only
records, restore and permanent delete.

Advanced reads take an optional QueryParameters; omitting it means "no
criteria".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from repokit.criteria import QueryParameters
from repokit.repositories.pagination import Page
from shared.config.constants import ALL_COLUMNS, Limits

ModelT = TypeVar("ModelT")

EntityData = Mapping[str, Any] | BaseModel


class BaseRepositoryContract(ABC, Generic[ModelT]):
    """Contract for repositories of one entity type."""

    # =========================================================================
    # Listing
    # =========================================================================

    @abstractmethod
    def all(self) -> Sequence[ModelT]:
        """Every record, without filtering."""
        ...

    @abstractmethod
    def get(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        """
        Records matching the criteria.

        Args:
            criteria: filters, relation_filters, relations, order_by, limit, columns

        Returns:
            Matching records; empty when nothing matches.
        """
        ...

    @abstractmethod
    def paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        """
        One page of matching records with the total count.

        Args:
            criteria: filters, relation_filters, relations, order_by, columns
            per_page: Page size, at least 1. Values above
                ``Limits.MAX_PAGE_SIZE`` (``REPOKIT_MAX_PER_PAGE``) are capped,
                and the returned ``Page.per_page`` reports the size actually used.
            page_name: Query-string parameter name for the page number.
            page: 1-indexed page; None means the first page.

        Raises:
            ValidationError: per_page < 1.
        """
        ...

    # =========================================================================
    # Finding
    # =========================================================================

    @abstractmethod
    def find_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        """
        First record matching the criteria. With ``order_by`` the first of
        the sorted result, otherwise storage order.
        """
        ...

    @abstractmethod
    def find_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        """
        Same as find_by.

        Raises:
            NotFoundError: No record matches.
        """
        ...

    @abstractmethod
    def find_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        """Record with the primary key, with eager-loaded relations."""
        ...

    @abstractmethod
    def find_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        """
        Same as find_by_id.

        Raises:
            NotFoundError: No record has the primary key.
        """
        ...

    # =========================================================================
    # Mutations
    # =========================================================================

    @abstractmethod
    def create(self, data: EntityData) -> ModelT:
        """Persist a new record; the returned entity has its key populated."""
        ...

    @abstractmethod
    def update(self, entity_id: Any, data: EntityData) -> ModelT:
        """
        Apply ``data`` to the record and persist it.

        Raises:
            NotFoundError: No record has the primary key.
        """
        ...

    @abstractmethod
    def delete(self, entity_id: Any) -> None:
        """
        Remove the record (archive it for soft-deletable entities).

        Raises:
            NotFoundError: No record has the primary key.
        """
        ...


class SoftDeletesRepositoryContract(ABC, Generic[ModelT]):
    """
    Contract for repositories of soft-deletable entities.

    Reads come in two extra scopes: active and archived together
    (``with_trashed*``) and archived only (``only_trashed*``).
    """

    # =========================================================================
    # Listing: active + archived
    # =========================================================================

    @abstractmethod
    def with_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        """Active and archived records matching the criteria."""
        ...

    @abstractmethod
    def with_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        """Paginated active and archived records."""
        ...

    # =========================================================================
    # Listing: archived only
    # =========================================================================

    @abstractmethod
    def only_trashed(self, criteria: QueryParameters | None = None) -> Sequence[ModelT]:
        """Archived records matching the criteria."""
        ...

    @abstractmethod
    def only_trashed_paginate(
        self,
        criteria: QueryParameters | None = None,
        per_page: int = Limits.DEFAULT_PAGE_SIZE,
        page_name: str = Limits.DEFAULT_PAGE_NAME,
        page: int | None = None,
    ) -> Page[ModelT]:
        """Paginated archived records."""
        ...

    # =========================================================================
    # Finding: active + archived
    # =========================================================================

    @abstractmethod
    def find_with_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        ...

    @abstractmethod
    def find_with_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        ...

    @abstractmethod
    def find_with_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        ...

    @abstractmethod
    def find_with_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        ...

    # =========================================================================
    # Finding: archived only
    # =========================================================================

    @abstractmethod
    def find_only_trashed_by(self, criteria: QueryParameters | None = None) -> ModelT | None:
        ...

    @abstractmethod
    def find_only_trashed_by_or_fail(self, criteria: QueryParameters | None = None) -> ModelT:
        ...

    @abstractmethod
    def find_only_trashed_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT | None:
        ...

    @abstractmethod
    def find_only_trashed_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        columns: Sequence[str] = ALL_COLUMNS,
    ) -> ModelT:
        ...

    # =========================================================================
    # Restore & permanent delete
    # =========================================================================

    @abstractmethod
    def restore(self, entity_id: Any) -> bool:
        """
        Clear the archived marker of an archived record.

        Returns:
            True when a record was restored.

        Raises:
            NotFoundError: No archived record has the primary key.
        """
        ...

    @abstractmethod
    def force_delete(self, entity_id: Any) -> bool:
        """
        Physically remove a record, archived or not.

        Returns:
            True when a record was removed.

        Raises:
            NotFoundError: No record has the primary key.
        """
        ...
