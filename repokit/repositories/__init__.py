"""
Repository pattern over SQLAlchemy sessions.

Usage:
    from repokit.repositories import get_repository

    repo = get_repository(Product, db)
    products = repo.get(QueryParameters(filters={"status": "active"}))
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from repokit.models import supports_soft_delete

from .pagination import Page, resolve_page, page_offset
from .contracts import (
    BaseRepositoryContract,
    SoftDeletesRepositoryContract,
    EntityData,
    ModelT,
)
from .base import BaseRepository
from .soft_deletes import SoftDeletesRepository


def get_repository(model: type[ModelT], session: Session) -> BaseRepository[ModelT]:
    """
    Factory function for creating repositories.

    Args:
        model: The SQLAlchemy model class.
        session: Database session.

    Returns:
        SoftDeletesRepository for models using SoftDeleteMixin,
        BaseRepository otherwise.
    """
    if supports_soft_delete(model):
        return SoftDeletesRepository(model, session)
    return BaseRepository(model, session)


__all__ = [
    # Pagination
    "Page",
    "resolve_page",
    "page_offset",
    # Contracts
    "BaseRepositoryContract",
    "SoftDeletesRepositoryContract",
    "EntityData",
    # Implementations
    "BaseRepository",
    "SoftDeletesRepository",
    "get_repository",
]
