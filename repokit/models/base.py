"""
Declarative base and mixins for models managed by repokit repositories.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """
    Mixin providing creation and modification timestamps.

    Fields added:
    - created_at: Set by the database on insert
    - updated_at: Refreshed on every ORM update
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


class SoftDeleteMixin:
    """
    Mixin providing the archived marker for soft-deletable models.

    A NULL ``deleted_at`` means the record is active; any timestamp means it
    is archived ("trashed") but still physically present.

    Methods:
    - soft_delete(): Mark entity as archived
    - restore(): Mark an archived entity as active again
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @property
    def trashed(self) -> bool:
        """True when the record carries the archived marker."""
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        """Set the archived marker."""
        self.deleted_at = datetime.now(timezone.utc)

    def restore(self) -> None:
        """Clear the archived marker."""
        self.deleted_at = None

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        state = "trashed" if self.trashed else "active"
        return f"<{class_name}(id={id_val}, {state})>"


def supports_soft_delete(model: type) -> bool:
    """Whether instances of ``model`` carry the archived marker."""
    return isinstance(model, type) and issubclass(model, SoftDeleteMixin)
