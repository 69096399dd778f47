"""
SQLAlchemy model base classes.

- Base: Declarative base
- TimestampMixin: created_at / updated_at
- SoftDeleteMixin: deleted_at archived marker
"""

from .base import Base, TimestampMixin, SoftDeleteMixin, supports_soft_delete

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "supports_soft_delete",
]
