"""
Application services wrapping repositories in transactions.
"""

from .base_service import BaseService, SoftDeletesService

__all__ = [
    "BaseService",
    "SoftDeletesService",
]
