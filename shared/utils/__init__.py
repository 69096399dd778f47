"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    MalformedCriteriaError,
    UnknownFieldError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "MalformedCriteriaError",
    "UnknownFieldError",
]
