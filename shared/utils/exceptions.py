"""
Centralized exceptions for the data-access layer.

Every exception maps to an HTTP status so callers can surface it directly.
Exceptions carry their context but never log themselves; logging is the
caller's decision.

Usage:
    from shared.utils.exceptions import NotFoundError, MalformedCriteriaError

    raise NotFoundError("Product", product_id)
    raise MalformedCriteriaError("Unknown operator 'approx'", path="price")
"""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """
    Base exception for the data-access layer.

    Attributes:
        detail: Human-readable message.
        status_code: HTTP status the error maps to.
        context: Structured data describing the failure.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict[str, str] | None = None,
        **context: Any,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.context = context


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Product", 123)
        raise NotFoundError("Product", scope="only_trashed")
    """

    def __init__(self, entity: str, entity_id: Any | None = None, **context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **context,
        )
        self.entity = entity
        self.entity_id = entity_id


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("per_page must be at least 1", per_page=0)
    """

    def __init__(self, detail: str, **context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **context,
        )


class MalformedCriteriaError(ValidationError):
    """
    Query criteria cannot be translated (400).

    Raised for unknown operators, wrong operand shapes, unknown columns and
    relation paths that do not exist on the entity. Always raised before any
    SQL is executed.

    Usage:
        raise MalformedCriteriaError("Operator 'between' expects [low, high]", path="score")
    """

    def __init__(self, detail: str, path: str | None = None, **context: Any):
        if path is not None:
            detail = f"{detail} (at '{path}')"
        super().__init__(detail, path=path, **context)
        self.path = path


class UnknownFieldError(ValidationError):
    """Data for create/update names a field the entity does not have."""

    def __init__(self, entity: str, fields: list[str], **context: Any):
        fields_str = ", ".join(sorted(fields))
        super().__init__(
            f"{entity} has no field(s): {fields_str}",
            entity=entity,
            fields=fields,
            **context,
        )
