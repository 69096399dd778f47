"""
Centralized constants for the data-access layer.
Avoids magic strings for sort directions, column wildcards and page sizes.

Usage:
    from shared.config.constants import Limits, SortDirection, ALL_COLUMNS

    if direction not in SortDirection.ALL:
        ...
"""

from typing import Final

from shared.config.settings import settings


# =============================================================================
# Query Constants
# =============================================================================


class SortDirection:
    """Sort direction tokens accepted in order_by mappings."""

    ASC: Final[str] = "asc"
    DESC: Final[str] = "desc"

    ALL: Final[frozenset[str]] = frozenset({ASC, DESC})


# Column list meaning "every mapped column"
ALL_COLUMNS: Final[tuple[str, ...]] = ("*",)

# Separator between relation names in a relation path ("profile.categories.name")
PATH_SEPARATOR: Final[str] = "."

# Pseudo filter keys asserting presence/absence of related records
EXISTS_KEY: Final[str] = "exists"
NOT_EXISTS_KEY: Final[str] = "not_exists"


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Pagination limits."""

    DEFAULT_PAGE_SIZE: Final[int] = settings.default_per_page
    MAX_PAGE_SIZE: Final[int] = settings.max_per_page
    DEFAULT_PAGE_NAME: Final[str] = settings.page_name
    FIRST_PAGE: Final[int] = 1
