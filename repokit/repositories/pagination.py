"""
Length-aware page of query results.

Usage:
    page = repo.paginate(criteria, per_page=20, page=3)
    for entity in page:
        ...
    return {"items": [...], "pagination": page.meta()}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterator, Sequence, TypeVar

from shared.config.constants import Limits

ItemT = TypeVar("ItemT")


def resolve_page(page: int | None) -> int:
    """Normalize a requested page number; None or < 1 means the first page."""
    if page is None or isinstance(page, bool) or not isinstance(page, int) or page < Limits.FIRST_PAGE:
        return Limits.FIRST_PAGE
    return page


def page_offset(page: int, per_page: int) -> int:
    """Rows to skip before ``page``."""
    return (page - 1) * per_page


@dataclass
class Page(Generic[ItemT]):
    """
    One page of items plus the total row count of the unpaginated query.

    Attributes:
        items: Entities on this page.
        total: Rows matching the criteria across all pages.
        per_page: Page size.
        current_page: 1-indexed page number.
        page_name: Query-string parameter carrying the page number.
    """

    items: Sequence[ItemT]
    total: int
    per_page: int
    current_page: int
    page_name: str = Limits.DEFAULT_PAGE_NAME

    @property
    def last_page(self) -> int:
        """Number of the last page (1 when there are no items)."""
        return max(1, (self.total + self.per_page - 1) // self.per_page)

    @property
    def offset(self) -> int:
        return page_offset(self.current_page, self.per_page)

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    @property
    def on_first_page(self) -> bool:
        return self.current_page <= 1

    @property
    def first_item(self) -> int | None:
        """1-based position of the first item on this page."""
        if not self.items:
            return None
        return self.offset + 1

    @property
    def last_item(self) -> int | None:
        """1-based position of the last item on this page."""
        if not self.items:
            return None
        return self.offset + len(self.items)

    def meta(self) -> dict[str, Any]:
        """Pagination metadata for responses."""
        return {
            "total": self.total,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "from": self.first_item,
            "to": self.last_item,
            "has_more_pages": self.has_more_pages,
            "page_name": self.page_name,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to response dictionary."""
        return {
            "items": list(self.items),
            "pagination": self.meta(),
        }

    def __iter__(self) -> Iterator[ItemT]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
