"""Offset/limit pagination containers."""

import math
from typing import Generic, TypeVar

from repokit.core.config import settings

T = TypeVar("T")


class PaginationParams:
    """Pagination parameters for paginated queries.

    Implements offset/limit pagination with validation to ensure reasonable
    values. Limit is capped at ``settings.max_page_size``.

    Attributes:
        offset: Number of records to skip (default: 0, must be >= 0)
        limit: Number of records to return (default: 50)

    Example:
        # Third page of 15
        params = PaginationParams.from_page(page=3, per_page=15)
        assert params.offset == 30

    Raises:
        ValueError: If offset is negative or limit is out of range
    """

    def __init__(self, offset: int = 0, limit: int = 50) -> None:
        if offset < 0:
            raise ValueError("Offset must be non-negative")
        if limit <= 0 or limit > settings.max_page_size:
            raise ValueError(f"Limit must be between 1 and {settings.max_page_size}")

        self.offset = offset
        self.limit = limit

    @classmethod
    def from_page(cls, page: int, per_page: int) -> "PaginationParams":
        """Build params from a 1-based page number."""
        if page < 1:
            raise ValueError("Page must be at least 1")
        return cls(offset=(page - 1) * per_page, limit=per_page)


class PaginatedResult(Generic[T]):
    """Paginated result container with metadata.

    Attributes:
        items: List of entities in this page
        total: Total count of all entities (across all pages)
        offset: Current page offset
        limit: Current page limit
        has_next: Boolean indicating if more pages exist after this one
        has_prev: Boolean indicating if previous pages exist before this one
    """

    def __init__(
        self,
        items: list[T],
        total: int,
        offset: int,
        limit: int
    ) -> None:
        self.items = items
        self.total = total
        self.offset = offset
        self.limit = limit
        self.has_next = offset + limit < total
        self.has_prev = offset > 0

    @property
    def per_page(self) -> int:
        return self.limit

    @property
    def page(self) -> int:
        """1-based number of this page."""
        return self.offset // self.limit + 1

    @property
    def last_page(self) -> int:
        """Number of the last page; 1 for an empty result."""
        return max(1, math.ceil(self.total / self.limit))

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return (
            f"PaginatedResult(page={self.page}, per_page={self.per_page}, "
            f"total={self.total}, items={len(self.items)})"
        )
