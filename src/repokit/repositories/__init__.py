"""Repository layer for database operations.

This module provides the repository pattern implementation for data access.
Repositories encapsulate query building over a SQLAlchemy model and provide a
clean API for service and controller code.
"""

from repokit.repositories.base import BaseRepository
from repokit.repositories.exceptions import (
    NotFoundError,
    QueryError,
    RepositoryError,
)
from repokit.repositories.interface import RepositoryInterface
from repokit.repositories.pagination import PaginatedResult, PaginationParams
from repokit.repositories.result import Failed, NotFound, Ok, Outcome
from repokit.repositories.utils import is_blank

__all__ = [
    "BaseRepository",
    "Failed",
    "NotFound",
    "NotFoundError",
    "Ok",
    "Outcome",
    "PaginatedResult",
    "PaginationParams",
    "QueryError",
    "RepositoryError",
    "RepositoryInterface",
    "is_blank",
]
