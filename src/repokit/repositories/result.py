"""Tagged lookup outcomes.

``BaseRepository.find`` returns one of these instead of raising or returning
a bare ``None``, so callers can tell a missing row from a failed query:

    match await repo.find(author_id):
        case Ok(value=author):
            ...
        case NotFound():
            ...
        case Failed(error=error):
            ...
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The lookup succeeded and produced ``value``."""

    value: T


@dataclass(frozen=True)
class NotFound:
    """The query ran but no row matched ``key``."""

    model: str
    key: Any


@dataclass(frozen=True)
class Failed:
    """The query itself failed."""

    error: SQLAlchemyError


Outcome = Union[Ok[T], NotFound, Failed]
