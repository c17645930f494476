"""Declarative base and column mixins for models served by BaseRepository.

Models opt into repository behaviour through the columns they map:

- ``SoftDeleteMixin`` adds ``deleted_at``; its presence switches
  ``destroy``/``restore`` to soft delete and hides trashed rows by default.
- ``IntegerIDMixin`` / ``UUIDMixin`` provide the single-column primary key
  every repository requires.
- ``TimestampMixin`` adds server-populated ``created_at``/``updated_at``;
  ``store`` and ``update`` refresh the entity, so both are set on return.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, Uuid, func
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Base class for all repository-managed models.

    ``repr()`` shows the primary key, plus ``trashed`` for soft-deleted rows.
    Only already-loaded values are read, so it never emits SQL.
    """

    def __repr__(self) -> str:
        mapper = sa_inspect(type(self))
        keys = [mapper.get_property_by_column(column).key for column in mapper.primary_key]
        parts = [f"{key}={self.__dict__.get(key)!r}" for key in keys]
        if isinstance(self, SoftDeleteMixin) and self.__dict__.get("deleted_at") is not None:
            parts.append("trashed")
        return f"{type(self).__name__}({', '.join(parts)})"


class TimestampMixin:
    """Creation and last-modification timestamps, filled in by the database."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        # onupdate fires on ORM flushes, so repository updates bump it
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
        )


class SoftDeleteMixin:
    """Mixin that adds soft delete functionality with deleted_at timestamp.

    Repositories detect the ``deleted_at`` column and switch destroy/restore
    to their soft-delete behaviour for models carrying this mixin.
    """

    @declared_attr
    def deleted_at(cls) -> Mapped[datetime | None]:
        """Timestamp when the record was soft-deleted. None if not deleted."""
        return mapped_column(
            DateTime(timezone=True),
            nullable=True,
            default=None,
            index=True,
        )

    @property
    def trashed(self) -> bool:
        """Whether the record is currently soft-deleted."""
        return self.deleted_at is not None


class UUIDMixin:
    """Client-generated UUID primary key; ``store`` may also pass one explicitly."""

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class IntegerIDMixin:
    """Mixin that adds an auto-incrementing integer primary key."""

    @declared_attr
    def id(cls) -> Mapped[int]:
        """Primary key integer."""
        return mapped_column(Integer, primary_key=True, autoincrement=True)
