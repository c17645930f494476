"""Declarative base and mixins for models served by repositories."""

from repokit.models.base import (
    Base,
    IntegerIDMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)

__all__ = [
    "Base",
    "IntegerIDMixin",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UUIDMixin",
]
