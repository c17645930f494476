"""Models used only by the test suite."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repokit.models.base import (
    Base,
    IntegerIDMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class Author(Base, IntegerIDMixin, TimestampMixin, SoftDeleteMixin):
    """Soft-deletable model with an integer key and a one-to-many relation."""

    __tablename__ = "authors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    books: Mapped[list["Book"]] = relationship(back_populates="author")


class Book(Base, IntegerIDMixin, SoftDeleteMixin):
    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("authors.id"), nullable=False)

    author: Mapped[Author] = relationship(back_populates="books")
    reviews: Mapped[list["Review"]] = relationship(back_populates="book")


class Review(Base, IntegerIDMixin):
    __tablename__ = "reviews"

    body: Mapped[str] = mapped_column(Text, nullable=False)
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"), nullable=False)

    book: Mapped[Book] = relationship(back_populates="reviews")


class Tag(Base, UUIDMixin):
    """Model without soft delete."""

    __tablename__ = "tags"

    label: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
