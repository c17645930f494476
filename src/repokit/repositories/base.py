"""Base repository class with generic CRUD operations.

This module implements a repository that provides reusable database access
operations for any SQLAlchemy model: lookups, listing, searching, pagination,
writes, and the soft-delete ("trashed") lifecycle.

Key Concepts:
- INJECTED PROVIDER: the AsyncSession and the model class are passed in; the
  repository holds no global state
- GENERIC TYPE SAFETY: Uses TypeVar[ModelType] for static type checking
- SOFT DELETE: capability-gated on the model's deleted_at column
- ERROR SENTINELS: persistence errors are logged and turned into None/False/{}
  except on operations documented as raising QueryError
- TAGGED LOOKUPS: find() returns Ok/NotFound/Failed instead of raising
- TRACING: @trace_database decorators integrate with OpenTelemetry

Usage Example:
    repo = BaseRepository(session, Author)
    author = await repo.store({"name": "Ursula"})
    author = await repo.update(author.id, {"name": "Ursula K."})
    await repo.destroy(author.id)                # soft delete
    await repo.get_by_id(author.id)              # None
    await repo.get_by_id(author.id, include_trashed=True)
    await repo.destroy_then_force_delete(author.id)  # now permanent
    await session.commit()

Repositories flush but never commit: the caller owns the transaction. Each
write runs inside a SAVEPOINT (``session.begin_nested()``), so a rejected
write is rolled back on its own and the session stays usable for the calls
that follow.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Union

from sqlalchemy import String, case, cast, delete, exists, func, or_, select, update
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, load_only, selectinload
from sqlalchemy.sql import ColumnElement, Select

from repokit.core.config import settings
from repokit.core.logging import get_logger
from repokit.core.tracing import trace_database
from repokit.repositories.exceptions import NotFoundError, QueryError
from repokit.repositories.interface import RepositoryInterface
from repokit.repositories.pagination import PaginatedResult, PaginationParams
from repokit.repositories.result import Failed, NotFound, Ok, Outcome
from repokit.repositories.utils import AttributeInput, is_blank, to_attribute_map

# ModelType is bound to DeclarativeBase so BaseRepository[Author] keeps the
# concrete model type through every return value.
ModelType = TypeVar("ModelType", bound=DeclarativeBase)

EntityId = Union[uuid.UUID, str, int]

SOFT_DELETE_COLUMN = "deleted_at"


class BaseRepository(RepositoryInterface[ModelType]):
    """Generic repository providing CRUD operations for any SQLAlchemy model.

    Entity repositories either subclass this class or hold an instance of it
    and delegate.

    Args:
        session: AsyncSession used for every round-trip
        model: SQLAlchemy model class (e.g., Author, Book); must have a
            single-column primary key
        soft_delete: Soft-delete capability. ``None`` (default) enables it
            when the model maps a ``deleted_at`` column. ``True`` on a model
            without that column raises ValueError.

    Example (Subclassing):
        class AuthorRepository(BaseRepository[Author]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Author)

            async def get_by_email(self, email: str) -> Optional[Author]:
                return await self.get_by_attribute("email", email)
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[ModelType],
        soft_delete: Optional[bool] = None,
    ) -> None:
        self._session = session
        self._model = model
        self._mapper = sa_inspect(model)

        primary_key = self._mapper.primary_key
        if len(primary_key) != 1:
            raise ValueError(
                f"{model.__name__} must have a single-column primary key"
            )
        self._pk_key = self._mapper.get_property_by_column(primary_key[0]).key

        has_marker = SOFT_DELETE_COLUMN in self._mapper.column_attrs
        if soft_delete is None:
            soft_delete = has_marker
        elif soft_delete and not has_marker:
            raise ValueError(
                f"{model.__name__} has no {SOFT_DELETE_COLUMN} column; "
                "soft delete cannot be enabled"
            )
        self._soft_delete = soft_delete
        self._logger = get_logger(f"{__name__}.{model.__name__}Repository")

    @property
    def model(self) -> type[ModelType]:
        return self._model

    @property
    def supports_soft_delete(self) -> bool:
        """Whether destroy/restore operate on the deleted_at marker."""
        return self._soft_delete

    # ========================================================================
    # QUERY CONSTRUCTION
    # ========================================================================

    def _column(self, name: str) -> Any:
        if name not in self._mapper.column_attrs:
            raise ValueError(f"{self._model.__name__} has no column attribute {name!r}")
        return getattr(self._model, name)

    def _pk_column(self) -> Any:
        return getattr(self._model, self._pk_key)

    def _not_trashed(self) -> ColumnElement[bool]:
        return getattr(self._model, SOFT_DELETE_COLUMN).is_(None)

    def _relation_option(self, path: str) -> Any:
        """Build a selectinload chain for a dotted relation path like "books.reviews"."""
        mapper = self._mapper
        option: Any = None
        for part in path.split("."):
            if part not in mapper.relationships:
                raise ValueError(f"{mapper.class_.__name__} has no relationship {part!r}")
            attribute = getattr(mapper.class_, part)
            option = selectinload(attribute) if option is None else option.selectinload(attribute)
            mapper = mapper.relationships[part].mapper
        return option

    def _initiate_query(
        self,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Select[Any]:
        """Base SELECT with eager loads, column projection and trashed scope.

        Applied in that order; callers add filters, lookups and sorting on top.
        The primary key is always loaded even when absent from ``selects``.
        """
        query = select(self._model)

        if relations:
            query = query.options(*(self._relation_option(path) for path in relations))

        if selects:
            query = query.options(load_only(*(self._column(name) for name in selects)))

        if self._soft_delete and not include_trashed:
            query = query.where(self._not_trashed())

        return query

    def _attributes(
        self, inputs: AttributeInput, allow_primary_key: bool = True
    ) -> dict[str, Any]:
        """Normalize write inputs and reject names the model does not map."""
        values = to_attribute_map(inputs)
        unknown = sorted(name for name in values if name not in self._mapper.column_attrs)
        if unknown:
            raise ValueError(
                f"Unknown attributes for {self._model.__name__}: {', '.join(unknown)}"
            )
        if not allow_primary_key and self._pk_key in values:
            raise ValueError(
                f"{self._model.__name__}.{self._pk_key} is immutable and cannot be updated"
            )
        return values

    async def _fetch(
        self,
        entity_id: EntityId,
        include_trashed: bool = False,
        relations: Sequence[str] = (),
        selects: Sequence[str] = (),
    ) -> Optional[ModelType]:
        query = self._initiate_query(relations, include_trashed, selects)
        query = query.where(self._pk_column() == entity_id)
        result = await self._session.execute(query)
        return result.scalars().first()

    async def _count(self, include_trashed: bool) -> int:
        query = select(func.count()).select_from(self._model)
        if self._soft_delete and not include_trashed:
            query = query.where(self._not_trashed())
        result = await self._session.execute(query)
        return result.scalar() or 0

    async def _remove(self, entity: ModelType, soft: bool) -> None:
        async with self._session.begin_nested():
            if soft:
                setattr(entity, SOFT_DELETE_COLUMN, datetime.now(timezone.utc))
            else:
                await self._session.delete(entity)
            await self._session.flush()

    def _log_failure(self, message: str, error: SQLAlchemyError, **context: Any) -> None:
        self._logger.error(
            message,
            model=self._model.__name__,
            error=str(error),
            exc_info=error,
            **context,
        )

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    @trace_database()
    async def exists(self, key: str, value: Any, include_trashed: bool = False) -> bool:
        """Check whether any row has ``key == value``.

        Returns False when the query fails.
        """
        conditions = [self._column(key) == value]
        if self._soft_delete and not include_trashed:
            conditions.append(self._not_trashed())

        try:
            result = await self._session.execute(select(exists().where(*conditions)))
            return bool(result.scalar())
        except SQLAlchemyError as e:
            self._log_failure("Failed to check existence", e, key=key)
            return False

    @trace_database()
    async def get_by_attribute(
        self,
        attr_name: str,
        attr_value: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[ModelType]:
        """Get the first entity whose ``attr_name`` equals ``attr_value``.

        Returns:
            Entity instance, or None if nothing matched or the query failed
        """
        query = self._initiate_query(relations, include_trashed, selects)
        query = query.where(self._column(attr_name) == attr_value).limit(1)

        try:
            result = await self._session.execute(query)
            return result.scalars().first()
        except SQLAlchemyError as e:
            self._log_failure("Failed to get entity by attribute", e, attribute=attr_name)
            return None

    @trace_database()
    async def find(
        self,
        entity_id: EntityId,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Outcome[ModelType]:
        """Look up an entity by primary key and report a tagged outcome.

        Never raises for database errors; the error is logged and returned as
        ``Failed(error)``. A missing row is ``NotFound``.

        Example:
            outcome = await repo.find(author_id, relations=["books"])
            if isinstance(outcome, Ok):
                render(outcome.value)
        """
        self._logger.debug(
            "Getting entity by ID",
            model=self._model.__name__,
            entity_id=entity_id,
            include_trashed=include_trashed,
        )
        try:
            entity = await self._fetch(entity_id, include_trashed, relations, selects)
        except SQLAlchemyError as e:
            self._log_failure("Failed to get entity", e, entity_id=entity_id)
            return Failed(e)

        if entity is None:
            self._logger.debug("Entity not found", model=self._model.__name__, entity_id=entity_id)
            return NotFound(self._model.__name__, entity_id)
        return Ok(entity)

    @trace_database()
    async def get_by_id(
        self,
        entity_id: EntityId,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[ModelType]:
        """Get entity by ID.

        Soft-deleted entities are excluded unless ``include_trashed`` is set.

        Returns:
            Entity instance, or None if not found or the query failed
        """
        outcome = await self.find(entity_id, relations, include_trashed, selects)
        if isinstance(outcome, Ok):
            return outcome.value
        return None

    @trace_database()
    async def get_by_id_or_fail(
        self,
        entity_id: EntityId,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[ModelType]:
        """Get entity by ID, raising NotFoundError if it does not exist.

        Returns:
            Entity instance, or None if the query itself failed

        Raises:
            NotFoundError: If no entity has this ID (within the trashed scope)
        """
        outcome = await self.find(entity_id, relations, include_trashed, selects)
        if isinstance(outcome, NotFound):
            raise NotFoundError(outcome.model, outcome.key)
        if isinstance(outcome, Failed):
            return None
        return outcome.value

    @trace_database()
    async def get_by_id_empty_attributes(
        self,
        entity_id: EntityId,
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Return the entity's loaded column attributes whose value is blank.

        Raises:
            NotFoundError: If no entity has this ID
        """
        try:
            entity = await self._fetch(entity_id, include_trashed, selects=selects)
        except SQLAlchemyError as e:
            self._log_failure("Failed to get empty attributes", e, entity_id=entity_id)
            return {}

        if entity is None:
            raise NotFoundError(self._model.__name__, entity_id)

        state = sa_inspect(entity)
        blank: dict[str, Any] = {}
        for attr in self._mapper.column_attrs:
            if attr.key in state.unloaded:
                continue
            value = state.attrs[attr.key].loaded_value
            if is_blank(value):
                blank[attr.key] = value
        return blank

    @trace_database()
    async def get_all(
        self,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> list[ModelType]:
        """List every entity ordered by primary key.

        Raises:
            QueryError: For database errors
        """
        query = self._initiate_query(relations, include_trashed, selects)
        query = query.order_by(self._pk_column())

        try:
            result = await self._session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._log_failure("Failed to list entities", e)
            raise QueryError(f"Failed to list entities: {e}") from e

    @trace_database()
    async def search(
        self,
        key: str,
        value: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> list[ModelType]:
        """List entities whose ``key`` contains ``value`` (SQL ``LIKE %value%``).

        Non-string columns are cast to text before matching. ``%`` and ``_``
        in ``value`` match literally.

        Raises:
            QueryError: For database errors
        """
        column = self._column(key)
        if not isinstance(self._mapper.column_attrs[key].columns[0].type, String):
            column = cast(column, String)

        query = self._initiate_query(relations, include_trashed, selects)
        query = query.where(column.contains(str(value), autoescape=True)).order_by(
            self._pk_column()
        )

        try:
            result = await self._session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._log_failure("Failed to search entities", e, key=key)
            raise QueryError(f"Failed to search entities: {e}") from e

    @trace_database()
    async def get_paginate(
        self,
        per_page: Optional[int] = None,
        page: int = 1,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> PaginatedResult[ModelType]:
        """Return one page of entities ordered by primary key, plus the total.

        Args:
            per_page: Page size (default: settings.default_page_size)
            page: 1-based page number

        Raises:
            ValueError: If page or per_page is out of range
            QueryError: For database errors
        """
        params = PaginationParams.from_page(page, per_page or settings.default_page_size)

        query = self._initiate_query(relations, include_trashed, selects)
        query = query.order_by(self._pk_column()).offset(params.offset).limit(params.limit)

        try:
            result = await self._session.execute(query)
            items = list(result.scalars().all())
            total = await self._count(include_trashed)
        except SQLAlchemyError as e:
            self._log_failure("Failed to paginate entities", e, page=page)
            raise QueryError(f"Failed to paginate entities: {e}") from e

        return PaginatedResult(items=items, total=total, offset=params.offset, limit=params.limit)

    @trace_database()
    async def get_all_order_by_with_empty_at_end(
        self,
        column: str,
        direction: str = "asc",
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[list[ModelType]]:
        """List entities ordered by ``column`` with NULL and empty values last.

        Rows are ordered by an emptiness flag first, so the empty group stays
        at the end in both directions. The ``= ''`` test is only emitted for
        string columns. Sorting on an expression bypasses indexes on most
        backends.

        Returns:
            Ordered list, or None if the query failed

        Raises:
            ValueError: If direction is not "asc" or "desc"
        """
        ordering = direction.lower()
        if ordering not in ("asc", "desc"):
            raise ValueError(f"Direction must be 'asc' or 'desc', got {direction!r}")

        target = self._column(column)
        empty = target.is_(None)
        if isinstance(self._mapper.column_attrs[column].columns[0].type, String):
            empty = or_(empty, target == "")

        query = self._initiate_query(relations, include_trashed, selects).order_by(
            case((empty, 1), else_=0),
            target.asc() if ordering == "asc" else target.desc(),
            self._pk_column(),
        )

        try:
            result = await self._session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._log_failure("Failed to list ordered entities", e, column=column)
            return None

    @trace_database()
    async def count_all(self, include_trashed: bool = False) -> int:
        """Count entities, excluding soft-deleted ones by default.

        Raises:
            QueryError: For database errors
        """
        try:
            return await self._count(include_trashed)
        except SQLAlchemyError as e:
            self._log_failure("Failed to count entities", e)
            raise QueryError(f"Failed to count entities: {e}") from e

    @trace_database()
    async def get_all_selectable(self, key: str, attr: Optional[str] = None) -> dict[Any, Any]:
        """Map ``attr`` (default: primary key) to ``key`` for every entity.

        Typical use is building select-box options:
        ``await repo.get_all_selectable("name")`` → ``{1: "Ursula", 2: "Iain"}``.

        Raises:
            QueryError: For database errors
        """
        value_column = self._column(key)
        key_column = self._column(attr) if attr is not None else self._pk_column()

        query = select(key_column, value_column).order_by(self._pk_column())
        if self._soft_delete:
            query = query.where(self._not_trashed())

        try:
            result = await self._session.execute(query)
            return {row[0]: row[1] for row in result.all()}
        except SQLAlchemyError as e:
            self._log_failure("Failed to pluck entities", e, key=key, attr=attr)
            raise QueryError(f"Failed to pluck entities: {e}") from e

    # ========================================================================
    # WRITE OPERATIONS
    # ========================================================================

    @trace_database()
    async def store(self, inputs: AttributeInput) -> Optional[ModelType]:
        """Create a new entity and return it.

        The entity is added to the session and flushed so generated fields
        (primary key, server defaults) are populated. Nothing is committed.

        Args:
            inputs: Attribute mapping or pydantic model (only set fields used)

        Returns:
            Created entity, or None if the database rejected it

        Raises:
            ValueError: If inputs name attributes the model does not map
        """
        values = self._attributes(inputs)
        entity = self._model(**values)

        try:
            async with self._session.begin_nested():
                self._session.add(entity)
                await self._session.flush()
            await self._session.refresh(entity)
        except SQLAlchemyError as e:
            self._log_failure("Failed to store entity", e, fields=sorted(values))
            return None

        self._logger.info(
            "Entity stored",
            model=self._model.__name__,
            entity_id=getattr(entity, self._pk_key),
        )
        return entity

    @trace_database()
    async def update(self, entity_id: EntityId, inputs: AttributeInput) -> Optional[ModelType]:
        """Update a non-trashed entity by ID and return it freshly reloaded.

        Returns:
            Updated entity, or None if not found or the write failed

        Raises:
            ValueError: If inputs name unknown attributes or the primary key
        """
        values = self._attributes(inputs, allow_primary_key=False)

        try:
            entity = await self._fetch(entity_id)
            if entity is None:
                self._logger.debug(
                    "Entity not found for update",
                    model=self._model.__name__,
                    entity_id=entity_id,
                )
                return None

            async with self._session.begin_nested():
                for name, value in values.items():
                    setattr(entity, name, value)
                await self._session.flush()
            await self._session.refresh(entity)
        except SQLAlchemyError as e:
            self._log_failure("Failed to update entity", e, entity_id=entity_id)
            return None

        self._logger.info(
            "Entity updated",
            model=self._model.__name__,
            entity_id=entity_id,
            fields=sorted(values),
        )
        return entity

    @trace_database()
    async def update_blank(
        self, search_criteria: AttributeInput, new_values: AttributeInput
    ) -> Optional[ModelType]:
        """Fill only the blank attributes of the first entity matching the criteria.

        Attributes that already hold a value are left untouched, so this is
        safe to call repeatedly with data from a secondary source.

        Example:
            # phone is None, name is "Ursula"
            await repo.update_blank({"email": "u@example.com"},
                                    {"name": "Other", "phone": "555-0100"})
            # name stays "Ursula", phone becomes "555-0100"

        Returns:
            The entity, or None if the query failed

        Raises:
            NotFoundError: If no non-trashed entity matches the criteria
        """
        criteria = self._attributes(search_criteria)
        values = self._attributes(new_values, allow_primary_key=False)

        query = self._initiate_query().where(
            *(self._column(name) == value for name, value in criteria.items())
        ).limit(1)

        try:
            result = await self._session.execute(query)
            entity = result.scalars().first()
            if entity is None:
                raise NotFoundError(self._model.__name__, criteria)

            filled = {
                name: value
                for name, value in values.items()
                if is_blank(getattr(entity, name))
            }
            if filled:
                async with self._session.begin_nested():
                    for name, value in filled.items():
                        setattr(entity, name, value)
                    await self._session.flush()
                await self._session.refresh(entity)
        except SQLAlchemyError as e:
            self._log_failure("Failed to update blank attributes", e)
            return None

        self._logger.info(
            "Blank attributes filled",
            model=self._model.__name__,
            entity_id=getattr(entity, self._pk_key),
            fields=sorted(filled),
        )
        return entity

    # ========================================================================
    # DELETE OPERATIONS
    # ========================================================================

    @trace_database()
    async def destroy(self, entity_id: EntityId) -> bool:
        """Delete a non-trashed entity: soft when supported, permanent otherwise.

        Returns:
            True if deleted, False if not found (already trashed included) or
            the write failed
        """
        try:
            entity = await self._fetch(entity_id)
            if entity is None:
                self._logger.debug(
                    "Entity not found for deletion",
                    model=self._model.__name__,
                    entity_id=entity_id,
                )
                return False
            await self._remove(entity, soft=self._soft_delete)
        except SQLAlchemyError as e:
            self._log_failure("Failed to destroy entity", e, entity_id=entity_id)
            return False

        self._logger.info(
            "Entity destroyed",
            model=self._model.__name__,
            entity_id=entity_id,
            soft_delete=self._soft_delete,
        )
        return True

    @trace_database()
    async def destroy_all(self) -> bool:
        """Delete every entity in one statement (soft when supported)."""
        if self._soft_delete:
            statement = (
                update(self._model)
                .where(self._not_trashed())
                .values({SOFT_DELETE_COLUMN: datetime.now(timezone.utc)})
            )
        else:
            statement = delete(self._model)

        try:
            async with self._session.begin_nested():
                result = await self._session.execute(statement)
        except SQLAlchemyError as e:
            self._log_failure("Failed to destroy all entities", e)
            return False

        self._logger.info(
            "All entities destroyed",
            model=self._model.__name__,
            count=getattr(result, "rowcount", None),
            soft_delete=self._soft_delete,
        )
        return True

    @trace_database()
    async def force_delete(self, entity_id: EntityId) -> bool:
        """Permanently delete an entity, trashed or not."""
        try:
            entity = await self._fetch(entity_id, include_trashed=True)
            if entity is None:
                return False
            await self._remove(entity, soft=False)
        except SQLAlchemyError as e:
            self._log_failure("Failed to force delete entity", e, entity_id=entity_id)
            return False

        self._logger.info("Entity force deleted", model=self._model.__name__, entity_id=entity_id)
        return True

    @trace_database()
    async def destroy_then_force_delete(self, entity_id: EntityId) -> bool:
        """Soft delete an active entity; permanently delete a trashed one.

        Calling it twice on a soft-delete model therefore removes the row for
        good. Models without soft delete are removed on the first call.
        """
        try:
            entity = await self._fetch(entity_id, include_trashed=True)
            if entity is None:
                return False

            soft = self._soft_delete and getattr(entity, SOFT_DELETE_COLUMN) is None
            await self._remove(entity, soft=soft)
        except SQLAlchemyError as e:
            self._log_failure("Failed to destroy entity", e, entity_id=entity_id)
            return False

        self._logger.info(
            "Entity destroyed",
            model=self._model.__name__,
            entity_id=entity_id,
            soft_delete=soft,
        )
        return True

    @trace_database()
    async def restore(self, entity_id: EntityId) -> bool:
        """Clear the soft-delete marker of an entity.

        Returns:
            True if the entity exists (trashed or not) and was saved, False if
            not found, the write failed, or the model has no soft delete
        """
        if not self._soft_delete:
            self._logger.warning(
                "Restore requested on a model without soft delete",
                model=self._model.__name__,
                entity_id=entity_id,
            )
            return False

        try:
            entity = await self._fetch(entity_id, include_trashed=True)
            if entity is None:
                return False
            async with self._session.begin_nested():
                setattr(entity, SOFT_DELETE_COLUMN, None)
                await self._session.flush()
        except SQLAlchemyError as e:
            self._log_failure("Failed to restore entity", e, entity_id=entity_id)
            return False

        self._logger.info("Entity restored", model=self._model.__name__, entity_id=entity_id)
        return True
