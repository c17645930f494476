"""Abstract repository contract.

Decouples callers from the SQLAlchemy implementation: services can depend on
``RepositoryInterface[Author]`` and receive a ``BaseRepository`` or a test
double.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Generic, Optional, TypeVar

from repokit.repositories.pagination import PaginatedResult
from repokit.repositories.result import Outcome
from repokit.repositories.utils import AttributeInput

T = TypeVar("T")


class RepositoryInterface(ABC, Generic[T]):
    """Operations every repository provides."""

    @abstractmethod
    async def exists(self, key: str, value: Any, include_trashed: bool = False) -> bool:
        ...

    @abstractmethod
    async def get_by_attribute(
        self,
        attr_name: str,
        attr_value: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[T]:
        ...

    @abstractmethod
    async def find(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Outcome[T]:
        ...

    @abstractmethod
    async def get_by_id(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[T]:
        ...

    @abstractmethod
    async def get_by_id_or_fail(
        self,
        entity_id: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[T]:
        ...

    @abstractmethod
    async def get_by_id_empty_attributes(
        self,
        entity_id: Any,
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> dict[str, Any]:
        ...

    @abstractmethod
    async def get_all(
        self,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> list[T]:
        ...

    @abstractmethod
    async def search(
        self,
        key: str,
        value: Any,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> list[T]:
        ...

    @abstractmethod
    async def get_paginate(
        self,
        per_page: Optional[int] = None,
        page: int = 1,
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> PaginatedResult[T]:
        ...

    @abstractmethod
    async def get_all_order_by_with_empty_at_end(
        self,
        column: str,
        direction: str = "asc",
        relations: Sequence[str] = (),
        include_trashed: bool = False,
        selects: Sequence[str] = (),
    ) -> Optional[list[T]]:
        ...

    @abstractmethod
    async def store(self, inputs: AttributeInput) -> Optional[T]:
        ...

    @abstractmethod
    async def update(self, entity_id: Any, inputs: AttributeInput) -> Optional[T]:
        ...

    @abstractmethod
    async def update_blank(
        self, search_criteria: AttributeInput, new_values: AttributeInput
    ) -> Optional[T]:
        ...

    @abstractmethod
    async def destroy(self, entity_id: Any) -> bool:
        ...

    @abstractmethod
    async def destroy_all(self) -> bool:
        ...

    @abstractmethod
    async def force_delete(self, entity_id: Any) -> bool:
        ...

    @abstractmethod
    async def destroy_then_force_delete(self, entity_id: Any) -> bool:
        ...

    @abstractmethod
    async def restore(self, entity_id: Any) -> bool:
        ...

    @abstractmethod
    async def count_all(self, include_trashed: bool = False) -> int:
        ...

    @abstractmethod
    async def get_all_selectable(self, key: str, attr: Optional[str] = None) -> dict[Any, Any]:
        ...
