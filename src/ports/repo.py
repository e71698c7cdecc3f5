from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar
from uuid import UUID

from src.domain.entities import Resource, SortOrder
from src.domain.policy import ReadScope

T = TypeVar("T")


# --- Store outcomes ---


@dataclass(frozen=True)
class StoreOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class StoreNotFound:
    """No row matched the id (and owner, for conditional writes)."""


@dataclass(frozen=True)
class StoreFault:
    """Persistence failure. `detail` is for logs only, never for callers."""

    detail: str


# --- Query parts ---


@dataclass(frozen=True)
class SortKey:
    column: str
    order: SortOrder


@dataclass(frozen=True)
class TextFilter:
    """Case-insensitive substring match of `text` against `column`."""

    column: str
    text: str


class ResourceStorePort(Protocol):
    """
    Record store for resources.

    Every read takes a ReadScope and must only return rows it admits.
    Updates and deletes are conditional on both id and owner id.
    """

    def find(
        self,
        scope: ReadScope,
        search: TextFilter | None,
        sort: tuple[SortKey, ...],
        offset: int,
        limit: int,
    ) -> StoreOk[tuple[list[Resource], int]] | StoreFault:
        ...

    def get_by_id(
        self, resource_id: UUID, scope: ReadScope
    ) -> StoreOk[Resource] | StoreNotFound | StoreFault:
        ...

    def insert(self, resource: Resource) -> StoreOk[Resource] | StoreFault:
        ...

    def update_by_id(
        self,
        resource_id: UUID,
        owner_id: str,
        patch: dict[str, Any],
        updated_at: datetime,
    ) -> StoreOk[Resource] | StoreNotFound | StoreFault:
        ...

    def delete_by_id(
        self, resource_id: UUID, owner_id: str
    ) -> StoreOk[None] | StoreNotFound | StoreFault:
        ...
