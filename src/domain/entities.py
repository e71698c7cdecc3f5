from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
Visibility = Literal["public", "private"]
Operation = Literal["read", "create", "update", "delete"]
SortOrder = Literal["asc", "desc"]

RESOURCE_COLLECTION = "resources"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Principal ---


@dataclass(frozen=True)
class Authenticated:
    """A caller whose identity was resolved by the transport layer."""

    id: str


@dataclass(frozen=True)
class Anonymous:
    """A caller without a resolved identity."""


Principal = Authenticated | Anonymous

ANONYMOUS = Anonymous()


# --- Resource ---


class Resource(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    name: str
    price: float
    description: str = ""
    visibility: Visibility = "private"
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Listing ---


@dataclass(frozen=True)
class ListQuery:
    page: int
    limit: int
    sort_by: str
    sort_order: SortOrder
    search: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class Page:
    data: tuple[Resource, ...]
    pagination: Pagination


def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit) without floats."""
    return -(-total // limit)
