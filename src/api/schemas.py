from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Visibility = Literal["public", "private"]

# Responses use camelCase keys (ownerId, createdAt, totalPages)
_CAMEL = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)


# --- Resources ---
class ResourceResponse(BaseModel):
    model_config = _CAMEL

    id: UUID
    owner_id: str
    name: str
    price: float
    description: str
    visibility: Visibility
    created_at: datetime
    updated_at: datetime


class PaginationResponse(BaseModel):
    model_config = _CAMEL

    page: int
    limit: int
    total: int
    total_pages: int


class ResourcePageResponse(BaseModel):
    model_config = _CAMEL

    data: list[ResourceResponse]
    pagination: PaginationResponse


class DeleteResponse(BaseModel):
    deleted: bool = True


# --- Errors ---
class FailureBody(BaseModel):
    kind: str
    message: str
    details: dict[str, str] = {}


class ErrorResponse(BaseModel):
    detail: FailureBody
