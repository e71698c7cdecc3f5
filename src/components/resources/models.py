"""
Resources component output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from src.domain.entities import Page, Resource

FailureKind = Literal[
    "validation_error",
    "authentication_required",
    "authorization_denied",
    "not_found",
    "store_error",
]


@dataclass(frozen=True)
class AccessFailure:
    """Structured failure. `details` is a field -> message map for validation errors."""

    kind: FailureKind
    message: str
    details: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResourceOperationOutput:
    """Output for get, create, update and delete. `resource` is None after delete."""

    resource: Resource | None = None
    failure: AccessFailure | None = None
    success: bool = True


@dataclass(frozen=True)
class ResourcePageOutput:
    """Output for list."""

    page: Page | None = None
    failure: AccessFailure | None = None
    success: bool = True
