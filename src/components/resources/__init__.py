"""
Resources component - Owner-scoped resource CRUD behind one facade.
"""

from .component import (
    run_create,
    run_delete,
    run_get,
    run_list,
    run_update,
)
from .models import (
    AccessFailure,
    FailureKind,
    ResourceOperationOutput,
    ResourcePageOutput,
)

__all__ = [
    # Entry points
    "run_create",
    "run_delete",
    "run_get",
    "run_list",
    "run_update",
    # Output models
    "AccessFailure",
    "FailureKind",
    "ResourceOperationOutput",
    "ResourcePageOutput",
]
