"""
Resources component - the single entry point for resource reads and writes.

Write pipeline:
1. Validate input shape (no I/O)
2. Require an authenticated principal
3. Look up the target through the caller's read scope and check ownership
4. Perform the conditional store write
5. Invalidate cached listings of the collection

Failures come back as ResourceOperationOutput / ResourcePageOutput with an
AccessFailure; nothing is raised to the transport layer. A private row the
caller cannot see is reported as not_found so its existence is not leaked.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from src.components.listing import compose, execute
from src.domain.entities import (
    RESOURCE_COLLECTION,
    Authenticated,
    Operation,
    Page,
    Principal,
    Resource,
)
from src.domain.policy import PolicyEngine
from src.domain.validation import ResourceValidator
from src.ports.cache import ListingCachePort
from src.ports.clock import ClockPort
from src.ports.repo import ResourceStorePort, StoreFault, StoreNotFound
from src.rules.models import Rules

from .models import AccessFailure, FailureKind, ResourceOperationOutput, ResourcePageOutput

logger = logging.getLogger(__name__)

_MESSAGES: dict[FailureKind, str] = {
    "validation_error": "Invalid input",
    "authentication_required": "Authentication required",
    "authorization_denied": "Not allowed to modify this resource",
    "not_found": "Resource not found",
    "store_error": "Storage is unavailable, try again later",
}


def _failure(kind: FailureKind, details: dict[str, str] | None = None) -> AccessFailure:
    return AccessFailure(kind=kind, message=_MESSAGES[kind], details=details or {})


def _op_failure(
    kind: FailureKind, details: dict[str, str] | None = None
) -> ResourceOperationOutput:
    return ResourceOperationOutput(failure=_failure(kind, details), success=False)


def _store_failure(operation: str, fault: StoreFault) -> ResourceOperationOutput:
    logger.error("Store fault during %s: %s", operation, fault.detail)
    return _op_failure("store_error")


def _lookup_owned(
    resource_id: UUID,
    principal: Authenticated,
    operation: Operation,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
) -> Resource | ResourceOperationOutput:
    """Fetch the row through the caller's scope and check write ownership."""
    found = store.get_by_id(resource_id, policy.read_scope(principal))
    if isinstance(found, StoreFault):
        return _store_failure(operation, found)
    if isinstance(found, StoreNotFound):
        return _op_failure("not_found")

    resource = found.value
    if not policy.can_access(principal, resource, operation):
        logger.info(
            "Denied %s of resource %s to principal %s", operation, resource_id, principal.id
        )
        return _op_failure("authorization_denied")
    return resource


def _invalidate(cache: ListingCachePort | None) -> None:
    if cache is not None:
        cache.invalidate(RESOURCE_COLLECTION)


# --- Component Entry Points ---


def run_list(
    raw_params: Mapping[str, Any],
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
    rules: Rules,
    cache: ListingCachePort | None = None,
) -> ResourcePageOutput:
    """
    List the resources the principal may read.

    Args:
        raw_params: Untrusted page, limit, search, sortBy, sortOrder values.
        principal: Resolved caller.
        store: Record store port.
        policy: Policy engine supplying the read scope.
        rules: Loaded rules (listing section).
        cache: Optional listing cache.

    Returns:
        ResourcePageOutput with the page, or a validation/store failure.
    """
    composed = compose(raw_params, rules.listing)
    if not composed.success or composed.query is None:
        return ResourcePageOutput(
            failure=_failure("validation_error", composed.errors), success=False
        )

    cache_key = (principal, composed.query)
    generation = 0
    if cache is not None:
        cached = cache.get(RESOURCE_COLLECTION, cache_key)
        if cached is not None:
            return ResourcePageOutput(page=cached)
        # Taken before the read so a write landing mid-query voids the put
        generation = cache.generation(RESOURCE_COLLECTION)

    result = execute(
        composed.query, principal, store=store, policy=policy, rules=rules.listing
    )
    if isinstance(result, StoreFault):
        logger.error("Store fault during list: %s", result.detail)
        return ResourcePageOutput(failure=_failure("store_error"), success=False)

    page: Page = result
    if cache is not None:
        cache.put(RESOURCE_COLLECTION, cache_key, page, generation)
    return ResourcePageOutput(page=page)


def run_get(
    resource_id: UUID,
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
) -> ResourceOperationOutput:
    """Get one resource the principal may read."""
    found = store.get_by_id(resource_id, policy.read_scope(principal))
    if isinstance(found, StoreFault):
        return _store_failure("get", found)
    if isinstance(found, StoreNotFound):
        return _op_failure("not_found")

    # The store already scoped the read; re-check in case the adapter did not
    if not policy.can_access(principal, found.value, "read"):
        return _op_failure("not_found")
    return ResourceOperationOutput(resource=found.value)


def run_create(
    raw_input: Mapping[str, Any] | None,
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
    rules: Rules,
    clock: ClockPort,
    cache: ListingCachePort | None = None,
) -> ResourceOperationOutput:
    """
    Create a resource owned by the principal.

    Caller-supplied ids, owners and timestamps are discarded by validation;
    the owner is always the authenticated principal.
    """
    validated = ResourceValidator(rules.resource_schema).validate(raw_input)
    if not validated.success:
        return _op_failure("validation_error", validated.errors)

    owner_id = policy.owner_for_create(principal)
    if owner_id is None or not policy.can_access(principal, Resource, "create"):
        return _op_failure("authentication_required")

    now = clock.now_utc()
    resource = Resource(
        id=uuid4(),
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
        **validated.payload,
    )

    saved = store.insert(resource)
    if isinstance(saved, StoreFault):
        return _store_failure("create", saved)

    _invalidate(cache)
    logger.info("Created resource %s for principal %s", saved.value.id, owner_id)
    return ResourceOperationOutput(resource=saved.value)


def run_update(
    resource_id: UUID,
    raw_input: Mapping[str, Any] | None,
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
    rules: Rules,
    clock: ClockPort,
    cache: ListingCachePort | None = None,
) -> ResourceOperationOutput:
    """Apply a partial update to a resource the principal owns."""
    validated = ResourceValidator(rules.resource_schema).validate(raw_input, partial=True)
    if not validated.success:
        return _op_failure("validation_error", validated.errors)

    if not isinstance(principal, Authenticated):
        return _op_failure("authentication_required")

    looked_up = _lookup_owned(resource_id, principal, "update", store=store, policy=policy)
    if isinstance(looked_up, ResourceOperationOutput):
        return looked_up

    updated = store.update_by_id(resource_id, principal.id, validated.payload, clock.now_utc())
    if isinstance(updated, StoreFault):
        return _store_failure("update", updated)
    if isinstance(updated, StoreNotFound):
        # Deleted or reassigned between lookup and write
        return _op_failure("not_found")

    _invalidate(cache)
    logger.info("Updated resource %s for principal %s", resource_id, principal.id)
    return ResourceOperationOutput(resource=updated.value)


def run_delete(
    resource_id: UUID,
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
    cache: ListingCachePort | None = None,
) -> ResourceOperationOutput:
    """Delete a resource the principal owns."""
    if not isinstance(principal, Authenticated):
        return _op_failure("authentication_required")

    looked_up = _lookup_owned(resource_id, principal, "delete", store=store, policy=policy)
    if isinstance(looked_up, ResourceOperationOutput):
        return looked_up

    deleted = store.delete_by_id(resource_id, principal.id)
    if isinstance(deleted, StoreFault):
        return _store_failure("delete", deleted)
    if isinstance(deleted, StoreNotFound):
        return _op_failure("not_found")

    _invalidate(cache)
    logger.info("Deleted resource %s for principal %s", resource_id, principal.id)
    return ResourceOperationOutput()
