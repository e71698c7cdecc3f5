"""Resource CRUD routes. All decisions are made by the resources component."""

from typing import Any, NoReturn
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from src.adapters.clock import SystemClock
from src.adapters.listing_cache import InMemoryListingCache
from src.adapters.sqlite.repos import SQLiteResourceStore
from src.api.deps import (
    get_clock,
    get_listing_cache,
    get_policy,
    get_principal,
    get_resource_store,
    get_rules,
)
from src.api.schemas import (
    DeleteResponse,
    ErrorResponse,
    PaginationResponse,
    ResourcePageResponse,
    ResourceResponse,
)
from src.components.resources import (
    AccessFailure,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_update,
)
from src.domain.entities import Principal
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()

_STATUS_BY_KIND = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "authentication_required": status.HTTP_401_UNAUTHORIZED,
    "authorization_denied": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "store_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)
}


def _raise_for(failure: AccessFailure | None) -> NoReturn:
    if failure is None:
        raise HTTPException(status_code=500, detail="Unknown failure")

    headers = None
    if failure.kind == "authentication_required":
        headers = {"WWW-Authenticate": "Bearer"}

    raise HTTPException(
        status_code=_STATUS_BY_KIND[failure.kind],
        detail={"kind": failure.kind, "message": failure.message, "details": failure.details},
        headers=headers,
    )


@router.get("", response_model=ResourcePageResponse, responses=_ERROR_RESPONSES)
def list_resources(
    request: Request,
    principal: Principal = Depends(get_principal),
    store: SQLiteResourceStore = Depends(get_resource_store),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    cache: InMemoryListingCache = Depends(get_listing_cache),
) -> ResourcePageResponse:
    """List resources visible to the caller (page, limit, search, sortBy, sortOrder)."""
    # Raw text on purpose: the listing component owns coercion and defaults
    raw_params = dict(request.query_params)

    result = run_list(
        raw_params, principal, store=store, policy=policy, rules=rules, cache=cache
    )
    if not result.success or result.page is None:
        _raise_for(result.failure)

    page = result.page
    return ResourcePageResponse(
        data=[ResourceResponse.model_validate(r) for r in page.data],
        pagination=PaginationResponse.model_validate(page.pagination),
    )


@router.get("/{resource_id}", response_model=ResourceResponse, responses=_ERROR_RESPONSES)
def get_resource(
    resource_id: UUID,
    principal: Principal = Depends(get_principal),
    store: SQLiteResourceStore = Depends(get_resource_store),
    policy: PolicyEngine = Depends(get_policy),
) -> ResourceResponse:
    """Get one resource."""
    result = run_get(resource_id, principal, store=store, policy=policy)
    if not result.success:
        _raise_for(result.failure)
    return ResourceResponse.model_validate(result.resource)


@router.post(
    "",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def create_resource(
    payload: Any = Body(default=None),
    principal: Principal = Depends(get_principal),
    store: SQLiteResourceStore = Depends(get_resource_store),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    cache: InMemoryListingCache = Depends(get_listing_cache),
) -> ResourceResponse:
    """Create a resource owned by the caller."""
    result = run_create(
        payload, principal, store=store, policy=policy, rules=rules, clock=clock, cache=cache
    )
    if not result.success:
        _raise_for(result.failure)
    return ResourceResponse.model_validate(result.resource)


@router.patch("/{resource_id}", response_model=ResourceResponse, responses=_ERROR_RESPONSES)
def update_resource(
    resource_id: UUID,
    payload: Any = Body(default=None),
    principal: Principal = Depends(get_principal),
    store: SQLiteResourceStore = Depends(get_resource_store),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    cache: InMemoryListingCache = Depends(get_listing_cache),
) -> ResourceResponse:
    """Update fields of a resource the caller owns."""
    result = run_update(
        resource_id,
        payload,
        principal,
        store=store,
        policy=policy,
        rules=rules,
        clock=clock,
        cache=cache,
    )
    if not result.success:
        _raise_for(result.failure)
    return ResourceResponse.model_validate(result.resource)


@router.delete("/{resource_id}", response_model=DeleteResponse, responses=_ERROR_RESPONSES)
def delete_resource(
    resource_id: UUID,
    principal: Principal = Depends(get_principal),
    store: SQLiteResourceStore = Depends(get_resource_store),
    policy: PolicyEngine = Depends(get_policy),
    cache: InMemoryListingCache = Depends(get_listing_cache),
) -> DeleteResponse:
    """Delete a resource the caller owns."""
    result = run_delete(resource_id, principal, store=store, policy=policy, cache=cache)
    if not result.success:
        _raise_for(result.failure)
    return DeleteResponse()
