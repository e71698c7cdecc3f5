"""
Listing component - turns untrusted query parameters into a bounded,
authorized, stably ordered page of resources.

compose() is pure and never raises. Out-of-range numbers are rejected
rather than clamped; missing or non-numeric page/limit fall back to
the configured defaults.

execute() hands the caller's ReadScope to the store, so the offset/limit
window is always taken over the authorized, filtered set.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from src.domain.entities import ListQuery, Page, Pagination, Principal, total_pages
from src.domain.policy import PolicyEngine
from src.ports.repo import ResourceStorePort, SortKey, StoreFault, TextFilter
from src.rules.models import ListingRules

from .models import (
    PARAM_LIMIT,
    PARAM_PAGE,
    PARAM_SEARCH,
    PARAM_SORT_BY,
    PARAM_SORT_ORDER,
    ComposeOutput,
)

logger = logging.getLogger(__name__)

TIE_BREAK_CREATED = "created_at"
TIE_BREAK_ID = "id"


def _parse_int(value: Any) -> int | None:
    """Integer from text or int, None when missing or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def compose(raw: Mapping[str, Any], rules: ListingRules) -> ComposeOutput:
    """Build a ListQuery from raw parameters, collecting every error."""
    errors: dict[str, str] = {}

    page = _parse_int(raw.get(PARAM_PAGE))
    if page is None:
        page = rules.default_page
    elif page < 1:
        errors[PARAM_PAGE] = "must be at least 1"

    limit = _parse_int(raw.get(PARAM_LIMIT))
    if limit is None:
        limit = rules.default_limit
    elif not rules.min_limit <= limit <= rules.max_limit:
        errors[PARAM_LIMIT] = f"must be between {rules.min_limit} and {rules.max_limit}"

    search = _as_text(raw.get(PARAM_SEARCH))
    if search is not None and len(search) > rules.max_search_length:
        errors[PARAM_SEARCH] = f"must be at most {rules.max_search_length} characters"

    sort_by = _as_text(raw.get(PARAM_SORT_BY)) or rules.default_sort_by
    if rules.column_for(sort_by) is None:
        allowed = ", ".join(f.param for f in rules.sort_fields)
        errors[PARAM_SORT_BY] = f"must be one of: {allowed}"

    sort_order = (_as_text(raw.get(PARAM_SORT_ORDER)) or rules.default_sort_order).lower()
    if sort_order not in ("asc", "desc"):
        errors[PARAM_SORT_ORDER] = "must be one of: asc, desc"

    if errors:
        logger.debug("Rejected listing parameters: %s", errors)
        return ComposeOutput(query=None, errors=errors)

    return ComposeOutput(
        query=ListQuery(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,  # type: ignore[arg-type]
            search=search,
        )
    )


def sort_keys(query: ListQuery, rules: ListingRules) -> tuple[SortKey, ...]:
    """Primary sort followed by the created_at ASC, id ASC tie-break."""
    column = rules.column_for(query.sort_by)
    if column is None:
        raise ValueError(f"Sort field '{query.sort_by}' is not allowed")

    keys = [SortKey(column=column, order=query.sort_order)]
    if column != TIE_BREAK_CREATED:
        keys.append(SortKey(column=TIE_BREAK_CREATED, order="asc"))
    if column != TIE_BREAK_ID:
        keys.append(SortKey(column=TIE_BREAK_ID, order="asc"))
    return tuple(keys)


def execute(
    query: ListQuery,
    principal: Principal,
    *,
    store: ResourceStorePort,
    policy: PolicyEngine,
    rules: ListingRules,
) -> Page | StoreFault:
    """Run a composed query for the principal against the store."""
    search = TextFilter(column=rules.search_column, text=query.search) if query.search else None

    result = store.find(
        policy.read_scope(principal),
        search,
        sort_keys(query, rules),
        query.offset,
        query.limit,
    )
    if isinstance(result, StoreFault):
        return result

    rows, total = result.value
    return Page(
        data=tuple(rows[: query.limit]),
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=total_pages(total, query.limit),
        ),
    )
