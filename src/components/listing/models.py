"""
Listing component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import ListQuery

# Raw parameter names accepted from the transport layer
PARAM_PAGE = "page"
PARAM_LIMIT = "limit"
PARAM_SEARCH = "search"
PARAM_SORT_BY = "sortBy"
PARAM_SORT_ORDER = "sortOrder"


@dataclass(frozen=True)
class ComposeOutput:
    """A bounded ListQuery, or every parameter error found."""

    query: ListQuery | None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.query is not None and not self.errors
