"""
Listing component - Bounded, authorized, paginated resource queries.
"""

from .component import compose, execute, sort_keys
from .models import (
    PARAM_LIMIT,
    PARAM_PAGE,
    PARAM_SEARCH,
    PARAM_SORT_BY,
    PARAM_SORT_ORDER,
    ComposeOutput,
)

__all__ = [
    # Entry points
    "compose",
    "execute",
    "sort_keys",
    # Models
    "ComposeOutput",
    # Parameter names
    "PARAM_LIMIT",
    "PARAM_PAGE",
    "PARAM_SEARCH",
    "PARAM_SORT_BY",
    "PARAM_SORT_ORDER",
]
