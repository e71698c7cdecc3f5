from collections.abc import Hashable
from typing import Protocol

from src.domain.entities import Page


class ListingCachePort(Protocol):
    """Cache of listing pages, grouped by collection."""

    def get(self, collection: str, key: Hashable) -> Page | None:
        ...

    def generation(self, collection: str) -> int:
        """Counter advanced by every invalidate of the collection."""
        ...

    def put(self, collection: str, key: Hashable, page: Page, generation: int) -> None:
        """Store the page unless the collection was invalidated since `generation`."""
        ...

    def invalidate(self, collection: str) -> None:
        """Drop every cached page of the collection."""
        ...
