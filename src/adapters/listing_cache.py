"""In-memory listing cache adapter.

Implements ListingCachePort for the resources component. Entries are grouped
by collection so a write can drop every cached page of that collection at
once. Suitable for single-process deployments.

Each collection carries a generation counter. A reader records the
generation before querying the store and passes it to put(); a page read
before a later invalidate() is discarded instead of cached.
"""

import logging
import threading
from collections.abc import Hashable

from src.domain.entities import Page

logger = logging.getLogger(__name__)


class InMemoryListingCache:
    def __init__(self, max_entries: int = 1024) -> None:
        self._pages: dict[str, dict[Hashable, Page]] = {}
        self._generations: dict[str, int] = {}
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def get(self, collection: str, key: Hashable) -> Page | None:
        with self._lock:
            return self._pages.get(collection, {}).get(key)

    def generation(self, collection: str) -> int:
        with self._lock:
            return self._generations.get(collection, 0)

    def put(self, collection: str, key: Hashable, page: Page, generation: int) -> None:
        with self._lock:
            if generation != self._generations.get(collection, 0):
                logger.debug("Discarded stale listing page for %s", collection)
                return
            pages = self._pages.setdefault(collection, {})
            if key not in pages and len(pages) >= self._max_entries:
                # Evict the oldest entry (dicts keep insertion order)
                pages.pop(next(iter(pages)))
            pages[key] = page

    def invalidate(self, collection: str) -> None:
        with self._lock:
            self._generations[collection] = self._generations.get(collection, 0) + 1
            self._pages.pop(collection, None)

    def size(self, collection: str) -> int:
        with self._lock:
            return len(self._pages.get(collection, {}))

    def clear(self) -> None:
        """Clear all entries - useful for testing."""
        with self._lock:
            self._pages.clear()
