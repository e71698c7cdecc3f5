from src.adapters.listing_cache import InMemoryListingCache
from src.domain.entities import Page, Pagination


def _page(total: int) -> Page:
    return Page(data=(), pagination=Pagination(page=1, limit=10, total=total, total_pages=1))


def test_get_put():
    cache = InMemoryListingCache()
    assert cache.get("resources", "k") is None

    page = _page(3)
    cache.put("resources", "k", page, 0)
    assert cache.get("resources", "k") is page


def test_invalidate_drops_only_that_collection():
    cache = InMemoryListingCache()
    cache.put("resources", "a", _page(1), 0)
    cache.put("resources", "b", _page(2), 0)
    cache.put("other", "a", _page(3), 0)

    cache.invalidate("resources")

    assert cache.size("resources") == 0
    assert cache.get("resources", "a") is None
    assert cache.get("other", "a") is not None


def test_invalidate_unknown_collection_is_noop():
    cache = InMemoryListingCache()
    cache.invalidate("resources")
    assert cache.size("resources") == 0


def test_oldest_entry_evicted_at_capacity():
    cache = InMemoryListingCache(max_entries=2)
    cache.put("resources", "a", _page(1), 0)
    cache.put("resources", "b", _page(2), 0)
    cache.put("resources", "c", _page(3), 0)

    assert cache.size("resources") == 2
    assert cache.get("resources", "a") is None
    assert cache.get("resources", "c") is not None


def test_overwrite_does_not_evict():
    cache = InMemoryListingCache(max_entries=2)
    cache.put("resources", "a", _page(1), 0)
    cache.put("resources", "b", _page(2), 0)
    cache.put("resources", "b", _page(5), 0)

    assert cache.get("resources", "a") is not None
    assert cache.get("resources", "b").pagination.total == 5


def test_clear():
    cache = InMemoryListingCache()
    cache.put("resources", "a", _page(1), 0)
    cache.clear()
    assert cache.size("resources") == 0


def test_invalidate_advances_generation():
    cache = InMemoryListingCache()
    assert cache.generation("resources") == 0

    cache.invalidate("resources")
    cache.invalidate("resources")

    assert cache.generation("resources") == 2
    assert cache.generation("other") == 0


def test_put_with_outdated_generation_is_dropped():
    cache = InMemoryListingCache()
    seen = cache.generation("resources")
    cache.invalidate("resources")

    cache.put("resources", "a", _page(1), seen)

    assert cache.get("resources", "a") is None
    assert cache.size("resources") == 0


def test_put_with_current_generation_is_kept():
    cache = InMemoryListingCache()
    cache.invalidate("resources")

    cache.put("resources", "a", _page(1), cache.generation("resources"))

    assert cache.get("resources", "a") is not None
