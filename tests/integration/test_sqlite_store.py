from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.sqlite.repos import SQLiteResourceStore
from src.domain.entities import Resource
from src.domain.policy import ReadScope
from src.ports.repo import SortKey, StoreFault, StoreNotFound, StoreOk, TextFilter

T0 = datetime(2025, 1, 1, tzinfo=UTC)
BY_CREATED = (SortKey("created_at", "desc"), SortKey("id", "asc"))


def _scope(owner_id=None):
    return ReadScope(owner_id=owner_id, public_visibility=("public",))


def _add(store, owner, name="Desk Lamp", *, price=10.0, visibility="private", minutes=0):
    resource = Resource(
        owner_id=owner,
        name=name,
        price=price,
        visibility=visibility,
        created_at=T0 + timedelta(minutes=minutes),
        updated_at=T0 + timedelta(minutes=minutes),
    )
    result = store.insert(resource)
    assert isinstance(result, StoreOk)
    return resource


def _find(store, scope, *, search=None, sort=BY_CREATED, offset=0, limit=100):
    result = store.find(scope, search, sort, offset, limit)
    assert isinstance(result, StoreOk)
    return result.value


def test_insert_and_get_round_trip(sqlite_store):
    item = _add(sqlite_store, "u1", "Desk Lamp")

    found = sqlite_store.get_by_id(item.id, _scope("u1"))

    assert isinstance(found, StoreOk)
    assert found.value == item
    assert found.value.name == "Desk Lamp"
    assert found.value.created_at.tzinfo is not None


def test_get_respects_scope(sqlite_store):
    private = _add(sqlite_store, "u1")
    public = _add(sqlite_store, "u1", visibility="public")

    assert isinstance(sqlite_store.get_by_id(private.id, _scope("u2")), StoreNotFound)
    assert isinstance(sqlite_store.get_by_id(private.id, _scope()), StoreNotFound)
    assert isinstance(sqlite_store.get_by_id(public.id, _scope()), StoreOk)
    assert isinstance(sqlite_store.get_by_id(uuid4(), _scope("u1")), StoreNotFound)


def test_find_filters_by_scope_before_window(sqlite_store):
    for i in range(5):
        _add(sqlite_store, "u1", f"Mine {i}", minutes=i)
    for i in range(7):
        _add(sqlite_store, "u2", f"Theirs {i}", minutes=10 + i)

    rows, total = _find(sqlite_store, _scope("u1"), limit=3)

    assert total == 5
    assert len(rows) == 3
    assert all(r.owner_id == "u1" for r in rows)


def test_find_with_empty_scope_returns_nothing(sqlite_store):
    _add(sqlite_store, "u1", visibility="public")

    rows, total = _find(sqlite_store, ReadScope(owner_id=None, public_visibility=()))

    assert rows == []
    assert total == 0


def test_find_orders_with_tie_break(sqlite_store):
    # Same price everywhere: created_at ASC then id ASC decide the order
    a = _add(sqlite_store, "u1", "A", price=5, minutes=2)
    b = _add(sqlite_store, "u1", "B", price=5, minutes=1)
    c = _add(sqlite_store, "u1", "C", price=9, minutes=0)

    sort = (SortKey("price", "desc"), SortKey("created_at", "asc"), SortKey("id", "asc"))
    rows, _ = _find(sqlite_store, _scope("u1"), sort=sort)

    assert [r.id for r in rows] == [c.id, b.id, a.id]


def test_find_search_is_case_insensitive(sqlite_store):
    _add(sqlite_store, "u1", "Brass DESK Lamp")
    _add(sqlite_store, "u1", "Floor Lamp")

    rows, total = _find(sqlite_store, _scope("u1"), search=TextFilter("name", "desk"))

    assert total == 1
    assert rows[0].name == "Brass DESK Lamp"


@pytest.mark.parametrize("needle", ["éclair", "ÉCLAIR", "Éclair"])
def test_find_search_folds_non_ascii_case(sqlite_store, needle):
    _add(sqlite_store, "u1", "Éclair Box")
    _add(sqlite_store, "u1", "Eclair Tin")

    rows, total = _find(sqlite_store, _scope("u1"), search=TextFilter("name", needle))

    assert total == 1
    assert rows[0].name == "Éclair Box"


def test_find_search_matches_full_case_folding(sqlite_store):
    _add(sqlite_store, "u1", "Große Lampe")

    rows, total = _find(sqlite_store, _scope("u1"), search=TextFilter("name", "GROSSE"))

    assert total == 1
    assert rows[0].name == "Große Lampe"


class _TracingStore(SQLiteResourceStore):
    def __init__(self, db_path):
        super().__init__(db_path)
        self.statements = []

    def _get_conn(self):
        conn = super()._get_conn()
        conn.set_trace_callback(self.statements.append)
        return conn


def test_find_counts_and_reads_window_in_one_transaction(db_path):
    store = _TracingStore(db_path)
    _add(store, "u1", "Desk Lamp")
    store.statements.clear()

    _find(store, _scope("u1"), limit=5)

    kinds = [s.split()[0].upper() for s in store.statements]
    begin = kinds.index("BEGIN")
    selects = [i for i, k in enumerate(kinds) if k == "SELECT"]
    commit = kinds.index("COMMIT")
    assert len(selects) == 2
    assert begin < selects[0] < selects[1] < commit


@pytest.mark.parametrize("needle", ["%", "_", "\\"])
def test_find_search_treats_wildcards_literally(sqlite_store, needle):
    _add(sqlite_store, "u1", "Plain Lamp")
    _add(sqlite_store, "u1", f"Odd {needle} Lamp")

    rows, total = _find(sqlite_store, _scope("u1"), search=TextFilter("name", needle))

    assert total == 1
    assert rows[0].name == f"Odd {needle} Lamp"


def test_find_rejects_unknown_columns(sqlite_store):
    bad_sort = sqlite_store.find(_scope("u1"), None, (SortKey("owner_id; DROP", "asc"),), 0, 10)
    bad_search = sqlite_store.find(_scope("u1"), TextFilter("owner_id", "x"), BY_CREATED, 0, 10)

    assert isinstance(bad_sort, StoreFault)
    assert isinstance(bad_search, StoreFault)


def test_update_is_conditional_on_owner(sqlite_store):
    item = _add(sqlite_store, "u1", visibility="public")
    later = T0 + timedelta(hours=1)

    denied = sqlite_store.update_by_id(item.id, "u2", {"price": 1.0}, later)
    assert isinstance(denied, StoreNotFound)

    updated = sqlite_store.update_by_id(item.id, "u1", {"price": 1.0, "owner_id": "u2"}, later)
    assert isinstance(updated, StoreOk)
    assert updated.value.price == 1.0
    assert updated.value.owner_id == "u1"
    assert updated.value.created_at == item.created_at
    assert updated.value.updated_at == later


def test_delete_is_conditional_on_owner(sqlite_store):
    item = _add(sqlite_store, "u1")

    assert isinstance(sqlite_store.delete_by_id(item.id, "u2"), StoreNotFound)
    assert isinstance(sqlite_store.delete_by_id(item.id, "u1"), StoreOk)
    assert isinstance(sqlite_store.delete_by_id(item.id, "u1"), StoreNotFound)


def test_duplicate_insert_is_a_fault(sqlite_store):
    item = _add(sqlite_store, "u1")
    assert isinstance(sqlite_store.insert(item), StoreFault)


def test_unmigrated_database_returns_faults(tmp_path):
    store = SQLiteResourceStore(str(tmp_path / "empty.db"))

    assert isinstance(store.find(_scope("u1"), None, BY_CREATED, 0, 10), StoreFault)
    assert isinstance(store.get_by_id(uuid4(), _scope("u1")), StoreFault)
    assert isinstance(store.delete_by_id(uuid4(), "u1"), StoreFault)
