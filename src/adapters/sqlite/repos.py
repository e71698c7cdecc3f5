import logging
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.domain.entities import Resource
from src.domain.policy import ReadScope
from src.ports.repo import SortKey, StoreFault, StoreNotFound, StoreOk, TextFilter

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "owner_id",
    "name",
    "price",
    "description",
    "visibility",
    "created_at",
    "updated_at",
)
_SORTABLE = frozenset({"id", "name", "price", "created_at", "updated_at"})
_SEARCHABLE = frozenset({"name", "description"})
_UPDATABLE = frozenset({"name", "price", "description", "visibility"})
_LIKE_ESCAPE = "\\"
CASEFOLD_SQL_FUNCTION = "py_casefold"


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _to_db_time(value: datetime) -> str:
    """Fixed-width UTC text so lexical order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _casefold(value: Any) -> Any:
    """Unicode case folding for SQL; SQLite LOWER() only folds ASCII."""
    return value.casefold() if isinstance(value, str) else value


def _escape_like(text: str) -> str:
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def _scope_clause(scope: ReadScope) -> tuple[str, list[Any]]:
    parts: list[str] = []
    params: list[Any] = []
    if scope.public_visibility:
        marks = ", ".join("?" for _ in scope.public_visibility)
        parts.append(f"visibility IN ({marks})")
        params.extend(scope.public_visibility)
    if scope.owner_id is not None:
        parts.append("owner_id = ?")
        params.append(scope.owner_id)
    if not parts:
        return "0", []
    return "(" + " OR ".join(parts) + ")", params


def _row_to_resource(row: dict[str, Any]) -> Resource:
    return Resource(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        name=row["name"],
        price=row["price"],
        description=row["description"],
        visibility=row["visibility"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteResourceStore:
    """
    Resource store over a SQLite file.

    A connection is opened per call; nothing is shared between requests.
    sqlite3 errors are logged and returned as StoreFault.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.create_function(CASEFOLD_SQL_FUNCTION, 1, _casefold, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _fault(self, operation: str, error: sqlite3.Error) -> StoreFault:
        logger.exception("SQLite %s failed", operation)
        return StoreFault(detail=f"{operation}: {error}")

    def find(
        self,
        scope: ReadScope,
        search: TextFilter | None,
        sort: tuple[SortKey, ...],
        offset: int,
        limit: int,
    ) -> StoreOk[tuple[list[Resource], int]] | StoreFault:
        where, params = _scope_clause(scope)

        if search is not None:
            if search.column not in _SEARCHABLE:
                return StoreFault(detail=f"find: column '{search.column}' is not searchable")
            where += (
                f" AND {CASEFOLD_SQL_FUNCTION}({search.column}) LIKE ? ESCAPE '{_LIKE_ESCAPE}'"
            )
            params.append(f"%{_escape_like(search.text.casefold())}%")

        order_parts = []
        for key in sort:
            if key.column not in _SORTABLE or key.order not in ("asc", "desc"):
                return StoreFault(detail=f"find: invalid sort {key}")
            order_parts.append(f"{key.column} {key.order.upper()}")
        order_by = f" ORDER BY {', '.join(order_parts)}" if order_parts else ""

        conn = self._get_conn()
        try:
            # Count and window read the same snapshot
            conn.execute("BEGIN")
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM resources WHERE {where}", params
            ).fetchone()
            total = row["cnt"] if row else 0

            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM resources WHERE {where}"
                f"{order_by} LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
            conn.commit()
            return StoreOk(([_row_to_resource(r) for r in rows], total))
        except sqlite3.Error as e:
            conn.rollback()
            return self._fault("find", e)
        finally:
            conn.close()

    def get_by_id(
        self, resource_id: UUID, scope: ReadScope
    ) -> StoreOk[Resource] | StoreNotFound | StoreFault:
        where, params = _scope_clause(scope)
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM resources WHERE id = ? AND {where}",
                [str(resource_id), *params],
            ).fetchone()
            if not row:
                return StoreNotFound()
            return StoreOk(_row_to_resource(row))
        except sqlite3.Error as e:
            return self._fault("get_by_id", e)
        finally:
            conn.close()

    def insert(self, resource: Resource) -> StoreOk[Resource] | StoreFault:
        conn = self._get_conn()
        try:
            conn.execute(
                f"""
                INSERT INTO resources ({', '.join(_COLUMNS)})
                VALUES ({', '.join('?' for _ in _COLUMNS)})
                """,
                (
                    str(resource.id),
                    resource.owner_id,
                    resource.name,
                    resource.price,
                    resource.description,
                    resource.visibility,
                    _to_db_time(resource.created_at),
                    _to_db_time(resource.updated_at),
                ),
            )
            conn.commit()
            return StoreOk(resource)
        except sqlite3.Error as e:
            conn.rollback()
            return self._fault("insert", e)
        finally:
            conn.close()

    def update_by_id(
        self,
        resource_id: UUID,
        owner_id: str,
        patch: dict[str, Any],
        updated_at: datetime,
    ) -> StoreOk[Resource] | StoreNotFound | StoreFault:
        columns = [c for c in patch if c in _UPDATABLE]
        assignments = [f"{c} = ?" for c in columns] + ["updated_at = ?"]
        values = [patch[c] for c in columns] + [_to_db_time(updated_at)]

        conn = self._get_conn()
        try:
            # Single conditional statement: id and owner must both match
            cursor = conn.execute(
                f"UPDATE resources SET {', '.join(assignments)} WHERE id = ? AND owner_id = ?",
                [*values, str(resource_id), owner_id],
            )
            if cursor.rowcount == 0:
                conn.rollback()
                return StoreNotFound()

            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM resources WHERE id = ?",
                (str(resource_id),),
            ).fetchone()
            conn.commit()
            return StoreOk(_row_to_resource(row))
        except sqlite3.Error as e:
            conn.rollback()
            return self._fault("update_by_id", e)
        finally:
            conn.close()

    def delete_by_id(
        self, resource_id: UUID, owner_id: str
    ) -> StoreOk[None] | StoreNotFound | StoreFault:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM resources WHERE id = ? AND owner_id = ?",
                (str(resource_id), owner_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return StoreNotFound()
            return StoreOk(None)
        except sqlite3.Error as e:
            conn.rollback()
            return self._fault("delete_by_id", e)
        finally:
            conn.close()
