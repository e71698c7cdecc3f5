from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteResourceStore
from src.domain.entities import Anonymous, Authenticated
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
RULES_PATH = PROJECT_ROOT / "rules.yaml"
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"


@pytest.fixture
def rules():
    """REAL rules from the project root."""
    return load_rules(RULES_PATH)


@pytest.fixture
def policy(rules):
    return PolicyEngine(rules.policy)


@pytest.fixture
def clock():
    # One second per call keeps created_at strictly increasing
    return FixedClock(datetime(2025, 1, 1, tzinfo=UTC), step=timedelta(seconds=1))


@pytest.fixture
def alice():
    return Authenticated(id="user-alice")


@pytest.fixture
def bob():
    return Authenticated(id="user-bob")


@pytest.fixture
def anonymous():
    return Anonymous()


@pytest.fixture
def db_path(tmp_path):
    """Temporary SQLite DB with all migrations applied."""
    path = str(tmp_path / "resources.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def sqlite_store(db_path):
    return SQLiteResourceStore(db_path)
