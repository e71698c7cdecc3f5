import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from src.adapters.clock import SystemClock
from src.adapters.listing_cache import InMemoryListingCache
from src.adapters.sqlite.repos import SQLiteResourceStore
from src.api.auth_utils import decode_access_token
from src.domain.entities import ANONYMOUS, Authenticated, Principal
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

ENV_PREFIX = "RESOURCE_HUB_"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get(f"{ENV_PREFIX}DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "resources.db")
        self.rules_path = Path(
            os.environ.get(f"{ENV_PREFIX}RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = Path(
            os.environ.get(f"{ENV_PREFIX}MIGRATIONS_DIR", str(self.base_dir / "migrations"))
        )
        self.secret_key = os.environ.get(f"{ENV_PREFIX}SECRET_KEY", "dev-secret-unsafe")
        self.log_level = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(settings.rules_path)


# --- Store (built per request, never shared) ---
def get_resource_store(settings: Settings = Depends(get_settings)) -> SQLiteResourceStore:
    return SQLiteResourceStore(settings.db_path)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules.policy)


@lru_cache
def get_clock() -> SystemClock:
    """One clock per process so timestamps stay ordered across requests."""
    return SystemClock()


def get_listing_cache(request: Request) -> InMemoryListingCache:
    """Listing cache owned by the app instance (created in lifespan)."""
    cache: InMemoryListingCache | None = getattr(request.app.state, "listing_cache", None)
    if cache is None:
        cache = InMemoryListingCache()
        request.app.state.listing_cache = cache
    return cache


# --- Principal ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_principal(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Settings = Depends(get_settings),
) -> Principal:
    """
    Resolve the caller from a bearer token.

    The cookie `access_token` ("Bearer <jwt>") wins over the Authorization
    header. Missing, expired or malformed tokens resolve to Anonymous; the
    resource component decides what anonymous callers may do.
    """
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        return ANONYMOUS

    payload = decode_access_token(token, settings.secret_key)
    if not payload:
        return ANONYMOUS

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return ANONYMOUS

    return Authenticated(id=subject)
