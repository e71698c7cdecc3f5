import argparse
import logging
import random
import sys
from datetime import timedelta

from src.adapters.clock import SystemClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteResourceStore
from src.api.auth_utils import create_access_token
from src.api.deps import Settings
from src.components.resources import run_create
from src.domain.entities import Authenticated
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

SAMPLE_NAMES = ["Desk Lamp", "Notebook", "Coffee Grinder", "Bike Light", "Backpack", "Kettle"]


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")


def handle_token(settings: Settings, args: argparse.Namespace) -> None:
    token = create_access_token(
        {"sub": args.principal_id},
        expires_delta=timedelta(minutes=args.minutes),
        secret_key=settings.secret_key,
    )
    print(token)


def handle_seed(settings: Settings, args: argparse.Namespace) -> None:
    if not settings.rules_path.exists():
        logger.error(f"Rules file {settings.rules_path} not found.")
        sys.exit(1)

    rules = load_rules(settings.rules_path)
    store = SQLiteResourceStore(settings.db_path)
    policy = PolicyEngine(rules.policy)
    clock = SystemClock()
    principal = Authenticated(id=args.principal_id)

    created = 0
    for i in range(args.count):
        raw = {
            "name": f"{random.choice(SAMPLE_NAMES)} {i + 1}",
            "price": str(round(random.uniform(1, 500), 2)),
            "visibility": "public" if args.public else "private",
        }
        result = run_create(raw, principal, store=store, policy=policy, rules=rules, clock=clock)
        if not result.success:
            assert result.failure is not None
            logger.error(f"Seeding stopped: {result.failure.kind} {result.failure.details}")
            sys.exit(1)
        created += 1

    print(f"Created {created} resources for {args.principal_id}.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Resource Hub CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending SQL migrations")

    # token
    token_parser = subparsers.add_parser("token", help="Issue a development access token")
    token_parser.add_argument("principal_id", help="Principal id to put in the 'sub' claim")
    token_parser.add_argument("--minutes", type=int, default=60, help="Token lifetime")

    # seed
    seed_parser = subparsers.add_parser("seed", help="Insert sample resources")
    seed_parser.add_argument("principal_id", help="Owner of the sample resources")
    seed_parser.add_argument("--count", type=int, default=25)
    seed_parser.add_argument("--public", action="store_true", help="Make samples public")

    args = parser.parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "token":
        handle_token(settings, args)
    elif args.command == "seed":
        handle_seed(settings, args)


if __name__ == "__main__":
    main()
