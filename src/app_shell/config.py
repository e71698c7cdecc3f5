import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class OpsConfigError(RuntimeError):
    """Operational requirements are not met; the process should not start."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises OpsConfigError listing every problem found.
    """
    ops = rules.ops
    problems: list[str] = []

    # 1. Data dir must exist (created if missing) and be writable
    if ops.data_dir_required:
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            problems.append(f"Cannot create data directory {data_dir}: {e}")
        else:
            if not os.access(data_dir, os.W_OK):
                problems.append(f"Data directory {data_dir} is not writable")

    # 2. Required env
    missing = [name for name in ops.required_env if name not in os.environ]
    if missing:
        problems.append(f"Missing required environment variables: {', '.join(missing)}")

    if problems:
        raise OpsConfigError("; ".join(problems))

    logger.info("Configuration validated (data dir: %s)", data_dir)
