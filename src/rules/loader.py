from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

_FENCE_OPEN = "```yaml"
_FENCE_CLOSE = "```"


def _extract_yaml(content: str) -> str:
    """Return the first fenced ```yaml block, or the whole text when unfenced."""
    collected: list[str] = []
    in_block = False

    for line in content.splitlines():
        stripped = line.strip()
        if not in_block and stripped.startswith(_FENCE_OPEN):
            in_block = True
            continue
        if in_block and stripped.startswith(_FENCE_CLOSE):
            return "\n".join(collected)
        if in_block:
            collected.append(line)

    # Unterminated fence still counts as a block
    if in_block:
        return "\n".join(collected)
    return content


def parse_rules(content: str) -> Rules:
    """Parse and validate rules text. Raises ValueError on bad YAML or schema."""
    try:
        data = yaml.safe_load(_extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a YAML mapping at the top level")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        return parse_rules(f.read())
