import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.rules.models import FieldRule, ResourceSchemaRules

BODY_KEY = "body"


@dataclass(frozen=True)
class ValidationOutput:
    """Typed payload on success, field -> message map on failure."""

    payload: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def _fmt(bound: float) -> str:
    if float(bound).is_integer():
        return str(int(bound))
    return f"{bound:g}"


class _FieldError(Exception):
    pass


def _coerce_number(value: Any, rule: FieldRule) -> float | int:
    if isinstance(value, bool):
        raise _FieldError("must be a number")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise _FieldError("required")
        try:
            number: float | int = float(text)
        except ValueError as e:
            raise _FieldError("must be a number") from e
    elif isinstance(value, int | float):
        number = value
    else:
        raise _FieldError("must be a number")

    if not math.isfinite(number):
        raise _FieldError("must be a number")

    if rule.type == "integer":
        if float(number) != int(number):
            raise _FieldError("must be an integer")
        return int(number)
    return float(number)


def _check_field(value: Any, rule: FieldRule) -> Any:
    """Coerce and check one value. Raises _FieldError with the user message."""
    if rule.type == "string":
        if not isinstance(value, str):
            raise _FieldError("must be a string")
        text = value.strip()
        if rule.required and not text:
            raise _FieldError("required")
        # Length bounds are inclusive
        if rule.min_length is not None and len(text) < rule.min_length:
            raise _FieldError("too short")
        if rule.max_length is not None and len(text) > rule.max_length:
            raise _FieldError("too long")
        if rule.choices is not None and text not in rule.choices:
            raise _FieldError(f"must be one of: {', '.join(rule.choices)}")
        return text

    number = _coerce_number(value, rule)
    if rule.gt is not None and not number > rule.gt:
        raise _FieldError(f"must be greater than {_fmt(rule.gt)}")
    if rule.ge is not None and not number >= rule.ge:
        raise _FieldError(f"must be at least {_fmt(rule.ge)}")
    if rule.le is not None and not number <= rule.le:
        raise _FieldError(f"must be at most {_fmt(rule.le)}")
    return number


class ResourceValidator:
    def __init__(self, rules: ResourceSchemaRules):
        self.rules = rules

    def validate(self, raw: Mapping[str, Any] | None, *, partial: bool = False) -> ValidationOutput:
        """
        Validate untrusted input against the declared field rules.

        Every field is checked and all violations are returned together.
        Server-managed keys (ids, owner, timestamps) are dropped silently;
        other undeclared keys are rejected.

        With `partial=True` only supplied fields are checked, `required`
        is not enforced and defaults are not applied.
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            return ValidationOutput(errors={BODY_KEY: "must be an object"})

        errors: dict[str, str] = {}
        payload: dict[str, Any] = {}

        for key in raw:
            if key in self.rules.fields or key in self.rules.server_managed:
                continue
            errors[str(key)] = "unknown field"

        for name, rule in self.rules.fields.items():
            value = raw.get(name)

            if value is None:
                if partial:
                    continue
                if rule.required:
                    errors[name] = "required"
                elif rule.default is not None:
                    payload[name] = rule.default
                continue

            try:
                payload[name] = _check_field(value, rule)
            except _FieldError as e:
                errors[name] = str(e)

        if partial and not payload and not errors:
            errors[BODY_KEY] = "no updatable fields"

        if errors:
            return ValidationOutput(errors=errors)
        return ValidationOutput(payload=payload)
