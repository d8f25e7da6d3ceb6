"""
Query Parameter Parsing

Every list endpoint receives an untyped map of string parameters. This module
normalizes that map and converts individual values into typed ones.
A value that cannot be converted for a known parameter is rejected with a
field-level validation error; unknown parameters are never looked at.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar, Union

from finance_control.errors import ErrorReason, ValidationError


RawParams = Mapping[str, Union[str, Sequence[str], None]]
Params = dict[str, list[str]]
Parser = Callable[[str], Any]

E = TypeVar("E", bound=Enum)


def normalize_params(raw: Optional[RawParams]) -> Params:
    """
    Normalize a raw parameter map.

    Single values become one-element lists, blank values are dropped and
    parameters left without any value are removed entirely.
    """
    params: Params = {}
    if not raw:
        return params

    for name, value in raw.items():
        if value is None:
            continue
        values = [value] if isinstance(value, str) else list(value)
        cleaned = [v.strip() for v in values if v is not None and v.strip()]
        if cleaned:
            params[name] = cleaned
    return params


def first_value(params: Params, name: str) -> Optional[str]:
    """First non-blank value of a parameter, if present."""
    values = params.get(name)
    return values[0] if values else None


def all_values(params: Params, name: str) -> list[str]:
    """All values of a parameter, splitting comma-separated entries."""
    result = []
    for value in params.get(name, []):
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def convert(name: str, raw: str, parser: Parser) -> Any:
    """Run a parser, turning conversion failures into a validation error."""
    try:
        return parser(raw)
    except (ValueError, TypeError, InvalidOperation):
        raise ValidationError.for_field(
            name,
            f"Invalid value for parameter '{name}': {raw}",
            rejected_value=raw,
            reason=ErrorReason.INVALID_PARAMETER,
        )


# =============================================================================
# VALUE PARSERS
# =============================================================================

def parse_int(raw: str) -> int:
    return int(raw)


def parse_decimal(raw: str) -> Decimal:
    value = Decimal(raw)
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {raw}")
    return value


def parse_date(raw: str) -> date:
    """ISO dates (yyyy-MM-dd)."""
    return date.fromisoformat(raw)


def parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(f"Not a boolean: {raw}")


def parse_text(raw: str) -> str:
    return raw


def enum_parser(enum_cls: type[E]) -> Callable[[str], E]:
    """Parser accepting enum values or names, ignoring case."""
    lookup = {}
    for member in enum_cls:
        lookup[member.name.lower()] = member
        lookup[str(member.value).lower()] = member

    def parse(raw: str) -> E:
        try:
            return lookup[raw.lower().replace("-", "_")]
        except KeyError:
            raise ValueError(f"Unknown {enum_cls.__name__}: {raw}")

    return parse
