"""
Shared model configuration.

All API-facing models serialize with camelCase field names
(`calculatedAmount`, `totalElements`) while Python code uses snake_case.
"""

import calendar
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_cents(value: Decimal) -> Decimal:
    """Round a monetary value to two places, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def add_months(start: date, months: int) -> date:
    """Same day `months` later (or earlier), clamped to shorter month ends."""
    month_index = start.month - 1 + months
    year, month = start.year + month_index // 12, month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class ApiModel(BaseModel):
    """Base for every model exchanged over the API or stored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
