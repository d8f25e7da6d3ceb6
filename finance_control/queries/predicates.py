"""
Predicate Builder

Converts a map of query parameters into one composable boolean predicate
over an entity.

Each resource registers the filters it understands:
- ExactFilter:      `type=EXPENSE`, `categoryId=3`
- MembershipFilter: `source=PIX&source=CASH` or `source=PIX,CASH`
- RangeFilter:      `minAmount`/`maxAmount`, `startDate`/`endDate`
                    (inclusive, either bound optional)
- SearchFilter:     `search`, case-insensitive substring over text fields
- CustomFilter:     anything else, e.g. "any responsibility belongs to X"

Distinct filters are AND-combined. Parameters without a registered filter
are ignored; absent parameters impose no constraint.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Sequence

from finance_control.queries.params import (
    Params,
    Parser,
    all_values,
    convert,
    first_value,
    parse_text,
)


Accessor = Callable[[Any], Any]


class Predicate:
    """A composable test over one entity."""

    __slots__ = ("_test", "description")

    def __init__(self, test: Callable[[Any], bool], description: str = "predicate"):
        self._test = test
        self.description = description

    def __call__(self, entity: Any) -> bool:
        return bool(self._test(entity))

    def __and__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda e: self(e) and other(e),
            f"({self.description} AND {other.description})",
        )

    def __or__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda e: self(e) or other(e),
            f"({self.description} OR {other.description})",
        )

    def __invert__(self) -> "Predicate":
        return Predicate(lambda e: not self(e), f"NOT {self.description}")

    def __repr__(self) -> str:
        return f"Predicate({self.description})"

    @classmethod
    def always(cls) -> "Predicate":
        """Open filter, matches everything."""
        return cls(lambda e: True, "TRUE")

    @classmethod
    def all_of(cls, predicates: Iterable["Predicate"]) -> "Predicate":
        result = cls.always()
        for predicate in predicates:
            result = result & predicate
        return result

    @classmethod
    def equals(cls, accessor: Accessor, value: Any, label: str = "field") -> "Predicate":
        return cls(lambda e: accessor(e) == value, f"{label} == {value!r}")


def _fold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


# =============================================================================
# FILTERS
# =============================================================================

class Filter(ABC):
    """Turns zero or more query parameters into an optional predicate."""

    @property
    @abstractmethod
    def parameters(self) -> tuple[str, ...]:
        """Names of the parameters this filter reads."""

    @abstractmethod
    def build(self, params: Params) -> Optional[Predicate]:
        """Return a predicate, or None if the parameters are absent."""


class ExactFilter(Filter):
    """Equality against one field (ids, enums, exact text)."""

    def __init__(
        self,
        param: str,
        accessor: Accessor,
        parser: Parser = parse_text,
        ignore_case: bool = False,
    ):
        self.param = param
        self.accessor = accessor
        self.parser = parser
        self.ignore_case = ignore_case

    @property
    def parameters(self) -> tuple[str, ...]:
        return (self.param,)

    def build(self, params: Params) -> Optional[Predicate]:
        raw = first_value(params, self.param)
        if raw is None:
            return None
        expected = convert(self.param, raw, self.parser)
        if self.ignore_case:
            folded = _fold(expected)
            return Predicate(
                lambda e: _fold(self.accessor(e)) == folded,
                f"{self.param} ~= {expected!r}",
            )
        return Predicate.equals(self.accessor, expected, self.param)


class MembershipFilter(Filter):
    """Field value must be one of several requested values (OR-combined)."""

    def __init__(self, param: str, accessor: Accessor, parser: Parser = parse_text):
        self.param = param
        self.accessor = accessor
        self.parser = parser

    @property
    def parameters(self) -> tuple[str, ...]:
        return (self.param,)

    def build(self, params: Params) -> Optional[Predicate]:
        raw_values = all_values(params, self.param)
        if not raw_values:
            return None
        accepted = frozenset(convert(self.param, raw, self.parser) for raw in raw_values)
        return Predicate(
            lambda e: self.accessor(e) in accepted,
            f"{self.param} IN {sorted(map(str, accepted))}",
        )


class RangeFilter(Filter):
    """
    Inclusive range over a numeric or date field.

    Entities whose field is unset never match a bounded range. An inverted
    range (lower > upper) simply matches nothing.
    """

    def __init__(self, lower_param: str, upper_param: str, accessor: Accessor, parser: Parser):
        self.lower_param = lower_param
        self.upper_param = upper_param
        self.accessor = accessor
        self.parser = parser

    @property
    def parameters(self) -> tuple[str, ...]:
        return (self.lower_param, self.upper_param)

    def build(self, params: Params) -> Optional[Predicate]:
        raw_lower = first_value(params, self.lower_param)
        raw_upper = first_value(params, self.upper_param)
        if raw_lower is None and raw_upper is None:
            return None

        lower = convert(self.lower_param, raw_lower, self.parser) if raw_lower is not None else None
        upper = convert(self.upper_param, raw_upper, self.parser) if raw_upper is not None else None

        def test(entity: Any) -> bool:
            value = self.accessor(entity)
            if value is None:
                return False
            if lower is not None and value < lower:
                return False
            if upper is not None and value > upper:
                return False
            return True

        return Predicate(test, f"{lower!r} <= {self.lower_param}..{self.upper_param} <= {upper!r}")


class SearchFilter(Filter):
    """Case-insensitive substring match over one or more text fields."""

    def __init__(self, accessors: Sequence[Accessor], param: str = "search"):
        self.param = param
        self.accessors = tuple(accessors)

    @property
    def parameters(self) -> tuple[str, ...]:
        return (self.param,)

    def build(self, params: Params) -> Optional[Predicate]:
        term = first_value(params, self.param)
        if term is None:
            return None
        needle = term.casefold()

        def test(entity: Any) -> bool:
            for accessor in self.accessors:
                text = accessor(entity)
                if text and needle in str(text).casefold():
                    return True
            return False

        return Predicate(test, f"search {term!r}")


class CustomFilter(Filter):
    """A single parameter mapped to a hand-written test."""

    def __init__(
        self,
        param: str,
        make_test: Callable[[Any], Callable[[Any], bool]],
        parser: Parser = parse_text,
    ):
        self.param = param
        self.make_test = make_test
        self.parser = parser

    @property
    def parameters(self) -> tuple[str, ...]:
        return (self.param,)

    def build(self, params: Params) -> Optional[Predicate]:
        raw = first_value(params, self.param)
        if raw is None:
            return None
        value = convert(self.param, raw, self.parser)
        return Predicate(self.make_test(value), f"{self.param}={value!r}")


class PredicateBuilder:
    """A resource's filter registry."""

    def __init__(self, filters: Sequence[Filter]):
        self.filters = tuple(filters)

    @property
    def parameters(self) -> tuple[str, ...]:
        return tuple(name for f in self.filters for name in f.parameters)

    def build(self, params: Params) -> Predicate:
        """AND-combine every filter whose parameters are present."""
        built = [p for p in (f.build(params) for f in self.filters) if p is not None]
        return Predicate.all_of(built)
