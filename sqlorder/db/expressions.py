"""Structured filters and orderings compiled to parameterized SQL.

Callers describe a scope as a :class:`Where` (or a plain mapping of
column to value) and an ordering as an :class:`OrderBy` (or a string like
``"pos DESC, id"``). Column names are validated and quoted by the active
dialect and every value travels as a named bind parameter, so nothing a
caller supplies is pasted into the statement text.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlorder.db.dialects import Dialect, validate_identifier
from sqlorder.exceptions import QueryError


class ParamBuilder:
    """Collects bind values for one statement under generated names."""

    def __init__(self, prefix: str = "p") -> None:
        self.prefix = prefix
        self.values: Dict[str, Any] = {}

    def add(self, value: Any) -> str:
        """Register ``value`` and return its placeholder (``:p0``)."""
        name = f"{self.prefix}{len(self.values)}"
        self.values[name] = value
        return f":{name}"


@dataclass(frozen=True)
class Condition:
    """A single ``column <operator> value`` predicate."""

    column: str
    operator: str
    value: Any = None

    COMPARISONS = ("=", "!=", "<", "<=", ">", ">=", "LIKE")
    UNARY = ("IS NULL", "IS NOT NULL")
    MEMBERSHIP = ("IN", "NOT IN")

    def __post_init__(self) -> None:
        validate_identifier(self.column)
        known = self.COMPARISONS + self.UNARY + self.MEMBERSHIP + ("BETWEEN",)
        if self.operator not in known:
            raise QueryError(f"Unsupported operator: {self.operator!r}")

    def compile(self, dialect: Dialect, params: ParamBuilder) -> str:
        column = dialect.quote_identifier(self.column)

        if self.operator in self.UNARY:
            return f"{column} {self.operator}"

        if self.operator in self.MEMBERSHIP:
            values = list(self.value)
            if not values:
                # Nothing is IN an empty set and everything is NOT IN it.
                return "1 = 0" if self.operator == "IN" else "1 = 1"
            placeholders = ", ".join(params.add(value) for value in values)
            return f"{column} {self.operator} ({placeholders})"

        if self.operator == "BETWEEN":
            low, high = self.value
            return f"{column} BETWEEN {params.add(low)} AND {params.add(high)}"

        return f"{column} {self.operator} {params.add(self.value)}"


Term = Union[Condition, "Where"]


class Where:
    """A conjunction or disjunction of conditions.

    Instances combine with ``&`` (AND) and ``|`` (OR)::

        scope = Where.eq("parent_id", 7) & Where.not_null("pos")
    """

    def __init__(self, *terms: Term, joiner: str = "AND") -> None:
        if joiner not in ("AND", "OR"):
            raise QueryError(f"Unsupported joiner: {joiner!r}")
        self.terms: Tuple[Term, ...] = tuple(term for term in terms if term)
        self.joiner = joiner

    @classmethod
    def eq(cls, column: str, value: Any) -> "Where":
        if value is None:
            return cls.is_null(column)
        return cls(Condition(column, "=", value))

    @classmethod
    def ne(cls, column: str, value: Any) -> "Where":
        if value is None:
            return cls.not_null(column)
        return cls(Condition(column, "!=", value))

    @classmethod
    def lt(cls, column: str, value: Any) -> "Where":
        return cls(Condition(column, "<", value))

    @classmethod
    def le(cls, column: str, value: Any) -> "Where":
        return cls(Condition(column, "<=", value))

    @classmethod
    def gt(cls, column: str, value: Any) -> "Where":
        return cls(Condition(column, ">", value))

    @classmethod
    def ge(cls, column: str, value: Any) -> "Where":
        return cls(Condition(column, ">=", value))

    @classmethod
    def like(cls, column: str, pattern: str) -> "Where":
        return cls(Condition(column, "LIKE", pattern))

    @classmethod
    def is_null(cls, column: str) -> "Where":
        return cls(Condition(column, "IS NULL"))

    @classmethod
    def not_null(cls, column: str) -> "Where":
        return cls(Condition(column, "IS NOT NULL"))

    @classmethod
    def in_(cls, column: str, values: Iterable[Any]) -> "Where":
        return cls(Condition(column, "IN", tuple(values)))

    @classmethod
    def not_in(cls, column: str, values: Iterable[Any]) -> "Where":
        return cls(Condition(column, "NOT IN", tuple(values)))

    @classmethod
    def between(cls, column: str, low: Any, high: Any) -> "Where":
        return cls(Condition(column, "BETWEEN", (low, high)))

    @classmethod
    def from_mapping(cls, filters: Mapping[str, Any]) -> "Where":
        """Equality filter from a column to value mapping, ANDed together."""
        return cls(*(cls.eq(column, value) for column, value in filters.items()))

    @classmethod
    def all_of(cls, *parts: Optional["Where"]) -> "Where":
        """AND together the non-empty parts."""
        return cls(*(part for part in parts if part), joiner="AND")

    @classmethod
    def any_of(cls, *parts: Optional["Where"]) -> "Where":
        """OR together the non-empty parts."""
        return cls(*(part for part in parts if part), joiner="OR")

    @classmethod
    def coerce(cls, value: Union["Where", Mapping[str, Any], None]) -> Optional["Where"]:
        """Normalize a caller-supplied scope.

        Raises:
            QueryError: If the value is neither a Where, a mapping nor None.
        """
        if value is None:
            return None
        if isinstance(value, Where):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise QueryError(
            f"Filters must be a Where or a mapping of column to value, got {type(value).__name__}"
        )

    def __and__(self, other: "Where") -> "Where":
        return Where.all_of(self, other)

    def __or__(self, other: "Where") -> "Where":
        return Where.any_of(self, other)

    def __bool__(self) -> bool:
        return bool(self.terms)

    def __repr__(self) -> str:
        return f"Where({', '.join(map(repr, self.terms))}, joiner={self.joiner!r})"

    def compile(self, dialect: Dialect, params: ParamBuilder) -> str:
        """Render the predicate, registering bind values on ``params``."""
        rendered: List[str] = []
        for term in self.terms:
            sql = term.compile(dialect, params)
            if isinstance(term, Where) and len(term.terms) > 1:
                sql = f"({sql})"
            rendered.append(sql)
        return f" {self.joiner} ".join(rendered)


def compile_where(where: Optional[Where], dialect: Dialect, params: ParamBuilder) -> str:
    """Return ``" WHERE ..."`` for a non-empty filter, otherwise an empty string."""
    if not where:
        return ""
    return f" WHERE {where.compile(dialect, params)}"


class OrderBy:
    """An ordered list of ``(column, direction)`` sort terms."""

    DIRECTIONS = ("ASC", "DESC")

    def __init__(self, *terms: Tuple[str, str]) -> None:
        normalized = []
        for column, direction in terms:
            direction = direction.upper()
            if direction not in self.DIRECTIONS:
                raise QueryError(f"Invalid sort direction: {direction!r}")
            normalized.append((validate_identifier(column), direction))
        self.terms: Tuple[Tuple[str, str], ...] = tuple(normalized)

    @classmethod
    def asc(cls, *columns: str) -> "OrderBy":
        return cls(*((column, "ASC") for column in columns))

    @classmethod
    def desc(cls, *columns: str) -> "OrderBy":
        return cls(*((column, "DESC") for column in columns))

    @classmethod
    def parse(cls, text: str) -> "OrderBy":
        """Parse ``"pos DESC, id"`` style text.

        Raises:
            QueryError: If a term is not ``column`` or ``column ASC|DESC``.
        """
        terms = []
        for chunk in text.split(','):
            tokens = chunk.split()
            if len(tokens) == 1:
                terms.append((tokens[0], "ASC"))
            elif len(tokens) == 2:
                terms.append((tokens[0], tokens[1]))
            else:
                raise QueryError(f"Invalid ORDER BY term: {chunk.strip()!r}")
        return cls(*terms)

    @classmethod
    def coerce(cls, value: Union["OrderBy", str, Sequence[Tuple[str, str]], None]) -> Optional["OrderBy"]:
        if value is None:
            return None
        if isinstance(value, OrderBy):
            return value
        if isinstance(value, str):
            return cls.parse(value) if value.strip() else None
        return cls(*value)

    def then(self, column: str, direction: str = "ASC") -> "OrderBy":
        return OrderBy(*self.terms, (column, direction))

    def __bool__(self) -> bool:
        return bool(self.terms)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OrderBy) and self.terms == other.terms

    def __repr__(self) -> str:
        return f"OrderBy{self.terms!r}"

    def compile(self, dialect: Dialect) -> str:
        return ", ".join(
            f"{dialect.quote_identifier(column)} {direction}" for column, direction in self.terms
        )
