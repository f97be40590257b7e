"""
=====================================
Filter entries and value binding.
=====================================

Every predicate the builder accumulates is one of four tagged variants:

- Comparison: ``column operator value``
- Range: ``column [NOT] BETWEEN low AND high``
- Membership: ``column [NOT] IN (values...)``
- Nullity: ``column IS [NOT] NULL``

Each variant renders itself through a ValueBinder. The binder decides how a
value reaches the database: quoted into the statement text (interpolate mode)
or as a ``?`` placeholder collected into an ordered parameter list
(parameterized mode).

Example:
    >>> binder = ValueBinder(BindingMode.PARAMETERIZED)
    >>> Comparison('age', '>', 18).render(binder)
    'age > ?'
    >>> binder.params
    [18]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple, Union


class BindingMode(str, Enum):
    """How filter values are written into a statement."""

    INTERPOLATE = 'interpolate'
    PARAMETERIZED = 'parameterized'


class Combinator(str, Enum):
    """Logical group a filter belongs to."""

    AND = 'AND'
    OR = 'OR'


class FilterKind(Enum):
    """Filter buffer kinds, declared in emission order."""

    COMPARISON = 'comparison'
    BETWEEN = 'between'
    NOT_BETWEEN = 'not_between'
    IN = 'in'
    NOT_IN = 'not_in'
    NULL = 'null'
    NOT_NULL = 'not_null'


# Buffers are always rendered in this order, AND group first, then OR group
FILTER_KIND_ORDER: Tuple[FilterKind, ...] = tuple(FilterKind)


class ValueBinder:
    """Turns filter values into SQL text for one statement.

    In interpolate mode values are written as literals and ``params`` stays
    empty. In parameterized mode each value becomes ``?`` and is appended to
    ``params`` in the order the placeholders appear.
    """

    def __init__(self, mode: Union[BindingMode, str] = BindingMode.INTERPOLATE):
        self.mode = BindingMode(mode)
        self.params: List[Any] = []

    @property
    def parameterized(self) -> bool:
        return self.mode is BindingMode.PARAMETERIZED

    def bind(self, value: Any) -> str:
        """Render a comparison or range value."""
        if self.parameterized:
            self.params.append(value)
            return '?'
        return f'"{value}"'

    def bind_list(self, values: List[Any]) -> str:
        """Render the body of an IN list."""
        if self.parameterized:
            self.params.extend(values)
            return ', '.join('?' for _ in values)
        return ','.join(f"'{value}'" for value in values)

    def bind_raw(self, value: Any) -> str:
        """Render a value that interpolate mode writes unquoted (lookup ids)."""
        if self.parameterized:
            self.params.append(value)
            return '?'
        return str(value)


@dataclass(frozen=True)
class Comparison:
    """``column operator value``."""

    column: str
    operator: str
    value: Any

    @property
    def kind(self) -> FilterKind:
        return FilterKind.COMPARISON

    def render(self, binder: ValueBinder) -> str:
        return f"{self.column} {self.operator} {binder.bind(self.value)}"


@dataclass(frozen=True)
class Range:
    """``column [NOT] BETWEEN low AND high``."""

    column: str
    low: Any
    high: Any
    negated: bool = False

    @property
    def kind(self) -> FilterKind:
        return FilterKind.NOT_BETWEEN if self.negated else FilterKind.BETWEEN

    def render(self, binder: ValueBinder) -> str:
        keyword = 'NOT BETWEEN' if self.negated else 'BETWEEN'
        low = binder.bind(self.low)
        high = binder.bind(self.high)
        return f"{self.column} {keyword} {low} AND {high}"


@dataclass(frozen=True)
class Membership:
    """``column [NOT] IN (values...)``."""

    column: str
    values: Tuple[Any, ...]
    negated: bool = False

    @property
    def kind(self) -> FilterKind:
        return FilterKind.NOT_IN if self.negated else FilterKind.IN

    def render(self, binder: ValueBinder) -> str:
        keyword = 'NOT IN' if self.negated else 'IN'
        return f"{self.column} {keyword} ({binder.bind_list(list(self.values))})"


@dataclass(frozen=True)
class Nullity:
    """``column IS [NOT] NULL``."""

    column: str
    negated: bool = False

    @property
    def kind(self) -> FilterKind:
        return FilterKind.NOT_NULL if self.negated else FilterKind.NULL

    def render(self, binder: ValueBinder) -> str:
        keyword = 'IS NOT NULL' if self.negated else 'IS NULL'
        return f"{self.column} {keyword}"


Filter = Union[Comparison, Range, Membership, Nullity]


def comparison_from_args(args: Tuple[Any, ...]) -> Comparison:
    """Build a Comparison from ``where()``-style positional arguments.

    Accepts ``(column, operator, value)`` or ``(column, value)``; the
    two-argument form compares with ``=``.

    Raises:
        TypeError: If the argument count is not 2 or 3
    """
    if len(args) == 3:
        return Comparison(*args)
    if len(args) == 2:
        return Comparison(args[0], '=', args[1])
    raise TypeError(
        f"expected (column, operator, value) or (column, value), got {len(args)} arguments"
    )


def range_from_args(args: Tuple[Any, ...], negated: bool = False) -> Range:
    """Build a Range from ``(column, low, high)`` or ``(column, [low, high])``."""
    if len(args) == 2 and isinstance(args[1], (list, tuple)) and len(args[1]) == 2:
        return Range(args[0], args[1][0], args[1][1], negated=negated)
    if len(args) == 3:
        return Range(args[0], args[1], args[2], negated=negated)
    raise TypeError(f"expected (column, low, high), got {len(args)} arguments")


def membership_from_args(args: Tuple[Any, ...], negated: bool = False) -> Membership:
    """Build a Membership from ``(column, values)``."""
    if len(args) != 2:
        raise TypeError(f"expected (column, values), got {len(args)} arguments")
    column, values = args
    if isinstance(values, (str, bytes)) or not hasattr(values, '__iter__'):
        values = [values]
    return Membership(column, tuple(values), negated=negated)
