"""
==================================
Statement serialization.
==================================

Pure functions turning a BuilderState into SQL text. Every clause has its own
builder following the _builder naming convention; each returns an empty
string when its slice of state is empty:

- join_builder: INNER, then LEFT, then RIGHT joins
- where_builder: lookup id short-circuit, AND group, then OR group
- group_by_builder, having_builder, order_by_builder
- limit_builder, offset_builder
- statement_builder: assembles the clauses for one action kind

Values reach the text through a ValueBinder, so the same ordering rules
produce either interpolated literals or ``?`` placeholders.

Example:
    >>> state = BuilderState(target='users')
    >>> state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    >>> statement_builder(state, Action.SELECT).text
    'SELECT * FROM users WHERE age > "18"'
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from fluentsql.filters import BindingMode, Combinator, ValueBinder
from fluentsql.state import WILDCARD, BuilderState, JoinKind


class Action(str, Enum):
    """Statement kinds the serializer can assemble."""

    SELECT = 'select'
    INSERT = 'insert'
    INSERT_OR_UPDATE = 'insert_or_update'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True)
class Statement:
    """SQL text plus the values for its ``?`` placeholders.

    Attributes:
        text: Statement text
        params: None, a single mapping (one ``SET ?`` payload), or an ordered
            list with one item per placeholder
    """

    text: str
    params: Optional[Union[Mapping[str, Any], list]] = None


def _clause(*parts: str) -> str:
    """Join non-empty fragments with single spaces."""
    return ' '.join(part for part in parts if part)


def projection_builder(state: BuilderState) -> str:
    if isinstance(state.projection, str):
        return state.projection
    return ', '.join(state.projection) or WILDCARD


def join_builder(state: BuilderState) -> str:
    """Render join clauses; nothing is emitted without a target table."""
    if not state.target:
        return ''

    clauses = []
    for kind in JoinKind:
        for join in state.joins[kind]:
            clauses.append(
                f"{kind.value} JOIN {join.table} ON "
                f"{join.left_column} {join.operator} {join.right_column}"
            )
    return ' '.join(clauses)


def where_builder(
    state: BuilderState,
    binder: Optional[ValueBinder] = None,
    lookup_column: str = 'id'
) -> str:
    """
    Render the filter fragment.

    A lookup id replaces every accumulated filter. Otherwise the AND group is
    emitted first behind a single WHERE, buffer by buffer in kind order, then
    every OR group entry is appended with its own OR prefix. When only OR
    entries exist the fragment starts with OR and carries no WHERE.

    Args:
        state: Builder state to render
        binder: Value binder; defaults to interpolation
        lookup_column: Column compared against the lookup id

    Returns:
        Filter fragment including its leading keyword, or ''
    """
    binder = binder or ValueBinder()

    if state.lookup_id is not None:
        return f"WHERE {lookup_column} = {binder.bind_raw(state.lookup_id)}"

    parts = []
    and_entries = state.filter_entries(Combinator.AND)
    if and_entries:
        parts.append('WHERE ' + ' AND '.join(entry.render(binder) for entry in and_entries))

    for entry in state.filter_entries(Combinator.OR):
        parts.append(f"OR {entry.render(binder)}")

    return ' '.join(parts)


def group_by_builder(state: BuilderState) -> str:
    if state.group_by is None:
        return ''
    return f"GROUP BY {state.group_by}"


def having_builder(state: BuilderState, binder: Optional[ValueBinder] = None) -> str:
    if state.having is None:
        return ''
    return f"HAVING {state.having.render(binder or ValueBinder())}"


def order_by_builder(state: BuilderState) -> str:
    if state.order_column is None or state.order_direction is None:
        return ''
    return f"ORDER BY {state.order_column} {state.order_direction}"


def limit_builder(state: BuilderState) -> str:
    if state.limit is None:
        return ''
    return f"LIMIT {state.limit}"


def offset_builder(state: BuilderState) -> str:
    if state.offset is None:
        return ''
    return f"OFFSET {state.offset}"


def statement_builder(
    state: BuilderState,
    action: Union[Action, str] = Action.SELECT,
    payload: Optional[Mapping[str, Any]] = None,
    binding_mode: Union[BindingMode, str] = BindingMode.INTERPOLATE,
    lookup_column: str = 'id'
) -> Statement:
    """
    Assemble the complete statement for one action kind.

    Args:
        state: Builder state to serialize (never mutated)
        action: select, insert, insert_or_update, update or delete
        payload: Row mapping for insert, insert_or_update and update
        binding_mode: interpolate or parameterized
        lookup_column: Column used for find-by-id

    Returns:
        Statement with text and parameters

    Example:
        >>> statement_builder(BuilderState(target='users'), 'insert', {'name': 'a'})
        Statement(text='INSERT INTO users SET ?', params={'name': 'a'})
    """
    action = Action(action)
    binder = ValueBinder(binding_mode)
    target = state.target or ''

    if action is Action.INSERT:
        return Statement(f"INSERT INTO {target} SET ?", payload)

    if action is Action.INSERT_OR_UPDATE:
        return Statement(
            f"INSERT INTO {target} SET ? ON DUPLICATE KEY UPDATE ?",
            [payload, payload]
        )

    if action is Action.UPDATE:
        where = where_builder(state, binder, lookup_column)
        text = _clause(f"UPDATE {target} SET ?", where)
        if binder.params:
            return Statement(text, [payload, *binder.params])
        return Statement(text, payload)

    if action is Action.DELETE:
        where = where_builder(state, binder, lookup_column)
        return Statement(_clause(f"DELETE FROM {target}", where), binder.params or None)

    # Clauses are rendered in statement order so placeholders line up with params
    select = 'SELECT DISTINCT' if state.distinct else 'SELECT'
    text = _clause(
        select,
        projection_builder(state),
        'FROM',
        target,
        join_builder(state),
        where_builder(state, binder, lookup_column),
        group_by_builder(state),
        having_builder(state, binder),
        order_by_builder(state),
        limit_builder(state),
        offset_builder(state),
    )
    return Statement(text, binder.params or None)
