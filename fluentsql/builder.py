"""
=============================
Fluent query builder.
=============================

QueryBuilder accumulates clauses through chainable calls and runs the result
through an executor when a terminal method is called:

    >>> builder = create_query_builder(executor)
    >>> rows = await builder.table('users').where('age', '>', 18).order_by('name', 'ASC').get()
    >>> user = await builder.table('users').find(5)
    >>> taken = await builder.table('users').where('email', 'a@x.com').exists()

Terminal methods (get, find, first, count, exists, avg, min, max, sum, insert,
insert_or_update, update, delete, query) serialize the state, dispatch the
statement to the executor and reset the builder *before* returning the
awaitable result. The builder is therefore reusable right away, but one
instance must only ever carry one chain at a time: two chains interleaved on
the same instance share (and reset) each other's clauses. Use
create_query_builder() to give each logical query its own instance.

The executor is any object whose ``execute(statement, params=None)`` sends the
statement and returns an awaitable for the result;
utils.database_utils.DatabaseExecutor is the SQLAlchemy implementation.
"""

from typing import Any, Awaitable, List, Mapping, Optional, Protocol, Union

from core.config import config
from core.logger import get_logger
from fluentsql.filters import (
    BindingMode,
    Combinator,
    Nullity,
    comparison_from_args,
    membership_from_args,
    range_from_args,
)
from fluentsql.state import (
    COUNT_PROJECTION,
    ORDER_DIRECTIONS,
    BuilderState,
    Join,
    JoinKind,
)
from fluentsql.statement import Action, Statement, statement_builder
from utils.normalize import to_plain_data

logger = get_logger(__name__)


class QueryBuilderError(Exception):
    """Base exception for query builder failures."""
    pass


class InvalidQueryError(QueryBuilderError):
    """Raised in strict mode when the accumulated state cannot form a valid statement."""
    pass


class Executor(Protocol):
    """
    Capability that runs one statement against the database.

    ``execute`` sends the statement when called and returns an awaitable
    for its result.
    """

    def execute(self, statement: str, params: Optional[Any] = None) -> Awaitable[Any]:
        ...


class QueryBuilder:
    """
    Mutable, chainable SQL query builder.

    Attributes:
        executor: Object running statements (``execute(statement, params)`` -> awaitable)
        binding_mode: BindingMode used when rendering filter values
        strict: Validate state before dispatch and raise InvalidQueryError
        lookup_column: Column compared by find()
        state: Current BuilderState
        ignored_calls: Descriptions of calls that were ignored as invalid
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        binding_mode: Union[BindingMode, str] = BindingMode.INTERPOLATE,
        strict: bool = False,
        lookup_column: str = 'id'
    ):
        self.executor = executor
        self.binding_mode = BindingMode(binding_mode)
        self.strict = strict
        self.lookup_column = lookup_column
        self.state = BuilderState()
        self.ignored_calls: List[str] = []

    # ------------------------------------------------------------------
    # Table and projection
    # ------------------------------------------------------------------

    def table(self, name: str) -> 'QueryBuilder':
        if name:
            self.state.target = name
        return self

    def select(self, *columns: str) -> 'QueryBuilder':
        if columns:
            self.state.projection = list(columns)
        return self

    def distinct(self) -> 'QueryBuilder':
        self.state.distinct = True
        return self

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def where(self, *args: Any) -> 'QueryBuilder':
        """Add ``column operator value`` (or ``column = value``) to the AND group."""
        if args:
            self.state.add_filter(Combinator.AND, comparison_from_args(args))
        return self

    def or_where(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.OR, comparison_from_args(args))
        return self

    def where_between(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.AND, range_from_args(args))
        return self

    def or_where_between(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.OR, range_from_args(args))
        return self

    def where_not_between(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.AND, range_from_args(args, negated=True))
        return self

    def or_where_not_between(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.OR, range_from_args(args, negated=True))
        return self

    def where_in(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.AND, membership_from_args(args))
        return self

    def or_where_in(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.OR, membership_from_args(args))
        return self

    def where_not_in(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.AND, membership_from_args(args, negated=True))
        return self

    def or_where_not_in(self, *args: Any) -> 'QueryBuilder':
        if args:
            self.state.add_filter(Combinator.OR, membership_from_args(args, negated=True))
        return self

    def where_null(self, column: str) -> 'QueryBuilder':
        self.state.add_filter(Combinator.AND, Nullity(column))
        return self

    def or_where_null(self, column: str) -> 'QueryBuilder':
        self.state.add_filter(Combinator.OR, Nullity(column))
        return self

    def where_not_null(self, column: str) -> 'QueryBuilder':
        self.state.add_filter(Combinator.AND, Nullity(column, negated=True))
        return self

    def or_where_not_null(self, column: str) -> 'QueryBuilder':
        self.state.add_filter(Combinator.OR, Nullity(column, negated=True))
        return self

    # ------------------------------------------------------------------
    # Joins, grouping, ordering, paging
    # ------------------------------------------------------------------

    def join(self, table: str, left_column: str, operator: str, right_column: str) -> 'QueryBuilder':
        self.state.add_join(JoinKind.INNER, Join(table, left_column, operator, right_column))
        return self

    def left_join(self, table: str, left_column: str, operator: str, right_column: str) -> 'QueryBuilder':
        self.state.add_join(JoinKind.LEFT, Join(table, left_column, operator, right_column))
        return self

    def right_join(self, table: str, left_column: str, operator: str, right_column: str) -> 'QueryBuilder':
        self.state.add_join(JoinKind.RIGHT, Join(table, left_column, operator, right_column))
        return self

    def group_by(self, column: str) -> 'QueryBuilder':
        self.state.group_by = column
        return self

    def having(self, *args: Any) -> 'QueryBuilder':
        """Set the single HAVING predicate; a later call replaces it."""
        if args:
            self.state.having = comparison_from_args(args)
        return self

    def order_by(self, column: str, direction: str) -> 'QueryBuilder':
        """
        Order by one column.

        An unrecognized direction leaves ordering untouched: the call is
        logged, recorded in ``ignored_calls`` and, in strict mode, rejected.

        Raises:
            InvalidQueryError: In strict mode, for a direction other than ASC/DESC
        """
        normalized = direction.upper() if isinstance(direction, str) else None
        if normalized not in ORDER_DIRECTIONS:
            message = f"order_by({column!r}, {direction!r}) ignored: direction must be ASC or DESC"
            if self.strict:
                raise InvalidQueryError(message)
            logger.warning(message)
            self.ignored_calls.append(message)
            return self

        self.state.order_column = column
        self.state.order_direction = normalized
        return self

    def limit(self, count: int) -> 'QueryBuilder':
        if self.strict and count is not None and count < 0:
            raise InvalidQueryError(f"limit must be non-negative, got {count}")
        self.state.limit = count
        return self

    def offset(self, count: int) -> 'QueryBuilder':
        if self.strict and count is not None and count < 0:
            raise InvalidQueryError(f"offset must be non-negative, got {count}")
        self.state.offset = count
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_statement(
        self,
        action: Union[Action, str] = Action.SELECT,
        payload: Optional[Mapping[str, Any]] = None
    ) -> Statement:
        """Serialize the current state without executing it or resetting."""
        return statement_builder(
            self.state,
            action,
            payload=payload,
            binding_mode=self.binding_mode,
            lookup_column=self.lookup_column
        )

    def to_sql(self, action: Union[Action, str] = Action.SELECT) -> str:
        return self.to_statement(action).text

    def reset(self) -> None:
        """Discard everything accumulated so far."""
        self.state.reset()

    def _validate(self, action: Action) -> None:
        if not self.state.target:
            raise InvalidQueryError(f"{action.value} requires a table; call table() first")
        if (
            self.state.lookup_id is None
            and self.state.has_filters(Combinator.OR)
            and not self.state.has_filters(Combinator.AND)
        ):
            raise InvalidQueryError("or_where filters need at least one AND-group filter before them")

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def _dispatch(self, statement: Statement) -> Awaitable[Any]:
        if self.executor is None:
            raise QueryBuilderError("QueryBuilder has no executor")
        logger.debug(f"Dispatching: {statement.text} | Params: {statement.params}")
        return self.executor.execute(statement.text, statement.params)

    def _send(self, action: Action, payload: Optional[Mapping[str, Any]] = None) -> Awaitable[Any]:
        try:
            if self.strict:
                self._validate(action)
            pending = self._dispatch(self.to_statement(action, payload))
        finally:
            # Reset fires on dispatch, before the result settles
            self.reset()
        return pending

    def _run(self, action: Action, payload: Optional[Mapping[str, Any]] = None) -> Awaitable[Any]:
        return self._settle(self._send(action, payload))

    async def _settle(self, pending: Awaitable[Any]) -> Any:
        return to_plain_data(await pending)

    def get(self) -> Awaitable[Any]:
        """
        Run the accumulated SELECT.

        Returns:
            Awaitable resolving to a bool for exists(), the count for count(),
            the first row (or None) for first()/find(), otherwise all rows
        """
        shaping = self.state.snapshot()
        pending = self._send(Action.SELECT)
        return self._shape(pending, shaping)

    async def _shape(self, pending: Awaitable[Any], shaping: BuilderState) -> Any:
        rows = to_plain_data(await pending)

        if shaping.exists_query:
            return _count_of(rows) > 0
        if shaping.fetch_first or shaping.lookup_id is not None:
            return rows[0] if rows else None
        if shaping.count_only:
            return _count_of(rows)
        return rows

    def find(self, lookup_id: Any) -> Awaitable[Any]:
        """Fetch the single row whose lookup column equals ``lookup_id``; other filters are ignored."""
        if lookup_id is not None:
            self.state.lookup_id = lookup_id
        return self.get()

    def first(self) -> Awaitable[Any]:
        self.state.fetch_first = True
        return self.get()

    def count(self) -> Awaitable[Any]:
        self.state.count_only = True
        self.state.projection = COUNT_PROJECTION
        return self.get()

    def exists(self) -> Awaitable[bool]:
        self.state.exists_query = True
        return self.count()

    def _aggregate(self, function: str, column: str, alias: Optional[str]) -> Awaitable[Any]:
        expression = f"{function}({column}) AS {alias or column}"
        if isinstance(self.state.projection, list):
            self.state.projection.append(expression)
        else:
            self.state.projection = [expression]
        return self.get()

    def avg(self, column: str, alias: Optional[str] = None) -> Awaitable[Any]:
        return self._aggregate('AVG', column, alias)

    def max(self, column: str, alias: Optional[str] = None) -> Awaitable[Any]:
        return self._aggregate('MAX', column, alias)

    def min(self, column: str, alias: Optional[str] = None) -> Awaitable[Any]:
        return self._aggregate('MIN', column, alias)

    def sum(self, column: str, alias: Optional[str] = None) -> Awaitable[Any]:
        return self._aggregate('SUM', column, alias)

    def insert(self, payload: Mapping[str, Any]) -> Awaitable[Any]:
        """Insert one row; resolves to the executor's write result."""
        return self._run(Action.INSERT, payload)

    def insert_or_update(self, payload: Mapping[str, Any]) -> Awaitable[Any]:
        """Insert one row, updating it with the same values on a duplicate key."""
        return self._run(Action.INSERT_OR_UPDATE, payload)

    def update(self, payload: Mapping[str, Any]) -> Awaitable[Any]:
        return self._run(Action.UPDATE, payload)

    def delete(self) -> Awaitable[Any]:
        return self._run(Action.DELETE)

    def query(self, statement: str, params: Optional[Any] = None) -> Awaitable[Any]:
        """Run a raw statement unchanged. Accumulated state is discarded."""
        try:
            pending = self._dispatch(Statement(statement, params))
        finally:
            self.reset()
        return self._settle(pending)


def _count_of(rows: Any) -> int:
    if not rows:
        return 0
    return rows[0]['count']


def create_query_builder(
    executor: Optional[Executor] = None,
    binding_mode: Optional[Union[BindingMode, str]] = None,
    strict: Optional[bool] = None,
    lookup_column: Optional[str] = None
) -> QueryBuilder:
    """
    Create a fresh QueryBuilder with configuration defaults.

    Args:
        executor: Statement executor; typically a DatabaseExecutor
        binding_mode: Overrides config.builder.binding_mode
        strict: Overrides config.builder.strict
        lookup_column: Overrides config.builder.lookup_column

    Returns:
        New QueryBuilder in default state

    Example:
        >>> from utils.database_utils import DatabaseExecutor
        >>> builder = create_query_builder(DatabaseExecutor(), binding_mode='parameterized')
    """
    return QueryBuilder(
        executor=executor,
        binding_mode=binding_mode if binding_mode is not None else config.builder.binding_mode,
        strict=strict if strict is not None else config.builder.strict,
        lookup_column=lookup_column if lookup_column is not None else config.builder.lookup_column
    )
