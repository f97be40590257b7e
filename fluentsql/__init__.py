"""
==========================================
Fluent SQL query builder package.
==========================================

Builds SQL statements from chained calls and runs them through an executor.

Modules:
    - filters.py: Filter variants (Comparison, Range, Membership, Nullity) and value binding
    - state.py: Accumulated builder state and its defaults
    - statement.py: Clause builders and statement assembly (_builder suffix)
    - placeholders.py: ``?`` placeholder expansion into SQLAlchemy bind parameters
    - builder.py: The chainable QueryBuilder and its factory

Example:
    >>> from fluentsql import create_query_builder
    >>> from utils.database_utils import DatabaseExecutor
    >>>
    >>> builder = create_query_builder(DatabaseExecutor())
    >>> rows = await builder.table('users').where('age', '>', 18).limit(10).get()
"""

__version__ = "1.0.0"
__all__ = [
    # Builder
    'QueryBuilder', 'create_query_builder', 'QueryBuilderError', 'InvalidQueryError',
    # Serialization
    'Action', 'Statement', 'statement_builder', 'BuilderState',
    # Filters
    'BindingMode', 'Combinator', 'FilterKind',
    'Comparison', 'Range', 'Membership', 'Nullity',
    'expand_placeholders',
]

from .builder import (
    InvalidQueryError,
    QueryBuilder,
    QueryBuilderError,
    create_query_builder,
)
from .filters import (
    BindingMode,
    Combinator,
    Comparison,
    FilterKind,
    Membership,
    Nullity,
    Range,
)
from .placeholders import expand_placeholders
from .state import BuilderState
from .statement import Action, Statement, statement_builder
