"""
===============================
Accumulated builder state.
===============================

BuilderState holds everything a chain of builder calls has collected so far:
the target table, projection, filter buffers, joins and result shaping
options. A fresh instance is the documented default state; ``reset()`` puts an
existing instance back to it.
"""

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fluentsql.filters import FILTER_KIND_ORDER, Combinator, Comparison, Filter, FilterKind

WILDCARD = '*'
COUNT_PROJECTION = 'COUNT(*) AS count'
ORDER_DIRECTIONS = ('ASC', 'DESC')


class JoinKind(str, Enum):
    """Join buffers, declared in emission order."""

    INNER = 'INNER'
    LEFT = 'LEFT'
    RIGHT = 'RIGHT'


@dataclass(frozen=True)
class Join:
    """``<KIND> JOIN table ON left_column operator right_column``."""

    table: str
    left_column: str
    operator: str
    right_column: str


def _filter_buffers() -> Dict[Combinator, Dict[FilterKind, List[Filter]]]:
    return {
        combinator: {kind: [] for kind in FILTER_KIND_ORDER}
        for combinator in Combinator
    }


def _join_buffers() -> Dict[JoinKind, List[Join]]:
    return {kind: [] for kind in JoinKind}


@dataclass
class BuilderState:
    """Query-in-progress.

    Attributes:
        target: Table the statement runs against
        projection: WILDCARD or the ordered list of selected expressions
        distinct: Emit SELECT DISTINCT
        filters: Filter buffers keyed by combinator, then by filter kind
        lookup_id: Primary-key value set by find(); overrides every filter
        joins: Join buffers keyed by join kind
        group_by: Single GROUP BY column
        having: Single HAVING predicate, last write wins
        order_column: ORDER BY column
        order_direction: 'ASC' or 'DESC'
        limit: LIMIT value
        offset: OFFSET value
        fetch_first: Resolve with the first row only
        exists_query: Resolve with a boolean
        count_only: Resolve with the count field
    """

    target: Optional[str] = None
    projection: Union[str, List[str]] = WILDCARD
    distinct: bool = False
    filters: Dict[Combinator, Dict[FilterKind, List[Filter]]] = field(default_factory=_filter_buffers)
    lookup_id: Optional[Any] = None
    joins: Dict[JoinKind, List[Join]] = field(default_factory=_join_buffers)
    group_by: Optional[str] = None
    having: Optional[Comparison] = None
    order_column: Optional[str] = None
    order_direction: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    fetch_first: bool = False
    exists_query: bool = False
    count_only: bool = False

    def add_filter(self, combinator: Combinator, entry: Filter) -> None:
        self.filters[combinator][entry.kind].append(entry)

    def filter_entries(self, combinator: Combinator) -> List[Filter]:
        """All entries of one combinator group, buffer by buffer in emission order."""
        buffers = self.filters[combinator]
        return [entry for kind in FILTER_KIND_ORDER for entry in buffers[kind]]

    def has_filters(self, combinator: Combinator) -> bool:
        return any(self.filters[combinator][kind] for kind in FILTER_KIND_ORDER)

    def add_join(self, kind: JoinKind, join: Join) -> None:
        self.joins[kind].append(join)

    def reset(self) -> None:
        """Restore every field to its default value."""
        defaults = BuilderState()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))

    def snapshot(self) -> 'BuilderState':
        """Independent deep copy, unaffected by later mutation of this state."""
        return copy.deepcopy(self)

    def is_default(self) -> bool:
        return self == BuilderState()
