"""
========================================================
Pytest suite for fluentsql/statement.py
========================================================

Sections:
---------
1. Clause builder unit tests
2. Filter ordering tests
3. Statement assembly per action kind
4. Edge cases reproduced from the legacy renderer

How to Execute:
---------------
All tests:          pytest tests/tests_fluentsql/test_statement.py -v
By category:        pytest tests/tests_fluentsql/test_statement.py -m edge_case
"""

import pytest

from fluentsql.filters import (
    BindingMode,
    Combinator,
    Comparison,
    Membership,
    Nullity,
    Range,
    ValueBinder,
)
from fluentsql.state import BuilderState, Join, JoinKind
from fluentsql.statement import (
    Action,
    Statement,
    group_by_builder,
    having_builder,
    join_builder,
    limit_builder,
    offset_builder,
    order_by_builder,
    projection_builder,
    statement_builder,
    where_builder,
)


@pytest.fixture
def users_state():
    return BuilderState(target='users')


# =============================
# 1. CLAUSE BUILDER UNIT TESTS
# =============================

@pytest.mark.unit
def test_empty_state_renders_empty_fragments(users_state):
    assert join_builder(users_state) == ''
    assert where_builder(users_state) == ''
    assert group_by_builder(users_state) == ''
    assert having_builder(users_state) == ''
    assert order_by_builder(users_state) == ''
    assert limit_builder(users_state) == ''
    assert offset_builder(users_state) == ''


@pytest.mark.unit
def test_projection_joins_list_without_mutating_it(users_state):
    users_state.projection = ['id', 'name']

    assert projection_builder(users_state) == 'id, name'
    assert users_state.projection == ['id', 'name']


@pytest.mark.unit
def test_join_builder_emits_inner_left_right_regardless_of_insertion(users_state):
    users_state.add_join(JoinKind.RIGHT, Join('teams', 'users.team_id', '=', 'teams.id'))
    users_state.add_join(JoinKind.LEFT, Join('profiles', 'users.id', '=', 'profiles.user_id'))
    users_state.add_join(JoinKind.INNER, Join('orders', 'users.id', '=', 'orders.user_id'))
    users_state.add_join(JoinKind.LEFT, Join('avatars', 'users.id', '=', 'avatars.user_id'))

    assert join_builder(users_state) == (
        'INNER JOIN orders ON users.id = orders.user_id '
        'LEFT JOIN profiles ON users.id = profiles.user_id '
        'LEFT JOIN avatars ON users.id = avatars.user_id '
        'RIGHT JOIN teams ON users.team_id = teams.id'
    )


@pytest.mark.edge_case
def test_join_builder_requires_target():
    state = BuilderState()
    state.add_join(JoinKind.INNER, Join('orders', 'a', '=', 'b'))

    assert join_builder(state) == ''


@pytest.mark.unit
def test_single_value_clauses(users_state):
    users_state.group_by = 'role'
    users_state.having = Comparison('total', '>', 2)
    users_state.order_column = 'name'
    users_state.order_direction = 'DESC'
    users_state.limit = 10
    users_state.offset = 20

    assert group_by_builder(users_state) == 'GROUP BY role'
    assert having_builder(users_state) == 'HAVING total > "2"'
    assert order_by_builder(users_state) == 'ORDER BY name DESC'
    assert limit_builder(users_state) == 'LIMIT 10'
    assert offset_builder(users_state) == 'OFFSET 20'


@pytest.mark.edge_case
def test_limit_zero_is_rendered(users_state):
    users_state.limit = 0
    users_state.offset = 0

    assert limit_builder(users_state) == 'LIMIT 0'
    assert offset_builder(users_state) == 'OFFSET 0'


# ==========================
# 2. FILTER ORDERING TESTS
# ==========================

@pytest.mark.unit
def test_where_builder_fixed_kind_order(users_state):
    # Inserted deliberately out of kind order
    users_state.add_filter(Combinator.AND, Nullity('deleted_at', negated=True))
    users_state.add_filter(Combinator.AND, Membership('role', ('a', 'b')))
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.add_filter(Combinator.AND, Range('score', 1, 5))
    users_state.add_filter(Combinator.AND, Range('rank', 2, 3, negated=True))
    users_state.add_filter(Combinator.AND, Membership('status', ('z',), negated=True))
    users_state.add_filter(Combinator.AND, Nullity('banned_at'))
    users_state.add_filter(Combinator.AND, Comparison('country', '=', 'NL'))
    users_state.add_filter(Combinator.OR, Nullity('archived_at', negated=True))
    users_state.add_filter(Combinator.OR, Nullity('manager_id'))
    users_state.add_filter(Combinator.OR, Membership('region', ('x',), negated=True))
    users_state.add_filter(Combinator.OR, Range('level', 7, 9, negated=True))
    users_state.add_filter(Combinator.OR, Comparison('name', '=', 'bob'))
    users_state.add_filter(Combinator.OR, Membership('team', (1,)))
    users_state.add_filter(Combinator.OR, Range('points', 10, 20))

    assert where_builder(users_state) == (
        'WHERE age > "18" AND country = "NL" '
        'AND score BETWEEN "1" AND "5" '
        'AND rank NOT BETWEEN "2" AND "3" '
        "AND role IN ('a','b') "
        "AND status NOT IN ('z') "
        'AND banned_at IS NULL '
        'AND deleted_at IS NOT NULL '
        'OR name = "bob" '
        'OR points BETWEEN "10" AND "20" '
        'OR level NOT BETWEEN "7" AND "9" '
        "OR team IN ('1') "
        "OR region NOT IN ('x') "
        'OR manager_id IS NULL '
        'OR archived_at IS NOT NULL'
    )


@pytest.mark.unit
def test_where_builder_parameterized_params_follow_text_order(users_state):
    users_state.add_filter(Combinator.OR, Comparison('name', '=', 'bob'))
    users_state.add_filter(Combinator.AND, Membership('role', ('a', 'b')))
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.add_filter(Combinator.AND, Range('score', 1, 5))
    binder = ValueBinder(BindingMode.PARAMETERIZED)

    fragment = where_builder(users_state, binder)

    assert fragment == 'WHERE age > ? AND score BETWEEN ? AND ? AND role IN (?, ?) OR name = ?'
    assert binder.params == [18, 1, 5, 'a', 'b', 'bob']


@pytest.mark.unit
def test_lookup_id_overrides_every_filter(users_state):
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.add_filter(Combinator.OR, Nullity('email'))
    users_state.add_filter(Combinator.AND, Membership('role', ('a',)))
    users_state.lookup_id = 5

    assert where_builder(users_state) == 'WHERE id = 5'


@pytest.mark.unit
def test_lookup_id_parameterized_and_custom_column(users_state):
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.lookup_id = 'abc'
    binder = ValueBinder(BindingMode.PARAMETERIZED)

    assert where_builder(users_state, binder, lookup_column='uuid') == 'WHERE uuid = ?'
    assert binder.params == ['abc']


@pytest.mark.regression
def test_or_only_filters_have_no_where_keyword(users_state):
    users_state.add_filter(Combinator.OR, Comparison('age', '>', 18))

    assert where_builder(users_state) == 'OR age > "18"'
    assert statement_builder(users_state).text == 'SELECT * FROM users OR age > "18"'


# ======================================
# 3. STATEMENT ASSEMBLY PER ACTION KIND
# ======================================

@pytest.mark.smoke
def test_select_statement_full_clause_order(users_state):
    users_state.distinct = True
    users_state.projection = ['users.name', 'COUNT(*) AS total']
    users_state.add_join(JoinKind.LEFT, Join('orders', 'users.id', '=', 'orders.user_id'))
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.group_by = 'users.name'
    users_state.having = Comparison('total', '>', 2)
    users_state.order_column = 'total'
    users_state.order_direction = 'DESC'
    users_state.limit = 5
    users_state.offset = 10

    statement = statement_builder(users_state, Action.SELECT)

    assert statement == Statement(
        'SELECT DISTINCT users.name, COUNT(*) AS total FROM users '
        'LEFT JOIN orders ON users.id = orders.user_id '
        'WHERE age > "18" GROUP BY users.name HAVING total > "2" '
        'ORDER BY total DESC LIMIT 5 OFFSET 10',
        None
    )


@pytest.mark.unit
def test_select_parameterized_having_params_after_where(users_state):
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))
    users_state.group_by = 'role'
    users_state.having = Comparison('total', '>', 2)

    statement = statement_builder(users_state, 'select', binding_mode='parameterized')

    assert statement.text == 'SELECT * FROM users WHERE age > ? GROUP BY role HAVING total > ?'
    assert statement.params == [18, 2]


@pytest.mark.unit
def test_insert_ignores_filters(users_state):
    users_state.add_filter(Combinator.AND, Comparison('age', '>', 18))

    statement = statement_builder(users_state, Action.INSERT, payload={'name': 'a'})

    assert statement == Statement('INSERT INTO users SET ?', {'name': 'a'})


@pytest.mark.unit
def test_insert_or_update_supplies_payload_twice(users_state):
    payload = {'id': 1, 'name': 'a'}

    statement = statement_builder(users_state, Action.INSERT_OR_UPDATE, payload=payload)

    assert statement.text == 'INSERT INTO users SET ? ON DUPLICATE KEY UPDATE ?'
    assert statement.params == [payload, payload]


@pytest.mark.unit
def test_update_interpolated_passes_payload_only(users_state):
    users_state.add_filter(Combinator.AND, Comparison('id', '=', 3))

    statement = statement_builder(users_state, Action.UPDATE, payload={'name': 'b'})

    assert statement == Statement('UPDATE users SET ? WHERE id = "3"', {'name': 'b'})


@pytest.mark.unit
def test_update_parameterized_payload_first(users_state):
    users_state.add_filter(Combinator.AND, Comparison('id', '=', 3))

    statement = statement_builder(
        users_state, Action.UPDATE, payload={'name': 'b'}, binding_mode=BindingMode.PARAMETERIZED
    )

    assert statement == Statement('UPDATE users SET ? WHERE id = ?', [{'name': 'b'}, 3])


@pytest.mark.unit
def test_delete_statement(users_state):
    users_state.add_filter(Combinator.AND, Nullity('confirmed_at'))

    assert statement_builder(users_state, Action.DELETE) == Statement(
        'DELETE FROM users WHERE confirmed_at IS NULL', None
    )


@pytest.mark.unit
def test_delete_by_lookup_id(users_state):
    users_state.lookup_id = 9

    assert statement_builder(users_state, 'delete').text == 'DELETE FROM users WHERE id = 9'


@pytest.mark.edge_case
def test_unknown_action_raises(users_state):
    with pytest.raises(ValueError):
        statement_builder(users_state, 'truncate')


# ===================================
# 4. LEGACY RENDERING EDGE CASES
# ===================================

@pytest.mark.regression
def test_select_without_table_is_not_validated():
    assert statement_builder(BuilderState()).text == 'SELECT * FROM'


@pytest.mark.regression
def test_interpolated_quote_corrupts_statement(users_state):
    users_state.add_filter(Combinator.AND, Comparison('name', '=', 'x" OR "1"="1'))

    text = statement_builder(users_state).text

    # The value escapes its literal and adds a tautology
    assert text == 'SELECT * FROM users WHERE name = "x" OR "1"="1"'


@pytest.mark.unit
def test_parameterized_mode_keeps_quotes_out_of_text(users_state):
    value = 'x" OR "1"="1'
    users_state.add_filter(Combinator.AND, Comparison('name', '=', value))

    statement = statement_builder(users_state, binding_mode=BindingMode.PARAMETERIZED)

    assert statement.text == 'SELECT * FROM users WHERE name = ?'
    assert statement.params == [value]
