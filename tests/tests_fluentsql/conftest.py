"""
Shared fixtures and fakes for fluentsql tests.

Key fixtures:
- fake_executor: records every dispatched (statement, params) pair
- builder: QueryBuilder in interpolate mode wired to fake_executor
- param_builder: QueryBuilder in parameterized mode wired to fake_executor
"""

import pytest

from fluentsql.builder import QueryBuilder
from fluentsql.filters import BindingMode


class FakeExecutor:
    """
    Executor double.

    ``execute`` records the call at dispatch time and returns a coroutine
    that resolves with ``result`` or raises ``error``.
    """

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else []
        self.error = error
        self.calls = []

    def execute(self, statement, params=None):
        self.calls.append((statement, params))
        return self._respond()

    async def _respond(self):
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def statements(self):
        return [statement for statement, _ in self.calls]


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def builder(fake_executor):
    return QueryBuilder(executor=fake_executor)


@pytest.fixture
def param_builder(fake_executor):
    return QueryBuilder(executor=fake_executor, binding_mode=BindingMode.PARAMETERIZED)
