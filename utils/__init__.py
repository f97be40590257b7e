"""
==========================
Utility Functions Package.
==========================

Database connectivity, statement execution and result normalization helpers.

Modules:
    database_utils: SQLAlchemy executor, connection helpers and health checks
    normalize: Plain-data normalization of query results
"""

__version__ = "1.0.0"
__all__ = [
    'DatabaseExecutor',
    'DatabaseConnectionError',
    'get_connection_string',
    'create_sqlalchemy_engine',
    'get_database_connection_info',
    'verify_connection',
    'to_plain_data'
]

from .database_utils import (
    DatabaseConnectionError,
    DatabaseExecutor,
    create_sqlalchemy_engine,
    get_connection_string,
    get_database_connection_info,
    verify_connection,
)
from .normalize import to_plain_data
