"""
==================================================
Database connectivity and statement execution.
==================================================

Provides the SQLAlchemy-backed executor the query builder dispatches
statements to, plus connection helpers and health checks.

Key Features:
    - Connection string / engine building from config
    - Pooled engine with pre-ping, disposed on demand
    - ``?`` placeholder expansion into named bind parameters
    - Blocking DBAPI calls moved off the event loop

Example:
    >>> from utils.database_utils import DatabaseExecutor
    >>> from fluentsql import create_query_builder
    >>>
    >>> executor = DatabaseExecutor()
    >>> await executor.connect()
    >>> builder = create_query_builder(executor)
    >>> rows = await builder.table('users').get()
    >>> executor.dispose()
"""

import asyncio
import functools
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import config
from fluentsql.placeholders import expand_placeholders

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Exception raised when database connection fails."""
    pass


def get_connection_string(
    driver: str = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None
) -> str:
    """
    Build a database connection string.

    Args:
        driver: SQLAlchemy driver name (defaults to config.db.driver)
        host: Database hostname (defaults to config.db_host)
        port: Database port (defaults to config.db_port)
        user: Database user (defaults to config.db_user)
        password: Database password (defaults to config.db_password)
        database: Database name (defaults to config.db_name)

    Returns:
        Connection string with the password masked

    Example:
        >>> get_connection_string(host='db', database='shop')
        'mysql+pymysql://root:***@db:3306/shop'
    """
    url = URL.create(
        drivername=driver if driver is not None else config.db.driver,
        username=user if user is not None else config.db_user,
        password=password if password is not None else config.db_password,
        host=host if host is not None else config.db_host,
        port=port if port is not None else config.db_port,
        database=database if database is not None else config.db_name
    )
    return url.render_as_string(hide_password=True)


def create_sqlalchemy_engine(
    driver: str = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    echo: bool = False,
    pool_size: int = None,
    max_overflow: int = None
) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Args:
        driver: SQLAlchemy driver name
        host: Database hostname
        port: Database port
        user: Database user
        password: Database password
        database: Database name
        echo: Enable SQL statement logging
        pool_size: Connection pool size (defaults to config)
        max_overflow: Maximum overflow connections (defaults to config)

    Returns:
        Configured SQLAlchemy Engine
    """
    connection_url = URL.create(
        drivername=driver or config.db.driver,
        username=user or config.db_user,
        password=password or config.db_password,
        host=host or config.db_host,
        port=port or config.db_port,
        database=database or config.db_name
    )

    return create_engine(
        connection_url,
        echo=echo,
        pool_size=pool_size if pool_size is not None else config.db.pool_size,
        max_overflow=max_overflow if max_overflow is not None else config.db.max_overflow,
        pool_pre_ping=True  # Verify connections before using
    )


class DatabaseExecutor:
    """
    Executes builder statements through a pooled SQLAlchemy engine.

    Statements are run inside ``engine.begin()`` so each one commits on its
    own. Row-returning statements resolve to a list of dicts; everything else
    resolves to ``{'affected_rows': ..., 'insert_id': ...}``.

    Attributes:
        engine: SQLAlchemy engine, created lazily from config when not given
    """

    def __init__(self, engine: Optional[Engine] = None, **engine_options: Any):
        self._engine = engine
        self._engine_options = engine_options

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_sqlalchemy_engine(**self._engine_options)
        return self._engine

    def _submit(self, func, *args) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, functools.partial(func, *args))

    def ping(self) -> Dict[str, Any]:
        """Blocking reachability check; raises DatabaseConnectionError on failure."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"❌ Database connection failed: {e}")
            raise DatabaseConnectionError(f"Could not connect to database: {e}") from e

        logger.info("✅ Connected to database")
        return {'message': 'Connected to database', 'success': True}

    async def connect(self) -> Dict[str, Any]:
        """
        Verify the database is reachable.

        Returns:
            {'message': ..., 'success': True}

        Raises:
            DatabaseConnectionError: If no connection can be opened
        """
        return await self._submit(self.ping)

    def _execute_sync(
        self,
        statement: str,
        params: Optional[Any] = None
    ) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        sql, binds = expand_placeholders(statement, params)
        logger.debug(f"SQL: {sql} | Params: {binds}")

        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(sql), binds)
                if result.returns_rows:
                    return [dict(row) for row in result.mappings().all()]
                return {
                    'affected_rows': result.rowcount,
                    'insert_id': result.lastrowid
                }
        except SQLAlchemyError as e:
            logger.error(f"Statement failed: {statement} - {e}")
            raise

    def execute(
        self,
        statement: str,
        params: Optional[Any] = None
    ) -> asyncio.Future:
        """
        Submit one statement to the worker pool.

        The statement is already on its way to the database when this
        returns; must be called from a running event loop.

        Args:
            statement: SQL text with optional ``?`` placeholders
            params: Values for the placeholders

        Returns:
            Future resolving to rows for queries, a write-result dict otherwise

        Raises:
            SQLAlchemyError: Propagated unchanged from the driver
        """
        return self._submit(self._execute_sync, statement, params)

    def dispose(self) -> None:
        """Close pooled connections; the engine is recreated on next use."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def verify_connection(executor: Optional[DatabaseExecutor] = None) -> Tuple[bool, str]:
    """
    Verify database connection and return status with details.

    Returns:
        Tuple of (success: bool, message: str)

    Example:
        >>> success, message = verify_connection()
        >>> if not success:
        ...     print(f"❌ {message}")
    """
    executor = executor or DatabaseExecutor()
    try:
        executor.ping()
    except DatabaseConnectionError as e:
        return False, str(e)
    return True, f"Connected to {executor.engine.url.render_as_string(hide_password=True)}"


def get_database_connection_info() -> dict:
    """
    Get current database connection configuration.

    Returns:
        Dictionary with connection parameters (password excluded)
    """
    return {
        'driver': config.db.driver,
        'host': config.db_host,
        'port': config.db_port,
        'user': config.db_user,
        'database': config.db_name,
        'pool_size': config.db.pool_size
    }
