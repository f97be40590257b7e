"""
=============================================
Configuration management for the query builder.
=============================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

The configuration covers:
- Database connection settings used by the SQLAlchemy executor
- Builder defaults (value binding mode, strict validation, lookup column)
- Logging defaults

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> engine_url = config.get_connection_string()
    >>>
    >>> # Builder defaults
    >>> print(config.builder.binding_mode, config.builder.strict)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

TRUTHY_VALUES = ('1', 'true', 'yes', 'on')


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY_VALUES


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        driver: SQLAlchemy driver name (e.g. 'mysql+pymysql')
        host: Database server hostname or IP address
        port: Database server port number
        user: Database username
        password: Database password
        database: Database name
        pool_size: Number of pooled connections kept open
        max_overflow: Connections allowed beyond pool_size
    """

    driver: str
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5
    max_overflow: int = 10

    def get_connection_string(self) -> str:
        """Get a SQLAlchemy-compatible connection string, credentials URL-escaped."""
        return URL.create(
            drivername=self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database
        ).render_as_string(hide_password=False)

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: host, port, user, password, database
        """
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database
        }


@dataclass
class BuilderConfig:
    """Defaults applied to every QueryBuilder created by the factory.

    Attributes:
        binding_mode: 'interpolate' (values quoted into the text) or
            'parameterized' (values sent as placeholders)
        strict: Raise InvalidQueryError on malformed usage instead of
            letting the database reject the statement
        lookup_column: Primary-key column used by find()
    """

    binding_mode: str = 'interpolate'
    strict: bool = False
    lookup_column: str = 'id'


@dataclass
class LogConfig:
    """Logging settings.

    Attributes:
        level: Root log level name
        log_file: Optional log file name, written under log_dir
        log_dir: Directory for log files
        use_colors: Colored console output
    """

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: Optional[Path] = None
    use_colors: bool = True


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with database connection settings
        builder: BuilderConfig instance with query builder defaults
        logging: LogConfig instance with logging settings

    Example:
        >>> config = Config()
        >>> conn_str = config.get_connection_string()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            driver=os.getenv('QB_DB_DRIVER', 'mysql+pymysql'),
            host=os.getenv('QB_DB_HOST', 'localhost'),
            port=int(os.getenv('QB_DB_PORT', '3306')),
            user=os.getenv('QB_DB_USER', 'root'),
            password=os.getenv('QB_DB_PASSWORD', ''),
            database=os.getenv('QB_DB_NAME', 'app'),
            pool_size=int(os.getenv('QB_DB_POOL_SIZE', '5')),
            max_overflow=int(os.getenv('QB_DB_MAX_OVERFLOW', '10'))
        )

        self.builder = BuilderConfig(
            binding_mode=os.getenv('QUERY_BUILDER_BINDING', 'interpolate').lower(),
            strict=_env_bool('QUERY_BUILDER_STRICT'),
            lookup_column=os.getenv('QUERY_BUILDER_LOOKUP_COLUMN', 'id')
        )

        log_dir = os.getenv('LOG_DIR')
        self.logging = LogConfig(
            level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('LOG_FILE') or None,
            log_dir=Path(log_dir) if log_dir else None,
            use_colors=_env_bool('LOG_COLORS', default=True)
        )

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_string(self) -> str:
        """Get database connection string.

        Returns:
            SQLAlchemy-compatible connection string

        Example:
            >>> config = Config()
            >>> url = config.get_connection_string()
        """
        return self.db.get_connection_string()

    def get_connection_params(self) -> dict:
        """Get database connection parameters."""
        return self.db.get_connection_params()


# Global configuration instance
config = Config()
