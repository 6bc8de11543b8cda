"""
PostgreSQL access for brandguard repositories

One DatabaseConnectionPool is built at process start (CLI or embedding
application) and handed to each repository. Rows come back as dicts and
every statement runs in its own committed transaction.
"""
import os
import time
from collections.abc import Mapping
from contextlib import contextmanager

import psycopg
from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from brandguard.core.errors import DatabaseError
from brandguard.observability.logger import get_logger
from brandguard.observability.metrics import increment_counter, repository_errors_total

logger = get_logger(__name__)


class PoolNotOpenError(RuntimeError):
    """A connection was requested from a pool that is not open."""


class DatabaseSettings(BaseModel):
    """
    Connection parameters, taken from DB_* environment variables unless given.

    The password has no default; a deployment must set DB_PASSWORD.
    """

    host: str = "localhost"
    port: int = Field(5432, gt=0, le=65535)
    database: str = "brandguard"
    user: str = "brandguard"
    password: str = Field(min_length=1)
    connect_timeout: float = Field(30.0, gt=0)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides) -> "DatabaseSettings":
        env = os.environ if env is None else env
        values = {
            "host": env.get("DB_HOST"),
            "port": env.get("DB_PORT"),
            "database": env.get("DB_NAME"),
            "user": env.get("DB_USER"),
            "password": env.get("DB_PASSWORD"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**{key: value for key, value in values.items() if value not in (None, "")})

    def conninfo(self) -> str:
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=int(self.connect_timeout),
        )


class DatabaseConnectionPool:
    """
    psycopg3 connection pool for the brandguard tables

    Usage:
        with DatabaseConnectionPool(password="...") as pool:
            rows = pool.execute_query("SELECT id FROM brand_rules")
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host, port, database, user, password: Override DB_HOST, DB_PORT,
                DB_NAME, DB_USER and DB_PASSWORD
            min_size: Connections kept open
            max_size: Upper bound on concurrent connections
            timeout: Seconds to wait for a connection (also the connect timeout)

        Raises:
            ValueError: If no password is configured
        """
        try:
            self.settings = DatabaseSettings.from_env(
                host=host,
                port=port,
                database=database,
                user=user,
                password=password,
                connect_timeout=timeout,
            )
        except PydanticValidationError as e:
            fields = ", ".join(str(error["loc"][0]) for error in e.errors())
            raise ValueError(
                f"Invalid database settings ({fields}); "
                "DB_PASSWORD must be set in the environment or passed to the pool"
            ) from e

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self._pool: ConnectionPool | None = None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is unreachable.

        Raises:
            OperationalError: If every attempt failed
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.settings.conninfo(),
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                pool.open(wait=True, timeout=self.timeout)
                break
            except (OperationalError, PoolTimeout) as e:
                if attempt >= max_retries:
                    pool.close()
                    raise OperationalError(
                        f"Could not reach {self.settings.host}:{self.settings.port}/{self.settings.database} "
                        f"after {max_retries} attempts: {e}"
                    ) from e
                logger.warning(
                    f"Database not reachable (attempt {attempt}/{max_retries}), retrying in {retry_delay}s",
                    extra={"db_host": self.settings.host, "error": str(e)},
                )
                time.sleep(retry_delay)

        self._pool = pool
        logger.info(
            "Database pool opened",
            extra={"db_host": self.settings.host, "db_name": self.settings.database, "max_size": self.max_size},
        )

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection.

        Raises:
            PoolNotOpenError: If the pool has not been opened
        """
        if self._pool is None:
            raise PoolNotOpenError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        """Cursor in a transaction committed on clean exit and rolled back on error."""
        with self.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    yield cur

    def execute_query(self, query: str, params: tuple | dict | None = None) -> list[dict]:
        """Run a statement and return its rows (``[]`` when it returns none)."""
        with self.get_cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall() if cur.description else []

    def execute_command(self, command: str, params: tuple | dict | None = None) -> int:
        """Run a statement and return the number of affected rows."""
        with self.get_cursor() as cur:
            cur.execute(command, params)
            return cur.rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@contextmanager
def database_errors(repository: str, operation: str):
    """
    Translate driver failures, an unopened pool and unreadable stored
    documents into DatabaseError.

    Usage:
        with database_errors("brand_rules", "save"):
            pool.execute_query(...)
    """
    try:
        yield
    except (psycopg.Error, PydanticValidationError, PoolNotOpenError) as e:
        increment_counter(repository_errors_total, repository=repository, operation=operation)
        logger.error(
            f"Database error in {repository}.{operation}: {e}",
            extra={"repository": repository, "operation": operation},
        )
        raise DatabaseError(f"Failed to {operation.replace('_', ' ')} {repository.replace('_', ' ')}: {e}") from e
