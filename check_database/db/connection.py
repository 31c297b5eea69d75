"""Connection strings and per-type driver connectors for postgres and mysql."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Callable

import psycopg2
import pymysql

from check_database.config.models import Database
from check_database.core.exceptions import DatabaseConnectionError, DatabaseQueryError

logger = logging.getLogger(__name__)

DRIVER_ERRORS = (psycopg2.Error, pymysql.MySQLError)

_MYSQL_DSN = re.compile(
    r"^(?:(?P<user>[^:@]*)(?::(?P<password>.*))?@)?"
    r"(?:tcp\((?P<host>[^)]*?)(?::(?P<port>\d+))?\))?"
    r"(?:/(?P<database>[^/]*))?$"
)


def _postgres_dsn(db: Database) -> str:
    parts = []
    if db.username:
        parts.append(f"user={db.username}")
    if db.password:
        parts.append(f"password={db.password}")
    if db.hostname:
        parts.append(f"host={db.hostname}")
    if db.port:
        parts.append(f"port={db.port}")
    if db.database:
        parts.append(f"dbname={db.database}")
    if db.ssl:
        parts.append(f"sslmode={db.ssl}")
    return " ".join(parts)


def _mysql_dsn(db: Database) -> str:
    res = ""
    if db.username:
        res = db.username
        if db.password:
            res += ":" + db.password
        res += "@"
    if db.hostname:
        res += "tcp(" + db.hostname
        if db.port:
            res += f":{db.port}"
        res += ")"
    if db.database:
        res += "/" + db.database
    return res


def resolve(db: Database) -> str:
    """Build the driver-specific connection string for a database profile.

    postgres yields a libpq ``key=value`` string, mysql a
    ``user:password@tcp(host:port)/dbname`` string. Any other type yields an
    ``unsupported database type`` marker which no connector accepts.
    """
    if db.type == "postgres":
        return _postgres_dsn(db)
    if db.type == "mysql":
        return _mysql_dsn(db)
    return f"unsupported database type {db.type}"


def parse_mysql_dsn(dsn: str) -> dict[str, Any]:
    """Split a mysql connection string into PyMySQL keyword arguments."""
    match = _MYSQL_DSN.match(dsn)
    if not match:
        raise ValueError(f"invalid mysql connection string '{dsn}'")
    kwargs: dict[str, Any] = {}
    if match.group("user"):
        kwargs["user"] = match.group("user")
    if match.group("password"):
        kwargs["password"] = match.group("password")
    if match.group("host"):
        kwargs["host"] = match.group("host")
    if match.group("port"):
        kwargs["port"] = int(match.group("port"))
    if match.group("database"):
        kwargs["database"] = match.group("database")
    return kwargs


def connect_postgres(dsn: str):
    return psycopg2.connect(dsn)


def connect_mysql(dsn: str):
    return pymysql.connect(**parse_mysql_dsn(dsn))


CONNECTORS: dict[str, Callable[[str], Any]] = {
    "postgres": connect_postgres,
    "mysql": connect_mysql,
}


def _scan_float(row) -> float:
    """Read a single-column row as a float."""
    if len(row) != 1:
        raise DatabaseQueryError(f"could not receive result: expected 1 column, got {len(row)}")
    value = row[0]
    if value is None:
        raise DatabaseQueryError(
            "could not receive result: converting NULL to float is unsupported"
        )
    if isinstance(value, (bytes, bytearray)):
        value = value.decode()
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DatabaseQueryError(f"could not receive result: {e}") from e


class ConnectionManager:
    """Opens one connection to a configured database and reads scalar results."""

    def __init__(self, db: Database, connectors: dict[str, Callable[[str], Any]] | None = None):
        self.db = db
        self.connectors = CONNECTORS if connectors is None else connectors
        self._conn_str = resolve(db)

    def get_connection(self):
        """Create and return a new database connection."""
        connector = self.connectors.get(self.db.type)
        if connector is None:
            raise DatabaseConnectionError(f"could not open connection: {self._conn_str}")
        try:
            conn = connector(self._conn_str)
        except DRIVER_ERRORS as e:
            raise DatabaseConnectionError(f"could not open connection: {e}") from e
        except ValueError as e:
            raise DatabaseConnectionError(f"could not open connection: {e}") from e
        logger.debug("Opened %s connection to %s", self.db.type, self.db.hostname or "localhost")
        return conn

    @contextmanager
    def cursor(self):
        """Context manager yielding a cursor; the connection is always closed."""
        conn = self.get_connection()
        try:
            yield conn.cursor()
        except DRIVER_ERRORS as e:
            raise DatabaseQueryError(f"could not receive result: {e}") from e
        finally:
            conn.close()
            logger.debug("Closed %s connection", self.db.type)

    def fetch_scalar(self, sql: str, params: tuple = ()) -> float | None:
        """Execute a query and scan the first row's single column as a float.

        Returns None when the query produced no row.
        """
        with self.cursor() as cur:
            # No parameters means no driver-side %-interpolation
            cur.execute(sql, params or None)
            row = cur.fetchone()
            if row is None:
                return None
            return _scan_float(row)
