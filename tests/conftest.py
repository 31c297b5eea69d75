"""Shared test fixtures and mock database driver."""

from __future__ import annotations

from pathlib import Path

import pytest

from check_database.config.models import CheckConfig, Database, Parameter, Query
from check_database.db import connection


class MockCursor:
    """Cursor returning canned rows; records every execute call."""

    def __init__(self, conn: "MockConnection"):
        self.conn = conn
        self._rows: list[tuple] = []

    def execute(self, sql: str, params=None) -> None:
        self.conn.executed.append((sql, params))
        if self.conn.execute_error is not None:
            raise self.conn.execute_error
        self._rows = list(self.conn.rows)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None


class MockConnection:
    """In-memory stand-in for a DB-API connection."""

    def __init__(self, rows: list[tuple] | None = None, execute_error: Exception | None = None):
        self.rows = rows if rows is not None else [(5,)]
        self.execute_error = execute_error
        self.executed: list[tuple] = []
        self.dsns: list[str] = []
        self.closed = False

    def cursor(self) -> MockCursor:
        return MockCursor(self)

    def close(self) -> None:
        self.closed = True


def make_connectors(conn: MockConnection) -> dict:
    """Connector registry whose connectors all hand out ``conn``."""

    def connect(dsn: str) -> MockConnection:
        conn.dsns.append(dsn)
        return conn

    return {"postgres": connect, "mysql": connect}


@pytest.fixture
def mock_conn() -> MockConnection:
    return MockConnection()


@pytest.fixture
def patched_drivers(monkeypatch, mock_conn) -> MockConnection:
    """Route the global connector registry to ``mock_conn``."""
    for db_type, connector in make_connectors(mock_conn).items():
        monkeypatch.setitem(connection.CONNECTORS, db_type, connector)
    return mock_conn


@pytest.fixture
def config() -> CheckConfig:
    return CheckConfig(
        queries={
            "count_rows": Query(
                query="SELECT count(*) FROM %s",
                params=[Parameter(name="a", desc="table to count")],
                desc="count rows in a table",
                message="{{.Result}} is {{.LevelName}}",
            ),
            "ping": Query(query="SELECT 1", desc="connectivity", message="{{ Result }}"),
        },
        databases={
            "main": Database(type="postgres", hostname="db1", port=5432, database="app"),
            "shop": Database(type="mysql", hostname="db2", port=3306, database="shop"),
        },
    )


MAIN_CONFIG = """\
include_dir = "conf.d"

[query.connections]
query = "SELECT count(*) FROM pg_stat_activity WHERE datname = %s"
desc = "number of open connections"
message = "{{.DBName}} has {{.Result}} connections ({{.LevelName}})"

[[query.connections.params]]
name = "db"
desc = "database name"

[database.primary]
hostname = "pg1.example.com"
username = "monitor"
database = "postgres"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A main config file with an empty include directory next to it."""
    (tmp_path / "conf.d").mkdir()
    path = tmp_path / "check_database.conf"
    path.write_text(MAIN_CONFIG)
    return path


@pytest.fixture
def mock_driver():
    """Factory returning a mock connection and a connector registry serving it."""

    def factory(rows: list[tuple] | None = None, execute_error: Exception | None = None):
        conn = MockConnection(rows=rows, execute_error=execute_error)
        return conn, make_connectors(conn)

    return factory
