"""
SQLite backing store for SchemaDocs.

This module wraps a single SQLite connection in the small table
abstraction the document layer needs:
- create_table: Create a keyed table with optional secondary indexes
- Table.first: Point lookup of one row by column equality
- Table.insert / Table.update: Single-row point writes
- transaction: Explicit BEGIN IMMEDIATE / COMMIT / ROLLBACK block

The document layer only ever issues point lookups and point writes keyed
by uid (documents table) or id (index tables). No range queries, no joins.

Invariants:
    - One connection per backend, autocommit unless inside transaction()
    - Table and column names are validated identifiers, values are
      always bound parameters
    - sqlite3 errors propagate unchanged

How to change safely:
    - Keep the Table surface minimal; schema logic must not issue SQL
    - Test with both ":memory:" and file databases

Table layout created by the store:
    documents:
        - uid TEXT PRIMARY KEY
        - data TEXT (serialized payload)

    <schema index table>:
        - uid TEXT PRIMARY KEY
        - id TEXT UNIQUE, indexed
"""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _where_clause(where: Mapping[str, Any]) -> tuple[str, list[Any]]:
    if not where:
        raise ValueError("A key predicate is required")
    parts = [f"{_check_identifier(col)} = ?" for col in where]
    return " AND ".join(parts), list(where.values())


class Table:
    """Handle to one table of a SqliteBackend.

    Example:
        >>> docs = backend.table("documents")
        >>> docs.insert({"uid": "/restaurants/x.yaml", "data": "name: X"})
        >>> docs.first(uid="/restaurants/x.yaml")["data"]
        'name: X'
    """

    def __init__(self, backend: SqliteBackend, name: str) -> None:
        self.backend = backend
        self.name = _check_identifier(name)

    def first(self, **where: Any) -> dict[str, Any] | None:
        """Fetch the first row matching all column equalities, or None."""
        clause, params = _where_clause(where)
        cursor = self.backend.connection.execute(
            f"SELECT * FROM {self.name} WHERE {clause} LIMIT 1", params
        )
        row = cursor.fetchone()
        return dict(row) if row is not None else None

    def insert(self, row: Mapping[str, Any]) -> None:
        """Insert one row."""
        columns = [_check_identifier(col) for col in row]
        placeholders = ", ".join("?" for _ in columns)
        self.backend.connection.execute(
            f"INSERT INTO {self.name} ({', '.join(columns)}) VALUES ({placeholders})",
            list(row.values()),
        )

    def update(self, where: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        """Update rows matching `where`.

        Returns:
            Number of rows changed
        """
        if not values:
            return 0
        assignments = ", ".join(f"{_check_identifier(col)} = ?" for col in values)
        clause, params = _where_clause(where)
        cursor = self.backend.connection.execute(
            f"UPDATE {self.name} SET {assignments} WHERE {clause}",
            list(values.values()) + params,
        )
        return cursor.rowcount

    def count(self) -> int:
        cursor = self.backend.connection.execute(f"SELECT COUNT(*) FROM {self.name}")
        return cursor.fetchone()[0]

    def __repr__(self) -> str:
        return f"<Table {self.name}>"


class SqliteBackend:
    """Single-connection SQLite store.

    Thread safety:
        None. One synchronous caller is assumed; the connection is
        shared by every table handle.

    Example:
        >>> backend = SqliteBackend(":memory:")
        >>> backend.create_table("documents", {"uid": "TEXT", "data": "TEXT"}, primary_key="uid")
        >>> backend.table("documents").count()
        0
    """

    def __init__(
        self,
        database: str = ":memory:",
        wal_mode: bool = False,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Open the database.

        Args:
            database: File path or ":memory:"
            wal_mode: Enable SQLite WAL journal mode (file databases only)
            busy_timeout_ms: SQLite busy timeout
        """
        self.database = database
        if database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        self.connection = sqlite3.connect(
            database,
            timeout=busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit, explicit transactions only
        )
        self.connection.row_factory = sqlite3.Row
        self.connection.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
        if wal_mode and database != ":memory:":
            self.connection.execute("PRAGMA journal_mode = WAL")
        logger.debug("Opened backing store", extra={"database": database})

    def create_table(
        self,
        name: str,
        columns: Mapping[str, str],
        primary_key: str,
        unique: Sequence[str] = (),
        indexes: Sequence[str] = (),
    ) -> Table:
        """Create a table if it does not exist.

        Args:
            name: Table name
            columns: Column name -> SQLite type, in order
            primary_key: Primary key column
            unique: Columns with a UNIQUE constraint
            indexes: Columns to index

        Returns:
            Table handle
        """
        _check_identifier(name)
        defs = []
        for col, col_type in columns.items():
            _check_identifier(col)
            col_def = f"{col} {col_type}"
            if col == primary_key:
                col_def += " PRIMARY KEY NOT NULL"
            elif col in unique:
                col_def += " UNIQUE"
            defs.append(col_def)

        self.connection.execute(f"CREATE TABLE IF NOT EXISTS {name} ({', '.join(defs)})")
        for col in indexes:
            _check_identifier(col)
            self.connection.execute(f"CREATE INDEX IF NOT EXISTS idx_{name}_{col} ON {name}({col})")

        logger.info(f"Created table: {name}")
        return Table(self, name)

    def table(self, name: str) -> Table:
        return Table(self, name)

    def has_table(self, name: str) -> bool:
        cursor = self.connection.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        )
        return cursor.fetchone() is not None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed statements in one transaction.

        Rolls back and re-raises on any exception.
        """
        self.connection.execute("BEGIN IMMEDIATE")
        try:
            yield
            self.connection.execute("COMMIT")
        except Exception:
            self.connection.execute("ROLLBACK")
            raise

    def close(self) -> None:
        self.connection.close()
