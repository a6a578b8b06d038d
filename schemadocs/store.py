"""
Document store: shared payload table and schema registry.

The store owns the single "documents" table, where every schema's
payloads live keyed by uid, and a registry of the schemas defined on it.
Each schema additionally owns a private index table.

Invariants:
    - The documents table exists before any schema is defined
    - Schema names are unique per store; "documents" is reserved
    - Lookup of an undefined schema returns None

Example:
    >>> store = create_store()
    >>> people = store.define_schema("people", lambda s: s.field("name").cant_be_blank())
    >>> store.schema("people") is people
    True
    >>> store.schema("places") is None
    True
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from .backend import SqliteBackend, Table
from .config import StoreSettings
from .errors import DuplicateSchemaError, SchemaError
from .schema import Schema, SchemaBuilder

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "documents"


class Store:
    """Registry of schemas over one backing store.

    Stores stuff, like a filesystem, except fancier: payloads are
    addressed by path-like uids and indexed per schema.

    Attributes:
        backend: Backing SQLite store
        settings: Store settings
        documents_table: Shared uid -> payload table
    """

    def __init__(self, backend: SqliteBackend, settings: StoreSettings | None = None) -> None:
        self.backend = backend
        self.settings = settings or StoreSettings()
        self.documents_table: Table = backend.table(DOCUMENTS_TABLE)
        self._schemas: dict[str, Schema] = {}

    def create_documents_table(self) -> None:
        self.documents_table = self.backend.create_table(
            DOCUMENTS_TABLE,
            {"uid": "TEXT", "data": "TEXT"},
            primary_key="uid",
        )

    def define_schema(
        self,
        name: str,
        builder: SchemaBuilder | None = None,
        format: str | None = None,
    ) -> Schema:
        """Define and register a top-level schema.

        Creates the schema's index table, then applies the builder.

        Args:
            name: Schema name (plural by convention)
            builder: Callable that declares fields and associations
            format: Format tag (defaults to settings.default_format)

        Returns:
            The new Schema

        Raises:
            DuplicateSchemaError: If name is already defined
            SchemaError: If name is invalid or reserved
        """
        if name == DOCUMENTS_TABLE:
            raise SchemaError(f"Schema name '{name}' is reserved", schema_name=name)
        if name in self._schemas:
            raise DuplicateSchemaError(name)

        schema = Schema(self, name, format=format or self.settings.default_format)
        schema.create_index_table()
        if builder is not None:
            builder(schema)
        self._schemas[name] = schema

        logger.info(
            f"Defined schema: {name}",
            extra={"schema": name, "format": schema.format, "fields": len(schema.fields)},
        )
        return schema

    def schema(self, name: str) -> Schema | None:
        """Get a top-level schema by name, or None if undefined."""
        return self._schemas.get(name)

    def schemas(self) -> Iterator[Schema]:
        """Iterate over top-level schemas in definition order."""
        yield from self._schemas.values()

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def create_store(database: str | None = None, settings: StoreSettings | None = None) -> Store:
    """Open a backing store and create its documents table.

    Args:
        database: SQLite path or ":memory:" (overrides settings.database)
        settings: Store settings (loaded from the environment if omitted)

    Returns:
        Ready-to-use Store
    """
    settings = settings or StoreSettings()
    backend = SqliteBackend(
        database or settings.database,
        wal_mode=settings.wal_mode,
        busy_timeout_ms=settings.busy_timeout_ms,
    )
    store = Store(backend, settings)
    store.create_documents_table()
    return store
