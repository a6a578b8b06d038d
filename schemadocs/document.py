"""
Documents: instances of a schema.

A Document binds an id and a mutable field mapping to exactly one Schema.
Every behaviour beyond holding values is delegated to the schema.

Lifecycle:
    built (Schema.build)  ->  saved (create)  ->  saved (update)*
    found shell (Schema.find)  ->  loaded on first read  ->  saved (update)*

Invariants:
    - schema and id never change after construction
    - Reading an unset field loads the stored payload at most once
    - Values assigned before a load are never overwritten by it
    - errors reflects the most recent validate() only
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .ids import random_id

if TYPE_CHECKING:
    from .schema import Schema


class Document:
    """One document of a schema.

    Example:
        >>> r = restaurants.build({"name": "Ambalas", "slug": "ambalas"})
        >>> r.valid()
        True
        >>> r.save().exists()
        True
        >>> restaurants.find(r.id).get("name")
        'Ambalas'
    """

    def __init__(self, schema: Schema, id: str | None = None) -> None:
        self._schema = schema
        self._id = id or random_id()
        self._fields: dict[str, Any] = {}
        self._children: dict[str, Document] = {}
        self._loaded = False
        self.errors: list[tuple[str, list[str]]] = []

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def id(self) -> str:
        return self._id

    @property
    def uid(self) -> str:
        return self._schema.uid(self._id)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def fields(self) -> Mapping[str, Any]:
        """Read-only view of the values currently held (no loading)."""
        return MappingProxyType(self._fields)

    def has(self, name: str) -> bool:
        """Whether a value is held for name, without loading."""
        return name in self._fields

    def get(self, name: str) -> Any:
        """Read a field value or a have-one child document.

        Reading an unset field triggers a one-time load from the store.

        Raises:
            UnknownFieldError: If name is not declared on the schema
        """
        self._schema.check_name(name)
        child_schema = self._schema.association(name)
        if child_schema is not None:
            return self._get_child(name, child_schema)

        if name not in self._fields and not self._loaded:
            self._schema.load(self)
        return self._fields.get(name)

    def set(self, attrs: Mapping[str, Any] | None = None, **kwargs: Any) -> Document:
        """Assign several values at once.

        E.g.
            doc.set({"name": "Myles", "city": "Sydney"})
        is equivalent to:
            doc["name"] = "Myles"; doc["city"] = "Sydney"

        Returns:
            The document, for chaining
        """
        values = dict(attrs or {})
        values.update(kwargs)
        for name, value in values.items():
            self[name] = value
        return self

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self._schema.check_name(name)
        child_schema = self._schema.association(name)
        if child_schema is not None:
            self._set_child(name, child_schema, value)
        else:
            self._fields[name] = value

    def _assign(self, name: str, value: Any) -> None:
        # Used by Schema.load; bypasses name checks
        self._fields[name] = value

    # == have-one children

    def _get_child(self, name: str, child_schema: Schema) -> Document | None:
        if name not in self._children:
            found = child_schema.find(self._id)
            if found is None:
                return None
            self._children[name] = found
        return self._children[name]

    def _set_child(self, name: str, child_schema: Schema, value: Any) -> None:
        if value is None:
            self._children.pop(name, None)
        elif isinstance(value, Document):
            if value.schema is not child_schema or value.id != self._id:
                raise ValueError(
                    f"'{name}' must be a {child_schema.name} document with id {self._id}"
                )
            self._children[name] = value
        else:
            self._children[name] = child_schema.build(value, id=self._id)

    def children(self) -> Iterator[Document]:
        """Owned child documents currently held."""
        yield from self._children.values()

    # == delegation to schema

    def valid(self) -> bool:
        """Validate the document; failures are left on errors."""
        return self._schema.validate(self)

    def exists(self) -> bool:
        """True if the document is stored."""
        return self._schema.exists(self)

    def is_new(self) -> bool:
        """True if the document is not stored yet."""
        return not self.exists()

    def save(self) -> Document:
        """Save to the store. Does not validate first."""
        self._schema.save(self)
        return self

    def dump(self) -> str:
        return self._schema.dump(self)

    def __repr__(self) -> str:
        return f"<{self._schema.name} document {self._id}>"
