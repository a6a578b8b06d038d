"""
Schemas: declared document types and their persistence.

A Schema owns an ordered sequence of fields, a serialization format, its
have-one associations and a private index table. It orchestrates
everything that happens to documents of its type:
- build / find: Construct new documents and found shells
- validate: Run every field's constraints
- dump / load: Serialize fields, lazily populate found shells
- exists / save: Point lookup and create-or-update against the store
- path / uid: Pure storage key derivation

Storage key derivation:
    path(id) = parent.path(id) + "/" + name   for a have-one child
             = "/" + name + "/" + id           otherwise
    uid(id)  = path(id) + "." + format

A have-one child shares its parent's id, so a restaurant stored at
/restaurants/tdfjtscvm3v1.yaml keeps its address at
/restaurants/tdfjtscvm3v1/address.yaml.

Invariants:
    - Field declaration order is the serialization order
    - load() never overwrites a value the document already holds
    - exists() always queries the documents table (no caching)
    - save() writes the payload row first, then the index row

Consistency gap:
    save() issues two independent single-row writes. A failure between
    them leaves the payload and index rows disagreeing about existence;
    for example a payload row without an index row makes a document
    that exists() but that find() cannot locate. Nothing repairs this.
    StoreSettings.atomic_saves wraps the pair in one transaction.

How to change safely:
    - Add new association kinds next to HAVE_ONE and extend path()
    - Add new payload formats in serializers.py, not here
    - Extend indexed_fields() together with create_index_table()
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Mapping
from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

from .document import Document
from .errors import SchemaError, UnknownFieldError
from .fields import Constraint, Field
from .serializers import Serializer, get_serializer

if TYPE_CHECKING:
    from .backend import Table
    from .store import Store

logger = logging.getLogger(__name__)

HAVE_ONE = "have_one"

# Single underscores only: "__" separates a parent from a child in index table names
SCHEMA_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:_[A-Za-z0-9]+)*$")

SchemaBuilder = Callable[["Schema"], Any]


class Schema:
    """A declared document type bound to a store.

    Schemas are created through Store.define_schema() or
    Schema.have_one(), never directly by callers.

    Attributes:
        name: Collection name, conventionally plural
        format: Serialization format tag, also the uid extension
        fields: Ordered field definitions
        associations: Child schema -> association kind
        parent: Owning schema for a have-one child (non-owning reference)
        store: Owning store

    Example:
        >>> restaurants = store.define_schema("restaurants")
        >>> restaurants.field("name", cant_be_blank())
        >>> restaurants.have_one("address", lambda a: a.field("street"))
        >>> doc = restaurants.build({"name": "Ambalas"}, id="tdfjtscvm3v1")
        >>> doc.uid
        '/restaurants/tdfjtscvm3v1.yaml'
    """

    def __init__(
        self,
        store: Store,
        name: str,
        format: str = "yaml",
        parent: Schema | None = None,
    ) -> None:
        if not SCHEMA_NAME_PATTERN.match(name or ""):
            raise SchemaError(
                f"Invalid schema name {name!r}: use letters, digits and single underscores",
                schema_name=name,
            )
        self.store = store
        self.name = name
        self.format = format
        self.parent = parent
        self.serializer: Serializer = get_serializer(format)
        self.associations: dict[Schema, str] = {}
        self._fields: list[Field] = []
        self._fields_by_name: dict[str, Field] = {}
        self._children_by_name: dict[str, Schema] = {}
        self.index_table: Table | None = None

    # == declaration

    @property
    def fields(self) -> tuple[Field, ...]:
        return tuple(self._fields)

    def field(self, name: str, *constraints: Constraint) -> Field:
        """Declare a field, appended after every existing field.

        Args:
            name: Field name, unique within the schema
            *constraints: Constraints in evaluation order

        Returns:
            The new Field, which accepts further chained constraints

        Raises:
            SchemaError: If the name is taken by a field or association
        """
        self._check_free_name(name)
        f = Field(name, constraints)
        self._fields.append(f)
        self._fields_by_name[name] = f
        return f

    def have_one(
        self,
        name: str,
        builder: SchemaBuilder | None = None,
        format: str | None = None,
    ) -> Schema:
        """Declare a have-one child schema.

        Documents of this schema may own one document of the child schema,
        read with doc.get(name) and assigned with doc.set({name: {...}}).
        The child document shares the parent's id.

        Args:
            name: Child schema name, also the association name
            builder: Callable that declares the child's fields
            format: Child format tag (defaults to this schema's)

        Returns:
            The child Schema
        """
        self._check_free_name(name)
        child = Schema(self.store, name, format=format or self.format, parent=self)
        child.create_index_table()
        self.associations[child] = HAVE_ONE
        self._children_by_name[name] = child
        if builder is not None:
            builder(child)
        logger.debug(
            "Declared have-one association",
            extra={"schema": self.name, "child": name},
        )
        return child

    def _check_free_name(self, name: str) -> None:
        if not name:
            raise SchemaError("Field name cannot be empty", schema_name=self.name)
        if name in self._fields_by_name:
            raise SchemaError(
                f"Field '{name}' is already declared on '{self.name}'", schema_name=self.name
            )
        if name in self._children_by_name:
            raise SchemaError(
                f"'{name}' is already an association of '{self.name}'", schema_name=self.name
            )

    def get_field(self, name: str) -> Field | None:
        return self._fields_by_name.get(name)

    def association(self, name: str) -> Schema | None:
        """Get a child schema by association name."""
        return self._children_by_name.get(name)

    def children(self) -> Iterator[Schema]:
        yield from self.associations

    @property
    def parent_association(self) -> str | None:
        if self.parent is None:
            return None
        return self.parent.associations.get(self)

    @property
    def index_table_name(self) -> str:
        if self.parent is not None:
            return f"{self.parent.index_table_name}__{self.name}"
        return self.name

    def create_index_table(self) -> None:
        self.index_table = self.store.backend.create_table(
            self.index_table_name,
            {"uid": "TEXT", "id": "TEXT"},
            primary_key="uid",
            unique=("id",),
            indexes=("id",),
        )

    def check_name(self, name: str) -> None:
        """Raise UnknownFieldError unless name is a field or association."""
        if name in self._fields_by_name or name in self._children_by_name:
            return
        known = list(self._fields_by_name) + list(self._children_by_name)
        raise UnknownFieldError(name, self.name, get_close_matches(name, known, n=3))

    # == documents

    def build(self, attrs: Mapping[str, Any] | None = None, id: str | None = None) -> Document:
        """Build a new document. Does not touch storage.

        Args:
            attrs: Initial field values
            id: Explicit id (random if omitted)
        """
        document = Document(self, id)
        if attrs:
            document.set(attrs)
        return document

    def find(self, id: str) -> Document | None:
        """Find a document by id through the index table.

        Returns:
            A shell document whose fields load on first access,
            or None if no index row matches
        """
        if self.index_table.first(id=id) is None:
            return None
        return Document(self, id)

    def validate(self, document: Document) -> bool:
        """Run every field's constraints against the document.

        Stores the failures on document.errors as (field name, failed
        constraint names) pairs.

        Returns:
            True if no constraint failed
        """
        errors: list[tuple[str, list[str]]] = []
        for name, value in self._field_values(document):
            field_errors = self._fields_by_name[name].errors_for(value)
            if field_errors:
                errors.append((name, field_errors))
        document.errors = errors
        return not errors

    def load(self, document: Document) -> None:
        """Populate a document from its stored payload.

        Does nothing if the document is already loaded or is not stored.
        Values the document already holds are kept.
        """
        if document.loaded:
            return
        row = self.store.documents_table.first(uid=document.uid)
        if row is None:
            return

        loaded_fields = self.serializer.decode(row["data"])
        for name, value in loaded_fields.items():
            if name not in self._fields_by_name:
                logger.warning(
                    "Skipping stored field not declared on schema",
                    extra={"schema": self.name, "uid": document.uid, "field": name},
                )
                continue
            if not document.has(name):
                document._assign(name, value)
        document._loaded = True
        logger.debug("Loaded document", extra={"uid": document.uid})

    def dump(self, document: Document) -> str:
        """Serialize the document's non-blank fields in declaration order."""
        return self.serializer.encode(self._field_values(document))

    def _field_values(self, document: Document) -> list[tuple[str, Any]]:
        # At most one load attempt per pass, not one per unset field
        if any(not document.has(f.name) for f in self._fields):
            self.load(document)
        held = document.fields
        return [(f.name, held.get(f.name)) for f in self._fields]

    def exists(self, document: Document) -> bool:
        """Check whether the document's payload row is stored."""
        return self.store.documents_table.first(uid=document.uid) is not None

    def save(self, document: Document) -> None:
        """Create or update the document, then save its owned children.

        Does not validate first; that is up to the caller.
        """
        if self.store.settings.atomic_saves:
            with self.store.backend.transaction():
                self._write(document)
        else:
            self._write(document)

        for child in document.children():
            child.save()

    def _write(self, document: Document) -> None:
        data = self.dump(document)
        if self.exists(document):
            self._update(document, data)
        else:
            self._create(document, data)

    def _create(self, document: Document, data: str) -> None:
        uid = document.uid
        self.store.documents_table.insert({"uid": uid, "data": data})
        self.index_table.insert({"uid": uid, **self.indexed_fields(document)})
        logger.debug("Created document", extra={"schema": self.name, "uid": uid})

    def _update(self, document: Document, data: str) -> None:
        uid = document.uid
        self.store.documents_table.update({"uid": uid}, {"data": data})
        changed = self.index_table.update({"uid": uid}, self.indexed_fields(document))
        if changed == 0:
            logger.warning(
                "Index row missing for stored document; find() will not locate it",
                extra={"schema": self.name, "uid": uid},
            )
        logger.debug("Updated document", extra={"schema": self.name, "uid": uid})

    def indexed_fields(self, document: Document) -> dict[str, Any]:
        """Projection written to the index table."""
        return {"id": document.id}

    # == storage keys

    def path(self, id: str) -> str:
        if self.parent is not None and self.parent_association == HAVE_ONE:
            return f"{self.parent.path(id)}/{self.name}"
        return f"/{self.name}/{id}"

    def uid(self, id: str) -> str:
        return f"{self.path(id)}.{self.format}"

    def __repr__(self) -> str:
        return f"<Schema {self.name} format={self.format} fields={len(self._fields)}>"
