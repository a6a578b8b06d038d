"""
SchemaDocs - schema-driven documents over a relational key/value store.

This package provides:
- Schemas with ordered, constrained fields (Store.define_schema)
- Documents with random ids, lazy loading and validation
- Have-one child documents that share their parent's id
- Pluggable payload serializers selected by format tag
- A SQLite backing store with one shared documents table and one
  index table per schema

Example:
    >>> from schemadocs import create_store, cant_be_blank
    >>>
    >>> store = create_store()
    >>> restaurants = store.define_schema("restaurants")
    >>> restaurants.field("name", cant_be_blank())
    >>> restaurants.field("slug")
    >>> restaurants.have_one("address", lambda a: a.field("street"))
    >>>
    >>> r = restaurants.build({"name": "Ambalas", "slug": "ambalas"})
    >>> r.set({"address": {"street": "Main St"}})
    >>> if r.valid():
    ...     r.save()

Invariants:
    - uid = path + "." + format, a pure function of schema and id
    - Validation failures are return values, never exceptions
    - find() returns None when nothing matches

Version: 1.0.0
"""

__version__ = "1.0.0"

from .backend import SqliteBackend, Table
from .config import StoreSettings, setup_logging
from .definitions import describe_store, load_definitions
from .document import Document
from .errors import (
    DuplicateSchemaError,
    PayloadDecodeError,
    SchemaDocsError,
    SchemaError,
    UnknownFieldError,
    UnknownFormatError,
)
from .fields import (
    Constraint,
    Field,
    cant_be_blank,
    is_blank,
    matches,
    max_length,
    one_of,
)
from .ids import ID_ALPHABET, ID_LENGTH, random_id
from .schema import HAVE_ONE, Schema
from .serializers import (
    JsonSerializer,
    LineTextSerializer,
    Serializer,
    get_serializer,
    register_serializer,
)
from .store import Store, create_store

__all__ = [
    # Version
    "__version__",
    # Store
    "Store",
    "create_store",
    "StoreSettings",
    "setup_logging",
    "SqliteBackend",
    "Table",
    # Schemas and documents
    "Schema",
    "Document",
    "HAVE_ONE",
    "load_definitions",
    "describe_store",
    # Fields
    "Field",
    "Constraint",
    "cant_be_blank",
    "max_length",
    "matches",
    "one_of",
    "is_blank",
    # Ids
    "random_id",
    "ID_ALPHABET",
    "ID_LENGTH",
    # Serializers
    "Serializer",
    "LineTextSerializer",
    "JsonSerializer",
    "get_serializer",
    "register_serializer",
    # Errors
    "SchemaDocsError",
    "SchemaError",
    "DuplicateSchemaError",
    "UnknownFieldError",
    "UnknownFormatError",
    "PayloadDecodeError",
]
