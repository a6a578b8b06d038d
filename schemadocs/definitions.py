"""
Schema definition documents for SchemaDocs.

Schemas can be declared from a YAML (or already parsed) document instead
of builder calls. The document is validated as a whole before anything
is defined on the store.

Example document:
    schemas:
      - name: restaurants
        format: yaml
        fields:
          - name: name
            constraints: [cant_be_blank]
          - slug
          - name: phone
            constraints:
              - max_length: 20
        have_one:
          - name: address
            fields: [street, suburb]

Constraints are referenced by factory name (see fields.CONSTRAINT_FACTORIES).
A constraint given as a mapping passes its value as the factory argument;
a list value is passed as positional arguments.

Invariants:
    - Nothing is defined on the store unless the whole document is valid
    - describe_store() output loads back into an equivalent store, for
      schemas that only use named factory constraints
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import SchemaError
from .fields import CONSTRAINT_FACTORIES, Constraint
from .schema import SCHEMA_NAME_PATTERN, Schema
from .serializers import known_formats
from .store import DOCUMENTS_TABLE, Store

logger = logging.getLogger(__name__)


@dataclass
class ConstraintSpec:
    """A constraint reference in a definition document."""

    name: str
    args: list[Any] = field(default_factory=list)

    def validate(self, where: str) -> list[str]:
        if self.name not in CONSTRAINT_FACTORIES:
            return [f"{where}: unknown constraint '{self.name}'. Known: {sorted(CONSTRAINT_FACTORIES)}"]
        try:
            self.build()
        except (TypeError, ValueError, re.error) as e:
            return [f"{where}: invalid arguments for {self.name} {self.args}: {e}"]
        return []

    def build(self) -> Constraint:
        return CONSTRAINT_FACTORIES[self.name](*self.args)


@dataclass
class FieldSpec:
    """A field in a definition document."""

    name: str
    constraints: list[ConstraintSpec] = field(default_factory=list)

    def validate(self, where: str) -> list[str]:
        errors = []
        if not self.name:
            errors.append(f"{where}: field name is required")
        for c in self.constraints:
            errors.extend(c.validate(f"{where}.{self.name}"))
        return errors


@dataclass
class SchemaSpec:
    """A schema, with nested have-one children, in a definition document."""

    name: str
    format: str | None = None
    fields: list[FieldSpec] = field(default_factory=list)
    have_one: list[SchemaSpec] = field(default_factory=list)

    def validate(self, where: str = "") -> list[str]:
        path = f"{where}.{self.name}" if where else self.name
        errors = []
        if not self.name:
            errors.append(f"{where or 'schemas'}: schema name is required")
        elif not isinstance(self.name, str) or not SCHEMA_NAME_PATTERN.match(self.name):
            errors.append(f"{path}: invalid schema name, use letters, digits and single underscores")
        if self.format is not None and self.format not in known_formats():
            errors.append(f"{path}: unknown format '{self.format}'")

        names = [f.name for f in self.fields] + [c.name for c in self.have_one]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"{path}: duplicate names {duplicates}")

        for f in self.fields:
            errors.extend(f.validate(path))
        for child in self.have_one:
            errors.extend(child.validate(path))
        return errors

    def apply(self, schema: Schema) -> None:
        """Declare fields and children on an existing schema."""
        for f in self.fields:
            schema.field(f.name, *(c.build() for c in f.constraints))
        for child in self.have_one:
            schema.have_one(child.name, child.apply, format=child.format)


def parse_constraint(data: Any) -> ConstraintSpec:
    """Parse a constraint from a name or a single-key mapping."""
    if isinstance(data, str):
        return ConstraintSpec(name=data)
    if isinstance(data, Mapping) and len(data) == 1:
        name, arg = next(iter(data.items()))
        args = list(arg) if isinstance(arg, list) else [arg]
        return ConstraintSpec(name=str(name), args=args)
    return ConstraintSpec(name="")


def parse_field(data: Any) -> FieldSpec:
    """Parse a field from a bare name or a mapping."""
    if isinstance(data, str):
        return FieldSpec(name=data)
    if not isinstance(data, Mapping):
        return FieldSpec(name="")
    return FieldSpec(
        name=data.get("name", ""),
        constraints=[parse_constraint(c) for c in data.get("constraints") or []],
    )


def parse_schema(data: Mapping[str, Any]) -> SchemaSpec:
    """Parse a schema entry from dict."""
    return SchemaSpec(
        name=data.get("name", ""),
        format=data.get("format"),
        fields=[parse_field(f) for f in data.get("fields") or []],
        have_one=[parse_schema(c) for c in data.get("have_one") or []],
    )


def parse_definitions(source: str | Path | Mapping[str, Any]) -> list[SchemaSpec]:
    """Parse a definition document.

    Args:
        source: YAML text, a path to a YAML file, or a parsed mapping

    Returns:
        Schema specs in document order

    Raises:
        SchemaError: If the document is not a mapping with a schemas list
    """
    if isinstance(source, Path):
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    elif isinstance(source, str):
        data = yaml.safe_load(source)
    else:
        data = source

    if not isinstance(data, Mapping) or not isinstance(data.get("schemas"), list):
        raise SchemaError("Definition document must be a mapping with a 'schemas' list")
    return [parse_schema(s) if isinstance(s, Mapping) else SchemaSpec(name="") for s in data["schemas"]]


def load_definitions(store: Store, source: str | Path | Mapping[str, Any]) -> list[Schema]:
    """Define every schema of a definition document on a store.

    Nothing is defined unless every schema in the document can be. Names
    already defined on the store are reported as problems too.

    Args:
        store: Target store
        source: YAML text, a path to a YAML file, or a parsed mapping

    Returns:
        The defined top-level schemas

    Raises:
        SchemaError: Listing every problem, if the document is invalid
    """
    specs = parse_definitions(source)

    problems: list[str] = []
    for spec in specs:
        problems.extend(spec.validate())
    names = [s.name for s in specs if isinstance(s.name, str) and s.name]
    for name in names:
        if name == DOCUMENTS_TABLE:
            problems.append(f"{name}: schema name is reserved")
        elif name in store:
            problems.append(f"{name}: schema is already defined on the store")
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        problems.append(f"schemas: duplicate names {duplicates}")
    if problems:
        raise SchemaError(
            f"Invalid definition document: {'; '.join(problems)}", problems=problems
        )

    schemas = [store.define_schema(spec.name, spec.apply, format=spec.format) for spec in specs]
    logger.info(f"Loaded {len(schemas)} schema definitions")
    return schemas


def describe_schema(schema: Schema) -> dict[str, Any]:
    """Describe a schema as a definition document entry."""
    d: dict[str, Any] = {"name": schema.name, "format": schema.format}
    fields = []
    for f in schema.fields:
        if not f.constraints:
            fields.append(f.name)
            continue
        constraints: list[Any] = []
        for c in f.constraints:
            if not c.args:
                constraints.append(c.name)
            elif len(c.args) == 1 and c.name != "one_of":
                constraints.append({c.name: c.args[0]})
            else:
                constraints.append({c.name: list(c.args)})
        fields.append({"name": f.name, "constraints": constraints})
    d["fields"] = fields
    children = [describe_schema(child) for child in schema.children()]
    if children:
        d["have_one"] = children
    return d


def describe_store(store: Store) -> str:
    """Describe every schema of a store as a YAML definition document."""
    data = {"schemas": [describe_schema(s) for s in store.schemas()]}
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
