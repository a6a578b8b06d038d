"""
Error types for SchemaDocs.

This module defines the exceptions raised by the document layer:
- SchemaDocsError: Base exception
- SchemaError: Invalid schema or field declaration
- DuplicateSchemaError: Schema name already registered on a store
- UnknownFieldError: Unknown field assigned on a document
- UnknownFormatError: No serializer registered for a format tag
- PayloadDecodeError: Stored payload could not be decoded

Validation failures and missing documents are NOT exceptions: they are
reported through Document.valid()/Document.errors and a None result from
Schema.find() respectively.

Invariants:
    - All errors inherit from SchemaDocsError
    - Errors include context for debugging
    - Backing store errors (sqlite3.Error) are never wrapped
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class SchemaDocsError(Exception):
    """Base exception for all SchemaDocs errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SCHEMADOCS_ERROR"
        self.details = details or {}


class SchemaError(SchemaDocsError):
    """Invalid schema declaration.

    Raised when:
    - A field name is empty or declared twice
    - A field name clashes with an association
    - A definition document is malformed
    """

    def __init__(
        self,
        message: str,
        schema_name: Optional[str] = None,
        problems: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="SCHEMA_ERROR",
            details={"schema": schema_name, "problems": problems or []},
        )
        self.schema_name = schema_name
        self.problems = problems or []


class DuplicateSchemaError(SchemaDocsError):
    """A schema with this name is already registered."""

    def __init__(self, schema_name: str) -> None:
        super().__init__(
            f"Schema '{schema_name}' is already defined",
            code="DUPLICATE_SCHEMA",
            details={"schema": schema_name},
        )
        self.schema_name = schema_name


class UnknownFieldError(SchemaDocsError):
    """Unknown field assigned on a document.

    Includes suggestions for similar field names.

    Attributes:
        field_name: The unknown field
        schema_name: The schema of the document
        suggestions: Similar field names
    """

    def __init__(
        self,
        field_name: str,
        schema_name: str,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        suggestions = suggestions or []
        msg = f"Unknown field '{field_name}' in schema '{schema_name}'"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"

        super().__init__(
            msg,
            code="UNKNOWN_FIELD",
            details={
                "field_name": field_name,
                "schema_name": schema_name,
                "suggestions": suggestions,
            },
        )
        self.field_name = field_name
        self.schema_name = schema_name
        self.suggestions = suggestions


class UnknownFormatError(SchemaDocsError):
    """No serializer is registered for a format tag."""

    def __init__(self, format_tag: str, known: Optional[List[str]] = None) -> None:
        known = known or []
        super().__init__(
            f"Unknown format '{format_tag}'. Known formats: {', '.join(known)}",
            code="UNKNOWN_FORMAT",
            details={"format": format_tag, "known": known},
        )
        self.format_tag = format_tag
        self.known = known


class PayloadDecodeError(SchemaDocsError):
    """A stored payload could not be decoded.

    Raised by serializers on load. Treated as a storage failure: it
    propagates to the caller unchanged.
    """

    def __init__(
        self,
        message: str,
        format_tag: str,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="PAYLOAD_DECODE_ERROR",
            details={"format": format_tag, "line": line},
        )
        self.format_tag = format_tag
        self.line = line
