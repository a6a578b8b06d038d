"""
Payload serializers for SchemaDocs.

A serializer turns an ordered field-name -> value mapping into the text
stored in the documents table and back. Schemas pick one by format tag,
which is also the extension of every document uid.

Built-in formats:
    yaml: One "name: value" line per field, declaration order, no
          trailing newline. This is the default format.
    json: A JSON object with keys in declaration order.

Both formats omit blank values on encode, so a decode returns exactly
the non-blank entries that were encoded.

Invariants:
    - encode() is deterministic for a given ordered input
    - decode(encode(fields)) == non-blank entries of fields, for text
      values (line breaks included)
    - Each encoded field occupies exactly one line
    - Decode failures raise PayloadDecodeError

How to change safely:
    - Register new formats with register_serializer(); never branch on
      format tags in Schema code
    - Changing an existing encoding breaks payloads already stored
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from .errors import PayloadDecodeError, UnknownFormatError
from .fields import is_blank

FieldPairs = Iterable[tuple[str, Any]]


class Serializer:
    """Base class for payload encodings."""

    format_tag: str = ""

    def encode(self, fields: FieldPairs) -> str:
        raise NotImplementedError

    def decode(self, data: str) -> dict[str, Any]:
        raise NotImplementedError


class LineTextSerializer(Serializer):
    """Line-oriented "name: value" encoding.

    Values are written with str(); decoded values are always strings.
    The first ": " on a line separates the name from the value, so
    values may themselves contain colons.

    A value containing a line break, or starting with a double quote, is
    written as a double-quoted escaped scalar (valid YAML) so that every
    field stays on one line. All other values are written verbatim.
    """

    format_tag = "yaml"

    def encode(self, fields: FieldPairs) -> str:
        return "\n".join(
            f"{name}: {self._quote(str(value))}" for name, value in fields if not is_blank(value)
        )

    def decode(self, data: str) -> dict[str, Any]:
        result: dict[str, Any] = {}
        # Split on "\n" only; str.splitlines() also breaks on unicode separators
        for lineno, line in enumerate(data.split("\n"), start=1):
            if not line.strip():
                continue
            name, sep, value = line.partition(": ")
            if not sep or not name:
                raise PayloadDecodeError(
                    f"Malformed line {lineno}: expected 'name: value'",
                    format_tag=self.format_tag,
                    line=lineno,
                )
            result[name] = self._unquote(value, lineno)
        return result

    @staticmethod
    def _quote(text: str) -> str:
        if "\n" in text or "\r" in text or text.startswith('"'):
            return json.dumps(text, ensure_ascii=False)
        return text

    def _unquote(self, value: str, lineno: int) -> str:
        if not value.startswith('"'):
            return value
        try:
            text = json.loads(value)
        except json.JSONDecodeError as e:
            raise PayloadDecodeError(
                f"Malformed quoted value on line {lineno}: {e.msg}",
                format_tag=self.format_tag,
                line=lineno,
            ) from e
        if not isinstance(text, str):
            raise PayloadDecodeError(
                f"Malformed quoted value on line {lineno}",
                format_tag=self.format_tag,
                line=lineno,
            )
        return text


class JsonSerializer(Serializer):
    """JSON object encoding. Preserves value types that JSON supports."""

    format_tag = "json"

    def encode(self, fields: FieldPairs) -> str:
        payload = {name: value for name, value in fields if not is_blank(value)}
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

    def decode(self, data: str) -> dict[str, Any]:
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise PayloadDecodeError(
                f"Invalid JSON payload: {e.msg}", format_tag=self.format_tag, line=e.lineno
            ) from e
        if not isinstance(payload, dict):
            raise PayloadDecodeError(
                f"JSON payload must be an object, got {type(payload).__name__}",
                format_tag=self.format_tag,
            )
        return payload


_serializers: dict[str, Serializer] = {}


def register_serializer(serializer: Serializer) -> None:
    """Register a serializer under its format tag.

    Args:
        serializer: Serializer instance with a non-empty format_tag

    Raises:
        ValueError: If the format tag is empty
    """
    if not serializer.format_tag:
        raise ValueError("Serializer format_tag cannot be empty")
    _serializers[serializer.format_tag] = serializer


def get_serializer(format_tag: str) -> Serializer:
    """Look up the serializer for a format tag.

    Raises:
        UnknownFormatError: If no serializer is registered for the tag
    """
    try:
        return _serializers[format_tag]
    except KeyError:
        raise UnknownFormatError(format_tag, sorted(_serializers)) from None


def known_formats() -> list[str]:
    """List registered format tags."""
    return sorted(_serializers)


register_serializer(LineTextSerializer())
register_serializer(JsonSerializer())
