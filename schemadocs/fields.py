"""
Field definitions and validation constraints for SchemaDocs.

This module provides the value-level building blocks of a schema:
- Constraint: A named predicate over a field value
- Field: A named attribute with an ordered list of constraints
- is_blank: The blankness test shared by constraints and serializers

Fields carry no storage dependency. A schema owns an ordered sequence of
fields; that order is the serialization order.

Invariants:
    - Constraints run in declaration order
    - errors_for() reports constraint names, never messages
    - A value is blank if it is None, an empty or whitespace-only
      string, or an empty container

Example:
    >>> name = Field("name").cant_be_blank()
    >>> name.errors_for("")
    ['cant_be_blank']
    >>> phone = Field("phone", constraints=(max_length(10),))
    >>> phone.errors_for("0299999999")
    []
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

Predicate = Callable[[Any], bool]


def is_blank(value: Any) -> bool:
    """Check whether a value counts as unset."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class Constraint:
    """A named predicate over a field value.

    Attributes:
        name: Constraint name reported by validation
        predicate: Returns True when the value passes
        args: Factory arguments, kept for describing the schema
    """

    name: str
    predicate: Predicate
    args: tuple[Any, ...] = ()

    def check(self, value: Any) -> bool:
        return bool(self.predicate(value))


def cant_be_blank() -> Constraint:
    """Value must not be blank."""
    return Constraint("cant_be_blank", lambda v: not is_blank(v))


def max_length(limit: int) -> Constraint:
    """Text form of the value must be at most `limit` characters."""
    if limit < 0:
        raise ValueError(f"max_length limit must be non-negative, got {limit}")
    return Constraint("max_length", lambda v: is_blank(v) or len(str(v)) <= limit, (limit,))


def matches(pattern: str) -> Constraint:
    """Text form of the value must fully match a regular expression."""
    compiled = re.compile(pattern)
    return Constraint(
        "matches",
        lambda v: is_blank(v) or compiled.fullmatch(str(v)) is not None,
        (pattern,),
    )


def one_of(*values: Any) -> Constraint:
    """Value must be one of the given choices."""
    if not values:
        raise ValueError("one_of requires at least one value")
    choices = tuple(values)
    return Constraint("one_of", lambda v: is_blank(v) or v in choices, choices)


# Factories addressable by name, used by definition documents
CONSTRAINT_FACTORIES: dict[str, Callable[..., Constraint]] = {
    "cant_be_blank": cant_be_blank,
    "max_length": max_length,
    "matches": matches,
    "one_of": one_of,
}


class Field:
    """A named document attribute with ordered constraints.

    Constraints may only be appended while the owning schema is being
    declared. Helper methods return the field for chaining.

    Example:
        >>> f = Field("slug").cant_be_blank().add_constraint("lowercase", str.islower)
    """

    def __init__(self, name: str, constraints: Iterable[Constraint] = ()) -> None:
        if not name:
            raise ValueError("Field name cannot be empty")
        self.name = name
        self._constraints: list[Constraint] = list(constraints)

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return tuple(self._constraints)

    def add_constraint(self, name: str, predicate: Predicate) -> Field:
        """Append a named predicate."""
        self._constraints.append(Constraint(name, predicate))
        return self

    def cant_be_blank(self) -> Field:
        self._constraints.append(cant_be_blank())
        return self

    def max_length(self, limit: int) -> Field:
        self._constraints.append(max_length(limit))
        return self

    def matches(self, pattern: str) -> Field:
        self._constraints.append(matches(pattern))
        return self

    def one_of(self, *values: Any) -> Field:
        self._constraints.append(one_of(*values))
        return self

    def errors_for(self, value: Any) -> list[str]:
        """Evaluate every constraint against a value.

        Args:
            value: Field value (None when unset)

        Returns:
            Names of the failed constraints, in declaration order
        """
        return [c.name for c in self._constraints if not c.check(value)]

    def __repr__(self) -> str:
        names = ", ".join(c.name for c in self._constraints)
        return f"Field({self.name!r}, constraints=[{names}])"
