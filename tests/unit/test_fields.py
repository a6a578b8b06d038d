"""
Unit tests for fields and constraints.

Tests cover:
- Blankness
- Constraint evaluation order
- Built-in constraint factories
- Field chaining helpers
"""

import pytest

from schemadocs.fields import (
    CONSTRAINT_FACTORIES,
    Constraint,
    Field,
    cant_be_blank,
    is_blank,
    matches,
    max_length,
    one_of,
)


class TestIsBlank:
    """Tests for is_blank."""

    @pytest.mark.parametrize("value", [None, "", "   ", [], (), {}, set()])
    def test_blank_values(self, value):
        """Unset, empty and whitespace-only values are blank."""
        assert is_blank(value) is True

    @pytest.mark.parametrize("value", ["x", 0, False, [None], {"a": 1}, 0.0])
    def test_non_blank_values(self, value):
        """Zero and False are values, not blanks."""
        assert is_blank(value) is False


class TestConstraints:
    """Tests for constraint factories."""

    def test_cant_be_blank(self):
        c = cant_be_blank()
        assert c.name == "cant_be_blank"
        assert c.check("Myles") is True
        assert c.check("") is False
        assert c.check(None) is False

    def test_max_length(self):
        c = max_length(3)
        assert c.check("abc") is True
        assert c.check("abcd") is False
        assert c.args == (3,)

    def test_max_length_negative_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            max_length(-1)

    def test_matches_requires_full_match(self):
        c = matches(r"[a-z]+")
        assert c.check("ambalas") is True
        assert c.check("Ambalas") is False
        assert c.check("ambalas!") is False

    def test_one_of(self):
        c = one_of("open", "closed")
        assert c.check("open") is True
        assert c.check("ajar") is False
        assert c.args == ("open", "closed")

    def test_one_of_requires_values(self):
        with pytest.raises(ValueError):
            one_of()

    def test_value_constraints_pass_blank(self):
        """Only cant_be_blank rejects blank values."""
        for c in (max_length(1), matches(r"\d+"), one_of("a")):
            assert c.check(None) is True
            assert c.check("") is True

    def test_factories_registered_by_name(self):
        for name, factory in CONSTRAINT_FACTORIES.items():
            args = {"max_length": (5,), "matches": ("x",), "one_of": ("a",)}.get(name, ())
            assert factory(*args).name == name


class TestField:
    """Tests for Field."""

    def test_empty_name_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            Field("")

    def test_no_constraints_never_fails(self):
        assert Field("slug").errors_for(None) == []

    def test_errors_in_declaration_order(self):
        """Failed constraint names are reported in declaration order."""
        f = Field("code").add_constraint("digits", str.isdigit).max_length(2).cant_be_blank()
        assert f.errors_for("abcd") == ["digits", "max_length"]

    def test_all_pass_returns_empty(self):
        f = Field("name").cant_be_blank().max_length(10)
        assert f.errors_for("Myles") == []

    def test_blank_value(self):
        f = Field("name").cant_be_blank()
        assert f.errors_for(None) == ["cant_be_blank"]

    def test_constructor_constraints(self):
        f = Field("status", constraints=(one_of("open", "closed"),))
        assert [c.name for c in f.constraints] == ["one_of"]
        assert f.errors_for("ajar") == ["one_of"]

    def test_chaining_returns_field(self):
        f = Field("slug")
        assert f.cant_be_blank() is f
        assert f.matches(r"[a-z-]+") is f
        assert f.one_of("a-b", "c") is f
        assert len(f.constraints) == 3

    def test_custom_constraint(self):
        f = Field("phone")
        f.add_constraint("starts_with_zero", lambda v: str(v).startswith("0"))
        assert f.errors_for("0299999999") == []
        assert f.errors_for("299999999") == ["starts_with_zero"]

    def test_constraints_are_a_copy(self):
        f = Field("name")
        assert isinstance(f.constraints, tuple)
        assert isinstance(cant_be_blank(), Constraint)
