"""
Unit tests for document id generation.
"""

from schemadocs.ids import ID_ALPHABET, ID_LENGTH, random_id


class TestRandomId:
    """Tests for random_id."""

    def test_alphabet_is_digits_and_consonants(self):
        """31 symbols, no vowels."""
        assert len(ID_ALPHABET) == 31
        assert len(set(ID_ALPHABET)) == 31
        assert not set("aeiou") & set(ID_ALPHABET)
        assert set("0123456789") <= set(ID_ALPHABET)

    def test_default_length(self):
        assert ID_LENGTH == 12
        assert len(random_id()) == 12

    def test_custom_length(self):
        assert len(random_id(5)) == 5

    def test_shape_of_many_ids(self):
        """Generated ids never contain vowels or uppercase."""
        for _ in range(500):
            value = random_id()
            assert len(value) == 12
            assert all(c in ID_ALPHABET for c in value)

    def test_ids_differ(self):
        ids = {random_id() for _ in range(200)}
        assert len(ids) == 200
