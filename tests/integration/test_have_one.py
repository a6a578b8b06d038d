"""
Integration tests for have-one associations.

Tests cover:
- Child schema declaration and index tables
- Path and uid derivation across nesting
- Assigning, saving and finding child documents
"""

import pytest

from schemadocs import HAVE_ONE, SchemaError, StoreSettings, create_store


@pytest.fixture
def store():
    store = create_store(":memory:", StoreSettings())
    yield store
    store.close()


@pytest.fixture
def restaurants(store):
    def define(s):
        s.field("name")
        s.have_one("address", lambda a: a.field("street"))

    return store.define_schema("restaurants", define)


class TestDeclaration:
    """Tests for declaring have-one children."""

    def test_child_is_registered_as_have_one(self, restaurants):
        address = restaurants.association("address")

        assert address is not None
        assert address.parent is restaurants
        assert restaurants.associations == {address: HAVE_ONE}
        assert address.parent_association == HAVE_ONE
        assert list(restaurants.children()) == [address]

    def test_child_inherits_format(self, restaurants):
        assert restaurants.association("address").format == "yaml"

    def test_child_format_override(self, restaurants):
        hours = restaurants.have_one("hours", format="json")
        assert hours.uid("tdfjtscvm3v1") == "/restaurants/tdfjtscvm3v1/hours.json"

    def test_child_has_its_own_index_table(self, store, restaurants):
        assert store.backend.has_table("restaurants__address")
        assert restaurants.association("address").index_table.count() == 0

    def test_child_is_not_a_top_level_schema(self, store, restaurants):
        assert store.schema("address") is None
        assert list(store.schemas()) == [restaurants]

    def test_name_clash_with_field_raises(self, restaurants):
        with pytest.raises(SchemaError):
            restaurants.have_one("name")
        with pytest.raises(SchemaError):
            restaurants.field("address")


class TestPaths:
    """Tests for child path derivation."""

    def test_child_uid_nests_under_parent(self, restaurants):
        r = restaurants.build(id="tdfjtscvm3v1")
        r.set({"address": {"street": "Main St"}})

        address = r.get("address")

        assert address.id == "tdfjtscvm3v1"
        assert address.uid == "/restaurants/tdfjtscvm3v1/address.yaml"

    def test_deep_nesting(self, restaurants):
        geo = restaurants.association("address").have_one("geo", lambda g: g.field("lat"))

        assert geo.path("tdfjtscvm3v1") == "/restaurants/tdfjtscvm3v1/address/geo"
        assert geo.uid("tdfjtscvm3v1") == "/restaurants/tdfjtscvm3v1/address/geo.yaml"

    def test_top_level_schema_with_same_name_does_not_collide(self, store, restaurants):
        addresses = store.define_schema("address", lambda s: s.field("street"))
        assert addresses.uid("tdfjtscvm3v1") != restaurants.association("address").uid(
            "tdfjtscvm3v1"
        )

    @pytest.mark.parametrize("name", ["restaurants__address", "_address", "address_"])
    def test_names_that_could_alias_a_child_index_table_rejected(self, store, restaurants, name):
        """Index tables of children are named parent__child."""
        with pytest.raises(SchemaError, match="Invalid schema name"):
            store.define_schema(name)
        assert restaurants.association("address").index_table.name == "restaurants__address"


class TestChildDocuments:
    """Tests for child documents."""

    def test_unset_child_is_none(self, restaurants):
        assert restaurants.build().get("address") is None

    def test_child_fields_are_not_in_parent_dump(self, restaurants):
        r = restaurants.build({"name": "Ambalas", "address": {"street": "Main St"}})
        assert r.dump() == "name: Ambalas"
        assert r.get("address").dump() == "street: Main St"

    def test_save_also_saves_child(self, store, restaurants):
        r = restaurants.build({"name": "Ambalas"}, id="tdfjtscvm3v1")
        r.set({"address": {"street": "Main St"}})

        r.save()

        row = store.documents_table.first(uid="/restaurants/tdfjtscvm3v1/address.yaml")
        assert row["data"] == "street: Main St"
        assert store.documents_table.count() == 2

    def test_found_parent_finds_child(self, restaurants):
        r = restaurants.build({"name": "Ambalas"}, id="tdfjtscvm3v1")
        r.set({"address": {"street": "Main St"}})
        r.save()

        found = restaurants.find("tdfjtscvm3v1")
        address = found.get("address")

        assert address is not None
        assert "street" not in address.fields
        assert address.get("street") == "Main St"
        assert found.get("address") is address

    def test_child_can_be_found_directly(self, restaurants):
        restaurants.build(
            {"name": "Ambalas", "address": {"street": "Main St"}}, id="tdfjtscvm3v1"
        ).save()

        address = restaurants.association("address").find("tdfjtscvm3v1")

        assert address.get("street") == "Main St"

    def test_updating_child_through_parent(self, store, restaurants):
        r = restaurants.build({"address": {"street": "Main St"}}, id="tdfjtscvm3v1").save()

        r.get("address")["street"] = "High St"
        r.save()

        found = restaurants.find("tdfjtscvm3v1")
        assert found.get("address").get("street") == "High St"
        assert store.documents_table.count() == 2

    def test_assign_child_document(self, restaurants):
        address_schema = restaurants.association("address")
        r = restaurants.build(id="tdfjtscvm3v1")
        address = address_schema.build({"street": "Main St"}, id="tdfjtscvm3v1")

        r["address"] = address

        assert r.get("address") is address

    def test_assign_child_with_other_id_raises(self, restaurants):
        address_schema = restaurants.association("address")
        r = restaurants.build(id="tdfjtscvm3v1")

        with pytest.raises(ValueError):
            r["address"] = address_schema.build({"street": "Main St"}, id="bcdfghjklmnp")

    def test_clear_child(self, restaurants):
        r = restaurants.build({"address": {"street": "Main St"}})
        r["address"] = None
        assert r.get("address") is None
        assert list(r.children()) == []
