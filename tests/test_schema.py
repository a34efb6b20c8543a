"""Tests for the schema registry."""

import pytest

from srcweb_store import (
    DB_CONFIG,
    DB_NAME,
    DB_VERSION,
    SCHEMA,
    STORES,
    SchemaRegistry,
    get_all_store_names,
    get_store_definition,
    validate_schema,
)
from srcweb_store.exceptions import SchemaDeclarationError
from srcweb_store.schema import format_declaration
from srcweb_store.types import IndexDefinition, StoreDefinition, key_path_name


class TestDeclaredSchema:
    """Tests for the built-in store declarations."""

    def test_database_identity(self):
        """Test the database name and version."""
        assert DB_CONFIG.name == DB_NAME == "kkrw.srcweb-engine"
        assert DB_CONFIG.version == DB_VERSION == 1

    def test_store_names_in_order(self):
        """Test that every store is declared, in order."""
        assert get_all_store_names() == [
            "saveData",
            "scenarioCache",
            "assetCache",
            "userSettings",
            "downloadProgress",
        ]

    def test_builtin_schema_is_valid(self):
        """Test that the declared stores pass validation."""
        assert validate_schema() is True

    def test_save_data_definition(self):
        """Test the save data store's keys."""
        store = get_store_definition(STORES.SAVE_DATA)

        assert store is not None
        assert store.primary_key == ("scenarioId", "slotId")
        assert [index.name for index in store.indexes] == ["scenarioId", "timestamp"]

    def test_download_progress_compound_index(self):
        """Test the compound index on download progress."""
        store = get_store_definition(STORES.DOWNLOAD_PROGRESS)

        assert store is not None
        compound = store.indexes[-1]
        assert compound.name == "[scenarioId+type]"
        assert compound.key_path == ("scenarioId", "type")

    def test_user_settings_has_no_indexes(self):
        """Test that user settings only has a primary key."""
        store = get_store_definition(STORES.USER_SETTINGS)

        assert store is not None
        assert store.primary_key == "key"
        assert store.indexes == ()

    def test_unknown_store(self):
        """Test that unknown stores are reported as absent."""
        assert get_store_definition("unknown") is None


class TestSchemaRegistry:
    """Tests for SchemaRegistry validation and conversion."""

    def test_duplicate_store_name(self):
        """Test that a repeated store name fails validation."""
        registry = SchemaRegistry(
            [
                StoreDefinition(name="a", primary_key="id"),
                StoreDefinition(name="a", primary_key="other"),
            ]
        )

        assert registry.validate_schema() is False
        with pytest.raises(SchemaDeclarationError, match="Duplicate store name: a") as exc_info:
            registry.check()
        assert exc_info.value.store == "a"
        assert exc_info.value.index is None

    def test_duplicate_index_name(self):
        """Test that a repeated index name within a store fails validation."""
        registry = SchemaRegistry(
            [
                StoreDefinition(
                    name="a",
                    primary_key="id",
                    indexes=(
                        IndexDefinition(name="x", key_path="x"),
                        IndexDefinition(name="x", key_path="y"),
                    ),
                )
            ]
        )

        assert registry.validate_schema() is False
        with pytest.raises(SchemaDeclarationError) as exc_info:
            registry.check()
        assert exc_info.value.store == "a"
        assert exc_info.value.index == "x"

    def test_same_index_name_in_different_stores(self):
        """Test that index names only need to be unique per store."""
        registry = SchemaRegistry(
            [
                StoreDefinition(
                    name="a", primary_key="id", indexes=(IndexDefinition(name="x", key_path="x"),)
                ),
                StoreDefinition(
                    name="b", primary_key="id", indexes=(IndexDefinition(name="x", key_path="x"),)
                ),
            ]
        )

        assert registry.validate_schema() is True
        registry.check()

    def test_iteration_and_length(self):
        """Test that the registry iterates its stores in order."""
        registry = SchemaRegistry()

        assert len(registry) == 5
        assert tuple(registry) == SCHEMA

    def test_to_declarations(self):
        """Test rendering stores to declaration strings."""
        declarations = SchemaRegistry().to_declarations()

        assert declarations["saveData"] == "[scenarioId+slotId], scenarioId, timestamp"
        assert declarations["userSettings"] == "key"
        assert declarations["downloadProgress"] == (
            "[scenarioId+url], scenarioId, status, [scenarioId+type]"
        )

    def test_declarations_round_trip(self):
        """Test that parsing rendered declarations rebuilds the schema."""
        registry = SchemaRegistry.parse(SchemaRegistry().to_declarations())

        assert registry.stores == SCHEMA

    def test_format_unique_index(self):
        """Test that unique indexes render with an ampersand."""
        store = StoreDefinition(
            name="accounts",
            primary_key="id",
            indexes=(IndexDefinition(name="email", key_path="email", unique=True),),
        )

        assert format_declaration(store) == "id, &email"

    def test_key_path_name(self):
        """Test naming of single and compound key paths."""
        assert key_path_name("scenarioId") == "scenarioId"
        assert key_path_name(("scenarioId", "url")) == "[scenarioId+url]"
