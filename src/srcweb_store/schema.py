"""Schema registry: the declared object stores and their indexes."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from srcweb_store.exceptions import SchemaDeclarationError
from srcweb_store.parsing import StoreParser
from srcweb_store.types import (
    DB_NAME,
    DB_VERSION,
    STORES,
    DatabaseConfig,
    IndexDefinition,
    StoreDefinition,
    key_path_name,
)

SCHEMA: tuple[StoreDefinition, ...] = (
    # Save slots, keyed per scenario
    StoreDefinition(
        name=STORES.SAVE_DATA,
        primary_key=("scenarioId", "slotId"),
        indexes=(
            IndexDefinition(name="scenarioId", key_path="scenarioId"),
            IndexDefinition(name="timestamp", key_path="timestamp"),
        ),
    ),
    # Scenario definitions fetched from the platform
    StoreDefinition(
        name=STORES.SCENARIO_CACHE,
        primary_key="scenarioId",
        indexes=(IndexDefinition(name="fetchedAt", key_path="fetchedAt"),),
    ),
    # Binary assets (images, audio, data files)
    StoreDefinition(
        name=STORES.ASSET_CACHE,
        primary_key=("scenarioId", "url"),
        indexes=(
            IndexDefinition(name="scenarioId", key_path="scenarioId"),
            IndexDefinition(name="expiresAt", key_path="expiresAt"),
        ),
    ),
    StoreDefinition(name=STORES.USER_SETTINGS, primary_key="key"),
    StoreDefinition(
        name=STORES.DOWNLOAD_PROGRESS,
        primary_key=("scenarioId", "url"),
        indexes=(
            IndexDefinition(name="scenarioId", key_path="scenarioId"),
            IndexDefinition(name="status", key_path="status"),
            IndexDefinition(name="[scenarioId+type]", key_path=("scenarioId", "type")),
        ),
    ),
)

DB_CONFIG = DatabaseConfig(name=DB_NAME, version=DB_VERSION, stores=SCHEMA)


class SchemaRegistry:
    """Ordered, read-only lookup over a set of store definitions."""

    def __init__(self, stores: Iterable[StoreDefinition] = SCHEMA) -> None:
        self._stores: tuple[StoreDefinition, ...] = tuple(stores)

    @classmethod
    def parse(cls, declarations: dict[str, str]) -> SchemaRegistry:
        """Build a registry from compact store declarations.

        Args:
            declarations: Store name mapped to a declaration string such as
                ``"[scenarioId+slotId], scenarioId, timestamp"``.

        Returns:
            A new SchemaRegistry with stores in mapping order.

        Raises:
            SyntaxError: If a declaration cannot be parsed.
        """
        parser = StoreParser()
        return cls(parser.parse_all(declarations))

    @property
    def stores(self) -> tuple[StoreDefinition, ...]:
        return self._stores

    def _first_duplicate(self) -> SchemaDeclarationError | None:
        store_names: set[str] = set()
        for store in self._stores:
            if store.name in store_names:
                return SchemaDeclarationError(
                    f"Duplicate store name: {store.name}", store=store.name
                )
            store_names.add(store.name)

            index_names: set[str] = set()
            for index in store.indexes:
                if index.name in index_names:
                    return SchemaDeclarationError(
                        f"Duplicate index name in store {store.name}: {index.name}",
                        store=store.name,
                        index=index.name,
                    )
                index_names.add(index.name)
        return None

    def validate_schema(self) -> bool:
        """Check that no store name and no index name within a store repeats."""
        error = self._first_duplicate()
        if error is not None:
            logger.error(str(error))
            return False
        return True

    def check(self) -> None:
        """Like :meth:`validate_schema` but raise SchemaDeclarationError."""
        error = self._first_duplicate()
        if error is not None:
            raise error

    def get_store_definition(self, name: str) -> StoreDefinition | None:
        for store in self._stores:
            if store.name == name:
                return store
        return None

    def get_all_store_names(self) -> list[str]:
        return [store.name for store in self._stores]

    def to_declarations(self) -> dict[str, str]:
        """Render every store back to its compact declaration string."""
        return {store.name: format_declaration(store) for store in self._stores}

    def __iter__(self):
        return iter(self._stores)

    def __len__(self) -> int:
        return len(self._stores)


def format_declaration(store: StoreDefinition) -> str:
    """Render one store as ``"<primary key>, <index>, ..."``."""
    parts = [key_path_name(store.primary_key)]
    for index in store.indexes:
        prefix = "&" if index.unique else ""
        parts.append(prefix + key_path_name(index.key_path))
    return ", ".join(parts)


_default_registry = SchemaRegistry(SCHEMA)


def validate_schema() -> bool:
    """Validate the built-in store declarations."""
    return _default_registry.validate_schema()


def get_store_definition(store_name: str) -> StoreDefinition | None:
    """Look up a built-in store declaration by name."""
    return _default_registry.get_store_definition(store_name)


def get_all_store_names() -> list[str]:
    """Return the names of all built-in stores, in declaration order."""
    return _default_registry.get_all_store_names()
