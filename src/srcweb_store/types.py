"""Store and index descriptors for the srcweb_store schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

# A key path is a single field name or an ordered tuple of field names
# (compound key, compared as a tuple).
KeyPath = Union[str, tuple[str, ...]]

# IndexedDB-style database identity
DB_NAME = "kkrw.srcweb-engine"

# Increment when the persisted layout changes
DB_VERSION = 1


class STORES:
    """Object store name constants."""

    SAVE_DATA = "saveData"
    SCENARIO_CACHE = "scenarioCache"
    ASSET_CACHE = "assetCache"
    USER_SETTINGS = "userSettings"
    DOWNLOAD_PROGRESS = "downloadProgress"


@dataclass(frozen=True)
class IndexDefinition:
    """A secondary index over one field or a compound of fields."""

    name: str
    key_path: KeyPath
    unique: bool = False


@dataclass(frozen=True)
class StoreDefinition:
    """One object store: its name, primary key path and secondary indexes."""

    name: str
    primary_key: KeyPath
    indexes: tuple[IndexDefinition, ...] = ()


@dataclass(frozen=True)
class DatabaseConfig:
    """Database identity plus the ordered store declarations."""

    name: str
    version: int
    stores: tuple[StoreDefinition, ...] = field(default_factory=tuple)


def key_path_fields(key_path: KeyPath) -> tuple[str, ...]:
    """Return the field names making up a key path, in order."""
    if isinstance(key_path, str):
        return (key_path,)
    return tuple(key_path)


def is_compound(key_path: KeyPath) -> bool:
    """Return whether a key path spans more than one field."""
    return not isinstance(key_path, str)


def key_path_name(key_path: KeyPath) -> str:
    """Return the conventional index name for a key path.

    Single paths are named after the field; compound paths use the
    ``[a+b]`` form.
    """
    if isinstance(key_path, str):
        return key_path
    return "[" + "+".join(key_path) + "]"
