"""srcweb_store - Local persistence for the SRC web engine client."""

from srcweb_store.exceptions import (
    ConstraintError,
    DatabaseBlockedError,
    DatabaseClosedError,
    OpenError,
    SchemaDeclarationError,
    StoreError,
    TransactionError,
    ValidationFailedError,
)
from srcweb_store.logging_config import setup_logging
from srcweb_store.records import (
    AssetCacheRecord,
    DownloadProgressRecord,
    SaveDataRecord,
    ScenarioCacheRecord,
    UserSettingsRecord,
)
from srcweb_store.schema import (
    DB_CONFIG,
    SCHEMA,
    SchemaRegistry,
    get_all_store_names,
    get_store_definition,
    validate_schema,
)
from srcweb_store.storage import Database, DatabaseStats, TableStat
from srcweb_store.table import Collection, Table, WhereClause
from srcweb_store.types import (
    DB_NAME,
    DB_VERSION,
    STORES,
    DatabaseConfig,
    IndexDefinition,
    StoreDefinition,
)

__all__ = [
    # Main API
    "Database",
    "DatabaseStats",
    "TableStat",
    "Table",
    "WhereClause",
    "Collection",
    # Schema
    "DB_CONFIG",
    "DB_NAME",
    "DB_VERSION",
    "SCHEMA",
    "STORES",
    "DatabaseConfig",
    "IndexDefinition",
    "StoreDefinition",
    "SchemaRegistry",
    "get_all_store_names",
    "get_store_definition",
    "validate_schema",
    # Records
    "AssetCacheRecord",
    "DownloadProgressRecord",
    "SaveDataRecord",
    "ScenarioCacheRecord",
    "UserSettingsRecord",
    # Errors
    "StoreError",
    "SchemaDeclarationError",
    "OpenError",
    "DatabaseClosedError",
    "DatabaseBlockedError",
    "ConstraintError",
    "TransactionError",
    "ValidationFailedError",
    "setup_logging",
]

__version__ = "0.1.0"
