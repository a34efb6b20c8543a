"""Versioned multi-table database built on SQLite."""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, TypeVar

import aiosqlite
from loguru import logger

from srcweb_store.exceptions import (
    DatabaseBlockedError,
    DatabaseClosedError,
    OpenError,
    SchemaDeclarationError,
    TransactionError,
)
from srcweb_store.schema import DB_CONFIG, SchemaRegistry
from srcweb_store.table import Table, create_table_statements, quote_identifier
from srcweb_store.types import STORES, DatabaseConfig

T = TypeVar("T")

# Upgrade hook run for one version step, after the declared stores exist
UpgradeStep = Callable[[aiosqlite.Connection], Awaitable[None]]

STORES_TABLE = "__stores__"
FILE_SUFFIX = ".sqlite3"
_SIDE_FILES = ("-wal", "-shm", "-journal")


@dataclass
class _Transaction:
    database: Database
    scope: frozenset[str]


_active_transaction: ContextVar[_Transaction | None] = ContextVar(
    "srcweb_store_transaction", default=None
)


@dataclass(frozen=True)
class TableStat:
    name: str
    count: int


@dataclass(frozen=True)
class DatabaseStats:
    """Record counts per table, read in a single transaction."""

    table_stats: tuple[TableStat, ...] = ()

    @property
    def total_records(self) -> int:
        return sum(stat.count for stat in self.table_stats)


class Database:
    """One versioned embedded database holding the declared object stores.

    The database lives at ``<data_dir>/<name>.sqlite3``. Construct one
    instance per database and pass it to the code that needs it; the
    connection is created by :meth:`open` and reused until :meth:`close`.
    """

    # Open connection count per database file, shared by all instances
    _open_handles: ClassVar[dict[Path, int]] = {}

    def __init__(
        self,
        data_dir: Path | str,
        config: DatabaseConfig = DB_CONFIG,
        upgrades: Mapping[int, UpgradeStep] | None = None,
    ) -> None:
        """Initialize a closed database handle.

        Args:
            data_dir: Directory holding the database file.
            config: Database name, version and store declarations.
            upgrades: Optional extra work per target version, run after the
                declared stores have been created for that step.
        """
        if not config.name or "/" in config.name or "\\" in config.name:
            raise ValueError(f"Invalid database name: {config.name!r}")
        if config.version < 1:
            raise ValueError(f"Database version must be >= 1, got {config.version}")

        self.config = config
        self.data_dir = Path(data_dir)
        self.registry = SchemaRegistry(config.stores)
        self._upgrades = dict(upgrades or {})
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._open_lock = asyncio.Lock()
        self._tables = {store.name: Table(self, store) for store in self.registry}

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def version(self) -> int:
        return self.config.version

    @property
    def path(self) -> Path:
        return self.data_dir / f"{self.config.name}{FILE_SUFFIX}"

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # -- lifecycle -----------------------------------------------------------

    @staticmethod
    def exists(name: str, data_dir: Path | str) -> bool:
        """Report whether a database file exists, without opening it."""
        try:
            return (Path(data_dir) / f"{name}{FILE_SUFFIX}").is_file()
        except OSError as exc:
            logger.error(f"Failed to check database existence: {exc}")
            return False

    def check_exists(self) -> bool:
        return self.exists(self.config.name, self.data_dir)

    async def open(self) -> bool:
        """Open the database, upgrading it to the declared version if needed.

        Calling this on an open handle is a no-op.

        Returns:
            True on success. On failure the cause is logged, the handle stays
            closed and False is returned.
        """
        try:
            await self.open_or_raise()
        except (OpenError, SchemaDeclarationError) as exc:
            logger.error(f"Failed to initialize database: {exc}")
            return False
        return True

    async def open_or_raise(self) -> None:
        """Like :meth:`open` but raise OpenError or SchemaDeclarationError."""
        if self._conn is not None:
            return

        async with self._open_lock:
            # Another task may have finished opening while this one waited
            if self._conn is not None:
                return
            await self._connect()

    async def _connect(self) -> None:
        self.registry.check()

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(str(self.path), isolation_level=None)
        except (OSError, sqlite3.Error) as exc:
            raise OpenError(f"Cannot open database '{self.name}': {exc}") from exc

        try:
            await conn.execute("PRAGMA journal_mode = WAL")
            await conn.execute("PRAGMA synchronous = NORMAL")
            await conn.execute("PRAGMA busy_timeout = 1000")
            await self._upgrade(conn)
        except OpenError:
            await conn.close()
            raise
        except Exception as exc:
            await conn.close()
            raise OpenError(f"Cannot open database '{self.name}': {exc}") from exc
        except BaseException:
            await conn.close()
            raise

        self._conn = conn
        self._open_handles[self.path] = self._open_handles.get(self.path, 0) + 1
        logger.info(f'Database "{self.name}" version {self.version} opened successfully')
        logger.info(f"Available tables: {', '.join(self.registry.get_all_store_names())}")

    async def _upgrade(self, conn: aiosqlite.Connection) -> None:
        async with conn.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        current = row[0] if row else 0

        if current > self.version:
            raise OpenError(
                f"Database '{self.name}' is at version {current}, "
                f"newer than declared version {self.version}"
            )
        if current == self.version:
            await self._check_stored_declarations(conn)
            return

        await conn.execute("BEGIN IMMEDIATE")
        try:
            for target in range(current + 1, self.version + 1):
                logger.debug(f"Upgrading {self.name} to version {target}")
                await self._apply_declared_stores(conn)
                step = self._upgrades.get(target)
                if step is not None:
                    await step(conn)
            await conn.execute(f"PRAGMA user_version = {int(self.version)}")
        except BaseException:
            await conn.execute("ROLLBACK")
            raise
        await conn.execute("COMMIT")

    async def _apply_declared_stores(self, conn: aiosqlite.Connection) -> None:
        meta = quote_identifier(STORES_TABLE)
        await conn.execute(
            f"CREATE TABLE IF NOT EXISTS {meta} (name TEXT PRIMARY KEY NOT NULL, declaration TEXT NOT NULL)"
        )
        for store in self.registry:
            for statement in create_table_statements(store):
                await conn.execute(statement)
        for name, declaration in self.registry.to_declarations().items():
            await conn.execute(
                f"INSERT INTO {meta} (name, declaration) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET declaration = excluded.declaration",
                (name, declaration),
            )

    async def _read_declarations(self, conn: aiosqlite.Connection) -> dict[str, str]:
        meta = quote_identifier(STORES_TABLE)
        async with conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (STORES_TABLE,)
        ) as cursor:
            if await cursor.fetchone() is None:
                return {}
        async with conn.execute(f"SELECT name, declaration FROM {meta} ORDER BY rowid") as cursor:
            return {name: declaration for name, declaration in await cursor.fetchall()}

    async def _check_stored_declarations(self, conn: aiosqlite.Connection) -> None:
        stored = await self._read_declarations(conn)
        declared = self.registry.to_declarations()
        if stored != declared:
            logger.warning(
                f"Stored schema of '{self.name}' differs from the declared schema "
                f"at version {self.version}; bump the version to migrate"
            )

    async def stored_schema(self) -> SchemaRegistry:
        """Return the store layout recorded in the database file."""
        conn = self._require_connection()
        current = _active_transaction.get()
        if current is not None and current.database is self:
            declarations = await self._read_declarations(conn)
        else:
            async with self._lock:
                declarations = await self._read_declarations(conn)
        return SchemaRegistry.parse(declarations)

    async def close(self) -> None:
        """Release the connection; closing a closed handle does nothing."""
        conn = self._conn
        if conn is None:
            return
        self._conn = None
        remaining = self._open_handles.get(self.path, 1) - 1
        if remaining > 0:
            self._open_handles[self.path] = remaining
        else:
            self._open_handles.pop(self.path, None)
        await conn.close()
        logger.info(f'Database "{self.name}" closed')

    async def delete(self) -> bool:
        """Close this handle and remove the database files.

        Returns:
            True if the database is gone. False (with the cause logged) if
            another open handle still holds it or the files cannot be removed.
        """
        await self.close()
        try:
            if self._open_handles.get(self.path, 0) > 0:
                raise DatabaseBlockedError(
                    f"Database '{self.name}' is still open by another connection"
                )
            self.path.unlink(missing_ok=True)
            for suffix in _SIDE_FILES:
                Path(f"{self.path}{suffix}").unlink(missing_ok=True)
        except (DatabaseBlockedError, OSError) as exc:
            logger.error(f"Failed to delete database: {exc}")
            return False
        logger.info(f'Database "{self.name}" deleted successfully')
        return True

    async def __aenter__(self) -> Database:
        await self.open_or_raise()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -- tables --------------------------------------------------------------

    def table(self, name: str) -> Table:
        """Return the handle for a declared store.

        Raises:
            KeyError: If no store has that name.
        """
        table = self._tables.get(name)
        if table is None:
            raise KeyError(f"Store '{name}' not found")
        return table

    @property
    def tables(self) -> list[Table]:
        return list(self._tables.values())

    @property
    def save_data(self) -> Table:
        return self.table(STORES.SAVE_DATA)

    @property
    def scenario_cache(self) -> Table:
        return self.table(STORES.SCENARIO_CACHE)

    @property
    def asset_cache(self) -> Table:
        return self.table(STORES.ASSET_CACHE)

    @property
    def user_settings(self) -> Table:
        return self.table(STORES.USER_SETTINGS)

    @property
    def download_progress(self) -> Table:
        return self.table(STORES.DOWNLOAD_PROGRESS)

    # -- execution -----------------------------------------------------------

    def _require_connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise DatabaseClosedError(f"Database '{self.name}' is not open")
        return self._conn

    async def _run(
        self,
        table_name: str,
        operation: Callable[[aiosqlite.Connection], Awaitable[T]],
        write: bool,
    ) -> T:
        """Run one table operation atomically.

        Inside :meth:`transaction` the operation joins the enclosing
        transaction; otherwise it gets a transaction of its own.
        """
        conn = self._require_connection()
        current = _active_transaction.get()
        if current is not None and current.database is self:
            if table_name not in current.scope:
                raise TransactionError(f"Table {table_name} not part of transaction")
            return await operation(conn)

        async with self._lock:
            await conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                result = await operation(conn)
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")
            return result

    @asynccontextmanager
    async def transaction(self, *tables: Table | str) -> AsyncIterator[Database]:
        """Group table operations so they commit together or not at all.

        Args:
            tables: Tables (or store names) the transaction may touch;
                every declared table when omitted.

        Raises:
            TransactionError: If anything inside the block fails. The
                original exception is chained as the cause and no write made
                inside the block is kept.
        """
        conn = self._require_connection()
        names = [t.name if isinstance(t, Table) else t for t in tables]
        for name in names:
            self.table(name)
        scope = frozenset(names) if names else frozenset(self._tables)

        current = _active_transaction.get()
        if current is not None and current.database is self:
            # Nested blocks join the outer transaction
            if not scope <= current.scope:
                raise TransactionError("Nested transaction reaches outside its parent's tables")
            yield self
            return

        async with self._lock:
            await conn.execute("BEGIN IMMEDIATE")
            token = _active_transaction.set(_Transaction(self, scope))
            try:
                yield self
            except BaseException as exc:
                await conn.execute("ROLLBACK")
                if isinstance(exc, Exception) and not isinstance(exc, TransactionError):
                    raise TransactionError(f"Transaction aborted: {exc}") from exc
                raise
            else:
                try:
                    await conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    await conn.execute("ROLLBACK")
                    raise TransactionError(f"Transaction commit failed: {exc}") from exc
            finally:
                _active_transaction.reset(token)

    # -- maintenance ---------------------------------------------------------

    async def clear_all_tables(self) -> None:
        """Empty every table in one transaction; on failure nothing is cleared."""
        async with self.transaction():
            for table in self.tables:
                await table.clear()
                logger.debug(f"Cleared table: {table.name}")
        logger.info("All tables cleared")

    async def get_stats(self) -> DatabaseStats:
        """Count the records of every table under one read transaction."""
        conn = self._require_connection()

        async def count_all() -> list[TableStat]:
            stats = []
            for table in self.tables:
                async with conn.execute(f"SELECT COUNT(*) FROM {quote_identifier(table.name)}") as cursor:
                    row = await cursor.fetchone()
                stats.append(TableStat(name=table.name, count=row[0]))
            return stats

        current = _active_transaction.get()
        if current is not None and current.database is self:
            return DatabaseStats(table_stats=tuple(await count_all()))

        async with self._lock:
            await conn.execute("BEGIN")
            try:
                stats = await count_all()
            finally:
                await conn.execute("COMMIT")
        return DatabaseStats(table_stats=tuple(stats))
