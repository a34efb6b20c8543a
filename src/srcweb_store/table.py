"""Table handles and indexed queries over one object store."""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import aiosqlite
from pydantic import BaseModel

from srcweb_store.codec import decode_key, decode_record, encode_key, encode_record, is_valid_key
from srcweb_store.exceptions import ConstraintError
from srcweb_store.types import (
    IndexDefinition,
    StoreDefinition,
    is_compound,
    key_path_fields,
    key_path_name,
)

if TYPE_CHECKING:
    from srcweb_store.storage import Database

_MISSING = object()


def quote_identifier(name: str) -> str:
    """Quote an SQLite identifier."""
    return '"' + name.replace('"', '""') + '"'


def index_column(index: IndexDefinition) -> str:
    """Return the quoted column name holding an index's key."""
    return quote_identifier(f"ix:{index.name}")


def _resolve_field(record: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted field path; return _MISSING if any step is absent."""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _as_mapping(record: Any) -> dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True, exclude_unset=True)
    if isinstance(record, Mapping):
        return dict(record)
    raise TypeError(f"Records must be mappings or pydantic models, got {type(record).__name__}")


def _normalize_key(key: Any) -> Any:
    if isinstance(key, list):
        return tuple(key)
    return key


def create_table_statements(store: StoreDefinition) -> list[str]:
    """Return the DDL creating a store's table and its indexes."""
    table = quote_identifier(store.name)
    columns = ["pk TEXT PRIMARY KEY NOT NULL", "body TEXT NOT NULL"]
    columns.extend(index_column(index) for index in store.indexes)
    statements = [f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(columns)})"]
    for index in store.indexes:
        sql_index = quote_identifier(f"{store.name}:{index.name}")
        if index.unique:
            statements.append(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {sql_index} ON {table} ({index_column(index)})"
            )
        else:
            statements.append(
                f"CREATE INDEX IF NOT EXISTS {sql_index} ON {table} ({index_column(index)}, pk)"
            )
    return statements


class Table:
    """Handle over one object store.

    All operations are coroutines and run through the owning
    :class:`~srcweb_store.storage.Database`, which serializes them and joins
    an enclosing :meth:`~srcweb_store.storage.Database.transaction` if one is
    active.
    """

    def __init__(self, database: Database, definition: StoreDefinition) -> None:
        self._db = database
        self.definition = definition
        self._sql_name = quote_identifier(definition.name)

    @property
    def name(self) -> str:
        return self.definition.name

    def __repr__(self) -> str:
        return f"Table({self.name!r})"

    # -- key and row helpers -------------------------------------------------

    def primary_key_of(self, record: Mapping[str, Any]) -> Any:
        """Extract the primary key from a record.

        Compound keys are returned as tuples.

        Raises:
            ConstraintError: If a key field is missing or not a valid key.
        """
        key_path = self.definition.primary_key
        parts = []
        for path in key_path_fields(key_path):
            value = _resolve_field(record, path)
            if value is _MISSING or not is_valid_key(value):
                raise ConstraintError(
                    f"Record for {self.name} has no valid value at key path '{path}'"
                )
            parts.append(value)
        return tuple(parts) if is_compound(key_path) else parts[0]

    def _index_value(self, record: Mapping[str, Any], index: IndexDefinition) -> Any:
        # Records without a valid key at the index path are left out of the index
        parts = []
        for path in key_path_fields(index.key_path):
            value = _resolve_field(record, path)
            if value is _MISSING or not is_valid_key(value):
                return None
            parts.append(value)
        if is_compound(index.key_path):
            return encode_key(parts)
        return parts[0]

    def _row(self, record: Mapping[str, Any]) -> tuple[Any, list[Any]]:
        key = self.primary_key_of(record)
        values = [encode_key(key), encode_record(record)]
        values.extend(self._index_value(record, index) for index in self.definition.indexes)
        return key, values

    def _insert_sql(self, upsert: bool) -> str:
        columns = ["pk", "body"] + [index_column(i) for i in self.definition.indexes]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {self._sql_name} ({', '.join(columns)}) VALUES ({placeholders})"
        if upsert:
            assignments = ", ".join(f"{c} = excluded.{c}" for c in columns[1:])
            sql += f" ON CONFLICT(pk) DO UPDATE SET {assignments}"
        return sql

    async def _write_rows(
        self, conn: aiosqlite.Connection, rows: list[list[Any]], upsert: bool
    ) -> None:
        sql = self._insert_sql(upsert)
        for row in rows:
            try:
                await conn.execute(sql, row)
            except sqlite3.IntegrityError as exc:
                raise ConstraintError(
                    f"Write to {self.name} violates a key constraint for key {decode_key(row[0])!r}"
                ) from exc

    async def _fetch_all(self, sql: str, params: Iterable[Any] = ()) -> list[tuple[Any, ...]]:
        async def operation(conn: aiosqlite.Connection) -> list[tuple[Any, ...]]:
            async with conn.execute(sql, tuple(params)) as cursor:
                return list(await cursor.fetchall())

        return await self._db._run(self.name, operation, write=False)

    # -- CRUD ----------------------------------------------------------------

    async def get(self, key: Any) -> dict[str, Any] | None:
        """Return the record stored under ``key``, or None."""
        rows = await self._fetch_all(
            f"SELECT body FROM {self._sql_name} WHERE pk = ?",
            (encode_key(_normalize_key(key)),),
        )
        if not rows:
            return None
        return decode_record(rows[0][0])

    async def add(self, record: Any) -> Any:
        """Insert a new record and return its key.

        Raises:
            ConstraintError: If the key already exists; the stored row is
                left untouched.
        """
        return (await self.bulk_add([record]))[0]

    async def put(self, record: Any) -> Any:
        """Insert or replace a record and return its key."""
        return (await self.bulk_put([record]))[0]

    async def bulk_add(self, records: Iterable[Any]) -> list[Any]:
        """Insert several records atomically; any existing key fails them all."""
        return await self._bulk_write(records, upsert=False)

    async def bulk_put(self, records: Iterable[Any]) -> list[Any]:
        """Upsert several records atomically."""
        return await self._bulk_write(records, upsert=True)

    async def _bulk_write(self, records: Iterable[Any], upsert: bool) -> list[Any]:
        keys = []
        rows = []
        for record in records:
            key, row = self._row(_as_mapping(record))
            keys.append(key)
            rows.append(row)

        async def operation(conn: aiosqlite.Connection) -> None:
            await self._write_rows(conn, rows, upsert)

        await self._db._run(self.name, operation, write=True)
        return keys

    async def update(self, key: Any, changes: Mapping[str, Any]) -> bool:
        """Merge ``changes`` into the stored record.

        Returns:
            True if a record was updated, False if ``key`` was not found.

        Raises:
            ConstraintError: If the changes would alter the primary key.
        """
        encoded = encode_key(_normalize_key(key))

        async def operation(conn: aiosqlite.Connection) -> bool:
            async with conn.execute(
                f"SELECT body FROM {self._sql_name} WHERE pk = ?", (encoded,)
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return False
            record = decode_record(row[0])
            record.update(changes)
            new_key, values = self._row(record)
            if encode_key(new_key) != encoded:
                raise ConstraintError(f"Cannot change the primary key of a {self.name} record")
            await self._write_rows(conn, [values], upsert=True)
            return True

        return await self._db._run(self.name, operation, write=True)

    async def delete(self, key: Any) -> None:
        """Remove the record stored under ``key``; absent keys are ignored."""
        encoded = encode_key(_normalize_key(key))

        async def operation(conn: aiosqlite.Connection) -> None:
            await conn.execute(f"DELETE FROM {self._sql_name} WHERE pk = ?", (encoded,))

        await self._db._run(self.name, operation, write=True)

    async def clear(self) -> None:
        """Remove every record from the table."""

        async def operation(conn: aiosqlite.Connection) -> None:
            await conn.execute(f"DELETE FROM {self._sql_name}")

        await self._db._run(self.name, operation, write=True)

    async def count(self) -> int:
        rows = await self._fetch_all(f"SELECT COUNT(*) FROM {self._sql_name}")
        return rows[0][0]

    async def to_list(self) -> list[dict[str, Any]]:
        """Return every record, ordered by primary key."""
        rows = await self._fetch_all(f"SELECT body FROM {self._sql_name} ORDER BY pk")
        return [decode_record(row[0]) for row in rows]

    # -- queries -------------------------------------------------------------

    def where(self, index_name: str) -> WhereClause:
        """Start a query on a secondary index or on the primary key path.

        Raises:
            KeyError: If the store has no index with that name.
        """
        for index in self.definition.indexes:
            if index.name == index_name:
                return WhereClause(self, index_column(index), index.key_path, is_primary=False)
        if index_name == key_path_name(self.definition.primary_key):
            return WhereClause(self, "pk", self.definition.primary_key, is_primary=True)
        raise KeyError(f"Index '{index_name}' not found in store '{self.name}'")


class WhereClause:
    """Pending condition on one index; produces a :class:`Collection`."""

    def __init__(self, table: Table, column: str, key_path: Any, is_primary: bool) -> None:
        self._table = table
        self._column = column
        self._key_path = key_path
        self._is_primary = is_primary

    def _encode(self, value: Any) -> Any:
        value = _normalize_key(value)
        if self._is_primary or is_compound(self._key_path):
            return encode_key(value)
        if not is_valid_key(value):
            raise TypeError(f"Invalid index key: {value!r}")
        return value

    def equals(self, value: Any) -> Collection:
        """Match records whose index key equals ``value``."""
        return Collection(self._table, self._column, f"{self._column} = ?", [self._encode(value)])

    def any_of(self, values: Iterable[Any]) -> Collection:
        """Match records whose index key is any of ``values``."""
        encoded = [self._encode(v) for v in values]
        if not encoded:
            return Collection(self._table, self._column, "0", [])
        placeholders = ", ".join("?" for _ in encoded)
        return Collection(self._table, self._column, f"{self._column} IN ({placeholders})", encoded)

    def between(
        self,
        lower: Any,
        upper: Any,
        include_lower: bool = True,
        include_upper: bool = False,
    ) -> Collection:
        """Match records whose index key lies between ``lower`` and ``upper``.

        Only single-field secondary indexes support ranges.
        """
        if self._is_primary or is_compound(self._key_path):
            raise ValueError("Range queries need a single-field secondary index")
        low_op = ">=" if include_lower else ">"
        high_op = "<=" if include_upper else "<"
        condition = f"{self._column} {low_op} ? AND {self._column} {high_op} ?"
        return Collection(
            self._table, self._column, condition, [self._encode(lower), self._encode(upper)]
        )

    def above(self, value: Any) -> Collection:
        return Collection(self._table, self._column, f"{self._column} > ?", [self._encode(value)])

    def below(self, value: Any) -> Collection:
        return Collection(self._table, self._column, f"{self._column} < ?", [self._encode(value)])


class Collection:
    """Finite, restartable sequence of records matching an index condition.

    Every iteration (or materialization) re-runs the query, so the same
    Collection can be consumed any number of times. Records come back
    ordered by index key, then primary key.
    """

    def __init__(self, table: Table, column: str, condition: str, params: list[Any]) -> None:
        self._table = table
        self._column = column
        self._condition = condition
        self._params = params

    def _select(self, what: str) -> str:
        return (
            f"SELECT {what} FROM {self._table._sql_name} "
            f"WHERE {self._condition} ORDER BY {self._column}, pk"
        )

    async def to_list(self) -> list[dict[str, Any]]:
        rows = await self._table._fetch_all(self._select("body"), self._params)
        return [decode_record(row[0]) for row in rows]

    async def keys(self) -> list[Any]:
        """Return the primary keys of the matching records."""
        rows = await self._table._fetch_all(self._select("pk"), self._params)
        return [decode_key(row[0]) for row in rows]

    async def first(self) -> dict[str, Any] | None:
        rows = await self._table._fetch_all(self._select("body") + " LIMIT 1", self._params)
        return decode_record(rows[0][0]) if rows else None

    async def count(self) -> int:
        rows = await self._table._fetch_all(
            f"SELECT COUNT(*) FROM {self._table._sql_name} WHERE {self._condition}",
            self._params,
        )
        return rows[0][0]

    async def delete(self) -> int:
        """Delete the matching records and return how many were removed."""
        sql = f"DELETE FROM {self._table._sql_name} WHERE {self._condition}"

        async def operation(conn: aiosqlite.Connection) -> int:
            async with conn.execute(sql, tuple(self._params)) as cursor:
                return cursor.rowcount

        return await self._table._db._run(self._table.name, operation, write=True)

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        for record in await self.to_list():
            yield record
