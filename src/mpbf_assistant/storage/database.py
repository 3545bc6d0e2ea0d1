"""Async SQLite client for the factory tables.

The host application owns the lifecycle: construct a ``FactoryDatabase``,
``await initialize()`` before handing it to the orchestrator and ``await close()``
on shutdown. Every statement goes through bound ``?`` parameters.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, NamedTuple, Sequence

import aiosqlite

from mpbf_assistant.storage.migrations import SAMPLE_COLUMNS, TABLES

logger = logging.getLogger(__name__)


class WriteResult(NamedTuple):
    lastrowid: int | None
    rowcount: int


class FactoryDatabase:
    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = str(db_path)
        self._db: aiosqlite.Connection | None = None
        # One connection per instance: commit and rollback cover every pending write on it.
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        for table_sql in TABLES:
            await self._db.execute(table_sql)
        await self._db.commit()
        logger.debug("Factory database ready at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _get_db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("FactoryDatabase not initialized — call initialize() first")
        return self._db

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> WriteResult:
        db = self._get_db()
        async with self._write_lock:
            try:
                cursor = await db.execute(sql, tuple(params))
                await db.commit()
            except aiosqlite.Error:
                await db.rollback()
                raise
            result = WriteResult(lastrowid=cursor.lastrowid, rowcount=cursor.rowcount)
            await cursor.close()
        return result

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        db = self._get_db()
        cursor = await db.execute(sql, tuple(params))
        rows = await cursor.fetchall()
        await cursor.close()
        return [dict(r) for r in rows]

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        db = self._get_db()
        cursor = await db.execute(sql, tuple(params))
        row = await cursor.fetchone()
        await cursor.close()
        return dict(row) if row is not None else None

    async def scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        db = self._get_db()
        cursor = await db.execute(sql, tuple(params))
        row = await cursor.fetchone()
        await cursor.close()
        return row[0] if row is not None else None

    async def sample_values(self, table: str, column: str, limit: int = 3) -> list[str]:
        """First few values of a whitelisted column, used as examples."""
        if column not in SAMPLE_COLUMNS.get(table, frozenset()):
            raise ValueError(f"Column {table}.{column} is not sampleable")
        rows = await self.fetch_all(
            f"SELECT {column} FROM {table} WHERE {column} IS NOT NULL "
            f"ORDER BY rowid LIMIT ?",
            (limit,),
        )
        return [str(r[column]) for r in rows]
