"""Store contract and local implementations.

The sync service and the budget check only talk to a ``Store``. Any
backend that implements these four coroutines can be used; rows are
plain dicts keyed by column name.

InMemoryStore keeps rows in process memory (tests, dry runs).
JsonFileStore persists the same tables to one JSON file using an
atomic write (temp file + rename).
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from copy import deepcopy
from pathlib import Path
from typing import Any, Awaitable, Iterable, Protocol, TypeVar

from ..costs.usage import parse_timestamp
from ..errors import ErrorCode, StoreError
from ..workspace.models import now_iso

logger = logging.getLogger(__name__)

Row = dict[str, Any]
T = TypeVar("T")


class Store(Protocol):
    """What the sync job needs from a backing store."""

    async def upsert(self, table: str, rows: list[Row], on_conflict: str = "id") -> int:
        """Insert or replace rows keyed by ``on_conflict``. Returns rows written."""
        ...

    async def insert(self, table: str, rows: list[Row]) -> int:
        """Insert new rows. Returns rows written."""
        ...

    async def select_existing_ids(self, table: str, ids: Iterable[str]) -> set[str]:
        """The subset of ``ids`` already present in ``table``."""
        ...

    async def recent_rows(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        since: str | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        """Rows matching ``filters`` created at or after ``since``, newest first."""
        ...


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout: float | None,
    table: str | None = None,
) -> T:
    """Await a store call, turning a timeout into a StoreError."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise StoreError(
            f"timed out after {timeout}s",
            table=table,
            code=ErrorCode.STORE_TIMEOUT,
        ) from e


def _created_on_or_after(row: Row, since: str) -> bool:
    created = parse_timestamp(str(row.get("created_at", "")))
    boundary = parse_timestamp(since)
    if created is None or boundary is None:
        return str(row.get("created_at", "")) >= since
    return created >= boundary


class InMemoryStore:
    """Tables of rows held in a dict. Rows are copied in and out."""

    def __init__(self, tables: dict[str, list[Row]] | None = None) -> None:
        self.tables: dict[str, list[Row]] = deepcopy(tables) if tables else {}

    def rows(self, table: str) -> list[Row]:
        """Copy of every row in a table, in insertion order."""
        return deepcopy(self.tables.get(table, []))

    async def upsert(self, table: str, rows: list[Row], on_conflict: str = "id") -> int:
        existing = self.tables.setdefault(table, [])
        positions = {row.get(on_conflict): i for i, row in enumerate(existing)}
        for row in rows:
            if on_conflict not in row:
                raise StoreError(
                    f"row has no {on_conflict!r} column",
                    table=table,
                    code=ErrorCode.STORE_WRITE_FAILED,
                )
            key = row[on_conflict]
            if key in positions:
                existing[positions[key]] = deepcopy(row)
            else:
                positions[key] = len(existing)
                existing.append(deepcopy(row))
        await self._persist()
        return len(rows)

    async def insert(self, table: str, rows: list[Row]) -> int:
        existing = self.tables.setdefault(table, [])
        ids = {row.get("id") for row in existing}
        new_rows: list[Row] = []
        for row in rows:
            stored = deepcopy(row)
            stored.setdefault("id", str(uuid.uuid4()))
            stored.setdefault("created_at", now_iso())
            if stored["id"] in ids:
                raise StoreError(
                    f"duplicate id {stored['id']!r}",
                    table=table,
                    code=ErrorCode.STORE_WRITE_FAILED,
                )
            ids.add(stored["id"])
            new_rows.append(stored)
        existing.extend(new_rows)
        await self._persist()
        return len(new_rows)

    async def select_existing_ids(self, table: str, ids: Iterable[str]) -> set[str]:
        wanted = set(ids)
        return {row["id"] for row in self.tables.get(table, []) if row.get("id") in wanted}

    async def recent_rows(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        since: str | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        filters = filters or {}
        matched = [
            row for row in self.tables.get(table, [])
            if all(row.get(k) == v for k, v in filters.items())
            and (since is None or _created_on_or_after(row, since))
        ]
        # Newest first; insertion order breaks ties
        ordered = [
            row for _, row in sorted(
                enumerate(matched),
                key=lambda pair: (str(pair[1].get("created_at", "")), pair[0]),
                reverse=True,
            )
        ]
        if limit is not None:
            ordered = ordered[:limit]
        return deepcopy(ordered)

    async def _persist(self) -> None:
        """Hook for subclasses that write through to disk."""


class JsonFileStore(InMemoryStore):
    """InMemoryStore that loads from and saves to a JSON file.

    Usage:
        store = JsonFileStore("data/mission_control.json")
        await store.upsert("agents", rows)
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, list[Row]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(
                f"cannot load {self.path}: {e}",
                code=ErrorCode.STORE_READ_FAILED,
            ) from e
        if not isinstance(data, dict):
            raise StoreError(
                f"{self.path} does not hold a table mapping",
                code=ErrorCode.STORE_READ_FAILED,
            )
        return {table: list(rows) for table, rows in data.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(temp_path, "w") as f:
            json.dump(self.tables, f, indent=2, ensure_ascii=False)
        os.replace(temp_path, self.path)

    async def _persist(self) -> None:
        try:
            await asyncio.to_thread(self._write)
        except OSError as e:
            raise StoreError(
                f"cannot write {self.path}: {e}",
                code=ErrorCode.STORE_WRITE_FAILED,
            ) from e
        logger.debug("Saved store to %s", self.path)
