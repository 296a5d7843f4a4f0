"""In-memory RemoteTableGateway double used across the store tests."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Mapping
from typing import Any

from shopfront.domain.errors import GatewayError
from shopfront.domain.repositories.table_gateway import new_row_id

UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    "wishlists": ("user_id", "product_id"),
    "browsing_history": ("user_id", "product_id"),
    "products": ("id",),
}


def _matches(row: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    for col, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set, frozenset)):
            if row.get(col) not in value:
                return False
        elif row.get(col) != value:
            return False
    return True


class InMemoryTableGateway:
    """
    Mirrors MongoTableGateway semantics on plain lists of dicts.

    Every call yields to the event loop first, so two coroutines doing
    read-then-write interleave exactly like two real round trips would.
    `upsert_increment` does its read and write without yielding in between.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.lag: dict[str, float] = {}

    # ----- test helpers -----

    def seed(self, table: str, rows: list[dict[str, Any]]) -> None:
        for row in rows:
            self.tables[table].append({"id": new_row_id(), **row})

    def rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [dict(r) for r in self.tables[table] if _matches(r, filters)]

    def fail(self, *ops: str) -> None:
        """Make `op` or `table.op` raise GatewayError from now on."""
        self.fail_on.update(ops)

    def heal(self) -> None:
        self.fail_on.clear()

    def slow(self, op: str, seconds: float) -> None:
        """Delay the response of `op` or `table.op` after its result is computed."""
        self.lag[op] = seconds

    async def _enter(self, table: str, op: str) -> None:
        await asyncio.sleep(0)
        self.calls.append((table, op))
        if op in self.fail_on or f"{table}.{op}" in self.fail_on:
            raise GatewayError(table, op, RuntimeError("injected failure"))

    async def _respond(self, table: str, op: str) -> None:
        seconds = self.lag.get(f"{table}.{op}", self.lag.get(op))
        if seconds:
            await asyncio.sleep(seconds)

    def _violates_unique(self, table: str, row: Mapping[str, Any]) -> bool:
        cols = UNIQUE_KEYS.get(table)
        if not cols:
            return False
        return any(all(r.get(c) == row.get(c) for c in cols) for r in self.tables[table])

    # ----- gateway protocol -----

    async def select(self, table, filters=None, *, order_by=None, descending=False, limit=None):
        await self._enter(table, "select")
        rows = [dict(r) for r in self.tables[table] if _matches(r, filters)]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by), reverse=descending)
        if limit:
            rows = rows[:limit]
        await self._respond(table, "select")
        return rows

    async def insert(self, table, row):
        await self._enter(table, "insert")
        doc = {"id": new_row_id(), **row}
        if self._violates_unique(table, doc):
            raise GatewayError(table, "insert", RuntimeError("duplicate key"))
        self.tables[table].append(doc)
        return dict(doc)

    async def update(self, table, row_id, patch):
        await self._enter(table, "update")
        for r in self.tables[table]:
            if r.get("id") == row_id:
                r.update(patch)
                return 1
        return 0

    async def delete(self, table, filters):
        await self._enter(table, "delete")
        if not filters:
            raise GatewayError(table, "delete", ValueError("empty filter"))
        before = len(self.tables[table])
        self.tables[table] = [r for r in self.tables[table] if not _matches(r, filters)]
        return before - len(self.tables[table])

    async def upsert_increment(self, table, key, *, field, amount=1, patch=None):
        await self._enter(table, "upsert_increment")
        for r in self.tables[table]:
            if _matches(r, key):
                r[field] = r.get(field, 0) + amount
                r.update(patch or {})
                return dict(r)
        doc = {"id": new_row_id(), **key, field: amount, **(patch or {})}
        self.tables[table].append(doc)
        return dict(doc)
