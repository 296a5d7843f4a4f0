# shopfront/domain/repositories/table_gateway.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Protocol
import logging
import time
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from shopfront.domain.errors import GatewayError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

"""
Note:
    - Rows are plain dicts; every row carries a string `id` column.
    - Filters are equality matches; a list/tuple/set value means "column IN values".
    - No business logic here, only table access.
"""


class RemoteTableGateway(Protocol):
    """CRUD over named tables, the only suspension points of the stores."""

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row: ...

    async def update(self, table: str, row_id: str, patch: Mapping[str, Any]) -> int: ...

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int: ...

    async def upsert_increment(
        self,
        table: str,
        key: Mapping[str, Any],
        *,
        field: str,
        amount: int = 1,
        patch: Optional[Mapping[str, Any]] = None,
    ) -> Row: ...


def new_row_id() -> str:
    return uuid.uuid4().hex


def _to_query(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for col, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set, frozenset)):
            query[col] = {"$in": list(value)}
        else:
            query[col] = value
    return query


class MongoTableGateway:
    """
    RemoteTableGateway backed by one Mongo collection per table.
    Every PyMongoError is re-raised as GatewayError(table, operation).
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        query = _to_query(filters)
        t0 = time.perf_counter()
        try:
            cursor = self.db[table].find(query, {"_id": 0})
            if order_by:
                cursor = cursor.sort(order_by, -1 if descending else 1)
            if limit:
                cursor = cursor.limit(limit)
            rows = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise GatewayError(table, "select", e) from e
        logger.debug(
            "gateway select table=%s filters=%s order_by=%s limit=%s rows=%s db_time=%.3fs",
            table, query, order_by, limit, len(rows), time.perf_counter() - t0,
        )
        return rows

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        doc = {"id": new_row_id(), **row}
        try:
            # insert_one stamps _id onto the dict it is given
            await self.db[table].insert_one(dict(doc))
        except PyMongoError as e:
            raise GatewayError(table, "insert", e) from e
        logger.debug("gateway insert table=%s id=%s", table, doc["id"])
        return doc

    async def update(self, table: str, row_id: str, patch: Mapping[str, Any]) -> int:
        try:
            res = await self.db[table].update_one({"id": row_id}, {"$set": dict(patch)})
        except PyMongoError as e:
            raise GatewayError(table, "update", e) from e
        logger.debug("gateway update table=%s id=%s matched=%s", table, row_id, res.matched_count)
        return res.matched_count

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        query = _to_query(filters)
        if not query:
            # never wipe a whole table through the composite-key path
            raise GatewayError(table, "delete", ValueError("empty filter"))
        try:
            res = await self.db[table].delete_many(query)
        except PyMongoError as e:
            raise GatewayError(table, "delete", e) from e
        logger.debug("gateway delete table=%s filters=%s deleted=%s", table, query, res.deleted_count)
        return res.deleted_count

    async def upsert_increment(
        self,
        table: str,
        key: Mapping[str, Any],
        *,
        field: str,
        amount: int = 1,
        patch: Optional[Mapping[str, Any]] = None,
    ) -> Row:
        """
        Atomically increment `field` on the row matching `key`, creating it
        (with `field = amount`) when absent. Returns the row after the write.
        """
        update: Dict[str, Any] = {
            "$inc": {field: amount},
            "$setOnInsert": {"id": new_row_id()},
        }
        if patch:
            update["$set"] = dict(patch)
        try:
            doc = await self.db[table].find_one_and_update(
                dict(key),
                update,
                projection={"_id": 0},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise GatewayError(table, "upsert_increment", e) from e
        logger.debug("gateway upsert_increment table=%s key=%s %s=%s", table, dict(key), field, doc.get(field))
        return doc
