import logging
import time
from typing import Any, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from shopfront.core.identity import IdentityProvider
from shopfront.domain.errors import GatewayError
from shopfront.domain.models.history import MostViewed, RecentView, ViewRecord
from shopfront.domain.models.result import OpResult
from shopfront.domain.repositories.product_repo import ProductRepo
from shopfront.domain.repositories.table_gateway import RemoteTableGateway
from shopfront.domain.services.constants import (
    HISTORY_DEFAULT_LIMIT,
    TABLE_BROWSING_HISTORY,
    VIEW_CATEGORIES,
    VIEW_MOST,
    VIEW_RECENT,
)
from shopfront.domain.services.observable import Observable
from shopfront.utils.cache import cache_bump, cache_delete, cache_hget, cache_hset, cache_version
from shopfront.utils.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)


def history_cache_key(user_id: str, version: int = 0) -> str:
    return f"hist:{user_id}:{version}"


def history_version_key(user_id: str) -> str:
    return f"hist:{user_id}:v"


def rank_categories(categories: List[Optional[str]]) -> List[str]:
    """
    Categories by descending occurrence count. Ties keep first-encountered
    order (dicts preserve insertion order and sorted() is stable).
    Empty/missing categories are ignored.
    """
    counts: Dict[str, int] = {}
    for category in categories:
        if category:
            counts[category] = counts.get(category, 0) + 1
    return [c for c, _ in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)]


class BrowsingHistoryTracker(Observable):
    """
    Per-user product view log in `browsing_history`
    ({user_id, product_id, view_count, viewed_at}, unique per user/product)
    and the views derived from it.

    `record_view` never raises. With `atomic=True` (default) the count is bumped
    by a single upsert-with-increment, so overlapping views of the same product
    are all counted. `atomic=False` keeps the legacy read-then-write sequence,
    where two overlapping views can read the same count and one is lost.

    Derived views are cached per user in Redis when a client is given, under a
    hash named after the user's current cache version. `invalidate` bumps the
    version, so a read that started before a view writes into a retired hash.
    Any Redis problem degrades to an uncached read.
    Subscribers are notified with the product id after each recorded view.
    """

    def __init__(
        self,
        gateway: RemoteTableGateway,
        identity: IdentityProvider,
        products: Optional[ProductRepo] = None,
        redis: Optional[Redis] = None,
        *,
        cache_ttl: int = 300,
        default_limit: int = HISTORY_DEFAULT_LIMIT,
        atomic: bool = True,
        clock: Optional[Clock] = None,
        table: str = TABLE_BROWSING_HISTORY,
    ):
        super().__init__()
        self._gateway = gateway
        self._identity = identity
        self._products = products or ProductRepo(gateway)
        self._redis = redis
        self._cache_ttl = cache_ttl
        self.default_limit = default_limit
        self.atomic = atomic
        self._clock = clock or utcnow
        self._table = table
        self._closed = False

    # ----- write path ------------------------------------------------------

    async def record_view(self, product_id: str) -> OpResult:
        if self._closed:
            return OpResult.failure("stale")
        user_id = self._identity.current_user_id()
        if user_id is None:
            return OpResult.failure("unauthenticated")

        now = self._clock()
        t0 = time.perf_counter()
        try:
            if self.atomic:
                row = await self._gateway.upsert_increment(
                    self._table,
                    {"user_id": user_id, "product_id": product_id},
                    field="view_count",
                    patch={"viewed_at": now},
                )
                count = row.get("view_count")
            else:
                count = await self._record_view_read_then_write(user_id, product_id, now)
        except GatewayError as e:
            logger.warning("history record_view error user_id=%s product_id=%s err=%s", user_id, product_id, e)
            return OpResult.failure("storage_error")

        logger.info(
            "history record_view ok user_id=%s product_id=%s view_count=%s atomic=%s db_time=%.3fs",
            user_id, product_id, count, self.atomic, time.perf_counter() - t0,
        )
        await self.invalidate(user_id)
        self.notify(product_id)
        return OpResult.success()

    async def _record_view_read_then_write(self, user_id: str, product_id: str, now) -> int:
        key = {"user_id": user_id, "product_id": product_id}
        rows = await self._gateway.select(self._table, key, limit=1)
        if rows:
            existing = rows[0]
            count = int(existing.get("view_count") or 0) + 1
            await self._gateway.update(self._table, existing["id"], {"view_count": count, "viewed_at": now})
            return count
        record = ViewRecord(user_id=user_id, product_id=product_id, view_count=1, viewed_at=now)
        await self._gateway.insert(self._table, record.model_dump())
        return 1

    # ----- derived views ---------------------------------------------------

    async def recently_viewed(self, limit: Optional[int] = None) -> List[RecentView]:
        """Most recent views first, each joined with its product when it still exists."""
        user_id = self._identity.current_user_id()
        if limit is None:
            limit = self.default_limit
        if user_id is None or self._closed or limit <= 0:
            return []
        field = f"{VIEW_RECENT}:{limit}"

        version = await self._cache_version(user_id)
        cached = await self._cache_get(user_id, version, field)
        if cached is not None:
            return [RecentView.model_validate(x) for x in cached]

        try:
            rows = await self._gateway.select(
                self._table, {"user_id": user_id}, order_by="viewed_at", descending=True, limit=limit,
            )
            products = await self._products.get_many_by_ids(r["product_id"] for r in rows)
        except GatewayError as e:
            logger.warning("history recently_viewed error user_id=%s err=%s", user_id, e)
            return []
        if self._closed:
            return []

        items = [
            RecentView(
                product_id=r["product_id"],
                viewed_at=as_utc(r["viewed_at"]),
                product=products.get(r["product_id"]),
            )
            for r in rows
        ]
        await self._cache_set(user_id, version, field, [i.model_dump(mode="json") for i in items])
        logger.info("history recently_viewed user_id=%s items=%s", user_id, len(items))
        return items

    async def most_viewed(self, limit: Optional[int] = None) -> List[MostViewed]:
        """Highest view counts first, each joined with its product when it still exists."""
        user_id = self._identity.current_user_id()
        if limit is None:
            limit = self.default_limit
        if user_id is None or self._closed or limit <= 0:
            return []
        field = f"{VIEW_MOST}:{limit}"

        version = await self._cache_version(user_id)
        cached = await self._cache_get(user_id, version, field)
        if cached is not None:
            return [MostViewed.model_validate(x) for x in cached]

        try:
            rows = await self._gateway.select(
                self._table, {"user_id": user_id}, order_by="view_count", descending=True, limit=limit,
            )
            products = await self._products.get_many_by_ids(r["product_id"] for r in rows)
        except GatewayError as e:
            logger.warning("history most_viewed error user_id=%s err=%s", user_id, e)
            return []
        if self._closed:
            return []

        items = [
            MostViewed(
                product_id=r["product_id"],
                view_count=int(r.get("view_count") or 1),
                product=products.get(r["product_id"]),
            )
            for r in rows
        ]
        await self._cache_set(user_id, version, field, [i.model_dump(mode="json") for i in items])
        logger.info("history most_viewed user_id=%s items=%s", user_id, len(items))
        return items

    async def preferred_categories(self) -> List[str]:
        """
        Categories of every viewed product, ranked by how many distinct
        products of that category the user viewed.
        """
        user_id = self._identity.current_user_id()
        if user_id is None or self._closed:
            return []

        version = await self._cache_version(user_id)
        cached = await self._cache_get(user_id, version, VIEW_CATEGORIES)
        if cached is not None:
            return list(cached)

        try:
            rows = await self._gateway.select(self._table, {"user_id": user_id})
            products = await self._products.get_many_by_ids(r["product_id"] for r in rows)
        except GatewayError as e:
            logger.warning("history preferred_categories error user_id=%s err=%s", user_id, e)
            return []
        if self._closed:
            return []

        ranked = rank_categories(
            [products[r["product_id"]].category if r["product_id"] in products else None for r in rows]
        )
        await self._cache_set(user_id, version, VIEW_CATEGORIES, ranked)
        logger.info("history preferred_categories user_id=%s records=%s categories=%s", user_id, len(rows), ranked[:10])
        return ranked

    # ----- cache -----------------------------------------------------------

    async def invalidate(self, user_id: Optional[str]) -> None:
        if not self._redis or not user_id:
            return
        try:
            version = await cache_bump(self._redis, history_version_key(user_id))
            await cache_delete(self._redis, history_cache_key(user_id, version - 1))
        except RedisError as e:
            logger.warning("history cache_invalidate error user_id=%s err=%s", user_id, e)

    async def _cache_version(self, user_id: str) -> Optional[int]:
        """None disables caching for this read."""
        if not self._redis:
            return None
        try:
            return await cache_version(self._redis, history_version_key(user_id))
        except (RedisError, ValueError) as e:
            logger.warning("history cache_version error user_id=%s err=%s", user_id, e)
            return None

    async def _cache_get(self, user_id: str, version: Optional[int], field: str) -> Optional[Any]:
        if not self._redis or version is None:
            return None
        try:
            cached = await cache_hget(self._redis, history_cache_key(user_id, version), field)
        except (RedisError, ValueError) as e:
            logger.warning("history cache_get error user_id=%s field=%s err=%s", user_id, field, e)
            return None
        if cached is not None:
            logger.debug("history cache_hit user_id=%s version=%s field=%s", user_id, version, field)
        return cached

    async def _cache_set(self, user_id: str, version: Optional[int], field: str, value: Any) -> None:
        if not self._redis or version is None:
            return
        try:
            await cache_hset(self._redis, history_cache_key(user_id, version), field, value, ex=self._cache_ttl)
        except RedisError as e:
            logger.warning("history cache_set error user_id=%s field=%s err=%s", user_id, field, e)

    def close(self) -> None:
        self._closed = True
        self.clear_listeners()
