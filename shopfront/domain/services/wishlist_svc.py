import logging
import time
from typing import Dict, FrozenSet, List, Optional, Set

from shopfront.core.identity import IdentityProvider
from shopfront.domain.errors import GatewayError
from shopfront.domain.models.product import Product
from shopfront.domain.models.result import OpResult
from shopfront.domain.models.wishlist import WishlistEntry
from shopfront.domain.repositories.product_repo import ProductRepo
from shopfront.domain.repositories.table_gateway import RemoteTableGateway
from shopfront.domain.services.constants import (
    NOTICE_SIGN_IN_WISHLIST,
    NOTICE_WISHLIST_ADDED,
    NOTICE_WISHLIST_FAILED,
    NOTICE_WISHLIST_REMOVED,
    TABLE_WISHLISTS,
)
from shopfront.domain.services.notices import NoticeSink
from shopfront.domain.services.observable import Observable

logger = logging.getLogger(__name__)


class WishlistStore(Observable):
    """
    Wishlist membership of the current user, cached as a local set of product ids.

    The set mirrors the user's rows in `wishlists` whenever no call is in flight.
    It is emptied synchronously on every identity change (the session glue then
    awaits `fetch_all`), so ids never leak from one user to the next.
    Results of calls that were in flight across an identity change or `close()`
    are dropped.

    Subscribers are notified (no arguments) whenever the local set changes.
    """

    def __init__(
        self,
        gateway: RemoteTableGateway,
        identity: IdentityProvider,
        notices: NoticeSink,
        products: Optional[ProductRepo] = None,
        table: str = TABLE_WISHLISTS,
    ):
        super().__init__()
        self._gateway = gateway
        self._identity = identity
        self._notices = notices
        self._products = products or ProductRepo(gateway)
        self._table = table

        self._ids: Set[str] = set()
        self._user_id: Optional[str] = None    # owner of self._ids
        self._generation = 0                   # bumped on identity change / close
        self._journals: List[Dict[str, bool]] = []  # toggles applied while a fetch is reading
        self._pending = 0
        self._closed = False
        self._unsubscribe = identity.subscribe(self._on_identity_change)
        self._user_id = identity.current_user_id()

    # ----- local state -----------------------------------------------------

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._ids)

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def is_member(self, product_id: str) -> bool:
        return product_id in self._ids

    def _on_identity_change(self, user_id: Optional[str]) -> None:
        if user_id == self._user_id:
            return
        logger.info("wishlist identity_change from=%s to=%s dropped=%s", self._user_id, user_id, len(self._ids))
        self._user_id = user_id
        self._generation += 1
        self._ids = set()
        self.notify()

    def _is_stale(self, user_id: str, generation: int) -> bool:
        return self._closed or generation != self._generation or user_id != self._user_id

    # ----- remote sync -----------------------------------------------------

    async def fetch_all(self) -> Set[str]:
        """
        Reload the user's wishlisted ids and replace the local set.
        Unauthenticated: empty set. Storage failure: empty set, local set untouched.
        """
        if self._closed:
            return set()
        user_id = self._identity.current_user_id()
        if user_id is None:
            if self._ids:
                self._ids = set()
                self.notify()
            return set()

        generation = self._generation
        journal: Dict[str, bool] = {}
        self._journals.append(journal)
        t0 = time.perf_counter()
        try:
            rows = await self._gateway.select(self._table, {"user_id": user_id})
        except GatewayError as e:
            logger.warning("wishlist fetch_all error user_id=%s err=%s", user_id, e)
            return set()
        finally:
            self._journals.remove(journal)

        if self._is_stale(user_id, generation):
            logger.info("wishlist fetch_all stale user_id=%s (identity changed or closed)", user_id)
            return set()

        ids = {str(r["product_id"]) for r in rows if r.get("product_id") is not None}
        # toggles that completed during the read may be missing from `rows`
        for product_id, member in journal.items():
            if member:
                ids.add(product_id)
            else:
                ids.discard(product_id)
        if journal:
            logger.info("wishlist fetch_all replayed user_id=%s toggles=%s", user_id, len(journal))

        self._ids = ids
        logger.info("wishlist fetch_all ok user_id=%s items=%s db_time=%.3fs", user_id, len(ids), time.perf_counter() - t0)
        self.notify()
        return set(ids)

    async def toggle(self, product_id: str) -> bool:
        return (await self.toggle_result(product_id)).ok

    async def toggle_result(self, product_id: str) -> OpResult:
        """
        Flip membership of `product_id` against the local snapshot:
        delete the relation when a member, insert it otherwise.
        The local set only changes after the storage write succeeded.
        """
        if self._closed:
            return OpResult.failure("stale")
        user_id = self._identity.current_user_id()
        if user_id is None:
            self._notices.error(NOTICE_SIGN_IN_WISHLIST)
            return OpResult.failure("unauthenticated", NOTICE_SIGN_IN_WISHLIST)

        generation = self._generation
        was_member = product_id in self._ids
        key = WishlistEntry(user_id=user_id, product_id=product_id).model_dump()

        self._pending += 1
        try:
            if was_member:
                await self._gateway.delete(self._table, key)
            else:
                await self._gateway.insert(self._table, key)
        except GatewayError as e:
            logger.warning("wishlist toggle error user_id=%s product_id=%s err=%s", user_id, product_id, e)
            self._notices.error(NOTICE_WISHLIST_FAILED)
            return OpResult.failure("storage_error", NOTICE_WISHLIST_FAILED)
        finally:
            self._pending -= 1

        if self._is_stale(user_id, generation):
            logger.info("wishlist toggle stale user_id=%s product_id=%s", user_id, product_id)
            return OpResult.failure("stale")

        if was_member:
            self._ids.discard(product_id)
            notice = NOTICE_WISHLIST_REMOVED
        else:
            self._ids.add(product_id)
            notice = NOTICE_WISHLIST_ADDED
        for journal in self._journals:
            journal[product_id] = not was_member
        logger.info("wishlist toggle ok user_id=%s product_id=%s member=%s", user_id, product_id, not was_member)
        self._notices.success(notice)
        self.notify()
        return OpResult.success(notice)

    async def products(self) -> List[Product]:
        """
        Wishlisted products of the current user (joined read), in table order.
        Rows whose product no longer exists are skipped.
        """
        user_id = self._identity.current_user_id()
        if user_id is None or self._closed:
            return []
        try:
            rows = await self._gateway.select(self._table, {"user_id": user_id})
            ids = [str(r["product_id"]) for r in rows if r.get("product_id") is not None]
            by_id = await self._products.get_many_by_ids(ids)
        except GatewayError as e:
            logger.warning("wishlist products error user_id=%s err=%s", user_id, e)
            return []
        return [by_id[i] for i in ids if i in by_id]

    def close(self) -> None:
        """Teardown: forget the user, drop in-flight results, stop listening."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._unsubscribe()
        self._ids = set()
        self._user_id = None
        self.notify()
        self.clear_listeners()
