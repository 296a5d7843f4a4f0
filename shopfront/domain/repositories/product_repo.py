# shopfront/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Dict, Iterable, List, Optional
import logging

from shopfront.domain.models.product import Product
from shopfront.domain.repositories.table_gateway import RemoteTableGateway
from shopfront.domain.services.constants import TABLE_PRODUCTS

logger = logging.getLogger(__name__)


class ProductRepo:
    """
    Read access to the externally owned `products` table.
    Used for the joined reads (wishlist products, history enrichment, compare snapshots).
    GatewayError propagates; callers decide the safe default.
    """

    def __init__(self, gateway: RemoteTableGateway, table: str = TABLE_PRODUCTS):
        self.gateway = gateway
        self.table = table

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        rows = await self.gateway.select(self.table, {"id": product_id}, limit=1)
        return Product.from_row(rows[0]) if rows else None

    async def get_many_by_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        """
        Batch fetch keyed by product id. Unknown ids are simply absent.
        """
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return {}
        rows = await self.gateway.select(self.table, {"id": wanted})
        out: Dict[str, Product] = {}
        for row in rows:
            if row.get("id") is None:
                continue
            out[str(row["id"])] = Product.from_row(row)
        if len(out) < len(wanted):
            logger.debug("products missing ids=%s", [i for i in wanted if i not in out][:20])
        return out

    async def list_in_stock(self, *, exclude_id: Optional[str] = None, limit: int = 20) -> List[Product]:
        # over-fetch by one so excluding the current product still fills the pool
        rows = await self.gateway.select(self.table, {"in_stock": True}, limit=limit + 1)
        products = [Product.from_row(r) for r in rows if r.get("id") is not None]
        if exclude_id:
            products = [p for p in products if p.id != exclude_id]
        return products[:limit]
