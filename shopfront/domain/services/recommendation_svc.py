# shopfront/domain/services/recommendation_svc.py
import logging
import time
from typing import List, Optional

from shopfront.domain.errors import GatewayError
from shopfront.domain.models.product import Product
from shopfront.domain.models.reco import RecoResult
from shopfront.domain.repositories.product_repo import ProductRepo
from shopfront.domain.services.browsing_history_svc import BrowsingHistoryTracker
from shopfront.domain.services.constants import RECOMMENDATION_LIMIT, RECOMMENDATION_POOL_SIZE

logger = logging.getLogger(__name__)


def rank_by_preference(pool: List[Product], preferred: List[str]) -> List[Product]:
    """
    Products in a preferred category come first, ordered by category rank;
    everything else follows. Within a group: rating desc, then pool order.
    """
    rank = {c: i for i, c in enumerate(preferred)}
    fallback = len(rank)
    indexed = list(enumerate(pool))
    indexed.sort(key=lambda ip: (rank.get(ip[1].category, fallback), -ip[1].rating, ip[0]))
    return [p for _, p in indexed]


async def get_recommendations_svc(
    history: BrowsingHistoryTracker,
    products: ProductRepo,
    *,
    current_product_id: Optional[str] = None,
    limit: int = RECOMMENDATION_LIMIT,
    pool_size: int = RECOMMENDATION_POOL_SIZE,
) -> RecoResult:
    """
    "Recommended for you": in-stock products other than the one being viewed,
    personalized by the user's preferred categories when there is a history.
    Anonymous users (or users without history) get the rating order.
    A storage failure yields an empty result.
    """
    t0 = time.perf_counter()
    logger.info("reco start current_product_id=%s limit=%s pool_size=%s", current_product_id, limit, pool_size)

    preferred = await history.preferred_categories()

    try:
        pool = await products.list_in_stock(exclude_id=current_product_id, limit=pool_size)
    except GatewayError as e:
        logger.warning("reco pool error err=%s", e)
        return RecoResult(source_product_id=current_product_id, items=[], count=0)

    ranked = rank_by_preference(pool, preferred)[:limit]
    result = RecoResult(
        source_product_id=current_product_id,
        items=ranked,
        count=len(ranked),
        personalized=bool(preferred),
        preferred_categories=preferred,
    )
    logger.info(
        "reco done items=%s personalized=%s pool=%s total_time=%.3fs",
        result.count, result.personalized, len(pool), time.perf_counter() - t0,
    )
    return result
