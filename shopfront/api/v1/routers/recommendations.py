from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, Query

from shopfront.api.deps import settings_dep, user_session
from shopfront.core.config import Settings
from shopfront.domain.models.reco import RecoResult
from shopfront.domain.services.recommendation_svc import get_recommendations_svc
from shopfront.domain.services.session_svc import UserSession

import logging
import time
logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


@router.get("/recommendations", response_model=RecoResult)
async def get_recommendations(
    current_product_id: Optional[str] = Query(None, description="Product being viewed, excluded from results"),
    limit: Optional[int] = Query(None, ge=1, le=50),
    session: UserSession = Depends(user_session),
    settings: Settings = Depends(settings_dep),
):
    t0 = time.perf_counter()
    result = await get_recommendations_svc(
        session.history,
        session.products,
        current_product_id=current_product_id,
        limit=limit or settings.recommendation_limit,
        pool_size=settings.recommendation_pool_size,
    )
    logger.info(
        "Response: get_recommendations returned %s items personalized=%s in %.4fs",
        result.count, result.personalized, time.perf_counter() - t0,
    )
    return result
