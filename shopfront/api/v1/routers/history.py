from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, Query

from shopfront.api.deps import settings_dep, user_session
from shopfront.api.v1.schemas.shop import CategoriesOut, MostViewedOut, OpOut, RecentViewsOut
from shopfront.core.config import Settings
from shopfront.domain.services.session_svc import UserSession

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["history"])


def _bounded(limit: Optional[int], settings: Settings) -> Optional[int]:
    return min(limit, settings.history_max_limit) if limit else None


@router.post("/{product_id}/view", response_model=OpOut)
async def record_view(product_id: str, session: UserSession = Depends(user_session)):
    """
    Record that the user viewed `product_id`. Always 200: view tracking
    never fails the page; `status` tells what happened.
    """
    res = await session.history.record_view(product_id)
    return OpOut(ok=res.ok, status=res.status, notice=res.notice, notices=session.notices.drain())


@router.get("/recent", response_model=RecentViewsOut)
async def recently_viewed(
    limit: Optional[int] = Query(None, ge=1, description="Max number of products (default from settings)"),
    session: UserSession = Depends(user_session),
    settings: Settings = Depends(settings_dep),
):
    items = await session.history.recently_viewed(_bounded(limit, settings))
    logger.info("Response: recently_viewed returned %s items user_id=%s", len(items), session.user_id)
    return RecentViewsOut(items=items, count=len(items))


@router.get("/most-viewed", response_model=MostViewedOut)
async def most_viewed(
    limit: Optional[int] = Query(None, ge=1, description="Max number of products (default from settings)"),
    session: UserSession = Depends(user_session),
    settings: Settings = Depends(settings_dep),
):
    items = await session.history.most_viewed(_bounded(limit, settings))
    logger.info("Response: most_viewed returned %s items user_id=%s", len(items), session.user_id)
    return MostViewedOut(items=items, count=len(items))


@router.get("/categories", response_model=CategoriesOut)
async def preferred_categories(session: UserSession = Depends(user_session)):
    items = await session.history.preferred_categories()
    return CategoriesOut(items=items, count=len(items))
