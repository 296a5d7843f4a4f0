from __future__ import annotations
from fastapi import APIRouter, Depends

from shopfront.api.deps import user_session
from shopfront.api.v1.schemas.shop import MembershipOut, ProductsOut, ToggleOut, WishlistIdsOut
from shopfront.domain.services.session_svc import UserSession

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=WishlistIdsOut)
async def get_wishlist(session: UserSession = Depends(user_session)):
    """
    Wishlisted product ids of the signed-in user (empty when anonymous).
    """
    ids = sorted(session.wishlist.ids)
    return WishlistIdsOut(items=ids, count=len(ids), notices=session.notices.drain())


@router.post("/refresh", response_model=WishlistIdsOut)
async def refresh_wishlist(session: UserSession = Depends(user_session)):
    ids = sorted(await session.wishlist.fetch_all())
    return WishlistIdsOut(items=ids, count=len(ids), notices=session.notices.drain())


@router.get("/products", response_model=ProductsOut)
async def get_wishlist_products(session: UserSession = Depends(user_session)):
    items = await session.wishlist.products()
    logger.info("Response: wishlist_products returned %s items user_id=%s", len(items), session.user_id)
    return ProductsOut(items=items, count=len(items), notices=session.notices.drain())


@router.get("/{product_id}", response_model=MembershipOut)
async def get_membership(product_id: str, session: UserSession = Depends(user_session)):
    return MembershipOut(product_id=product_id, member=session.wishlist.is_member(product_id))


@router.post("/{product_id}/toggle", response_model=ToggleOut)
async def toggle_wishlist(product_id: str, session: UserSession = Depends(user_session)):
    res = await session.wishlist.toggle_result(product_id)
    logger.info("Response: wishlist_toggle product_id=%s status=%s", product_id, res.status)
    return ToggleOut(
        ok=res.ok,
        status=res.status,
        notice=res.notice,
        product_id=product_id,
        member=session.wishlist.is_member(product_id),
        notices=session.notices.drain(),
    )
