from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, Header

from shopfront.api.deps import get_session_registry, user_session
from shopfront.domain.services.session_svc import SessionRegistry, UserSession

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.get("")
async def get_session(session: UserSession = Depends(user_session)):
    return {
        "session_id": session.session_id,
        "user_id": session.user_id,
        "authenticated": session.user_id is not None,
        "wishlist_count": len(session.wishlist.ids),
        "compare_count": len(session.compare),
    }


@router.delete("")
async def sign_out(
    x_session_id: Optional[str] = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Sign out: the UI session is torn down (wishlist emptied, compare cleared).
    """
    closed = await registry.discard(x_session_id) if x_session_id else False
    logger.info("Response: sign_out session_id=%s closed=%s", x_session_id, closed)
    return {"signed_out": True, "session_closed": closed}
