from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from shopfront.api.deps import user_session
from shopfront.api.v1.schemas.shop import CompareOut
from shopfront.domain.errors import GatewayError
from shopfront.domain.services.session_svc import UserSession

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compare", tags=["compare"])


def _compare_out(session: UserSession) -> CompareOut:
    compare = session.compare
    items = compare.items
    return CompareOut(
        items=items,
        count=len(items),
        is_open=compare.is_open,
        max_items=compare.max_items,
        notices=session.notices.drain(),
    )


@router.get("", response_model=CompareOut)
async def get_compare(session: UserSession = Depends(user_session)):
    return _compare_out(session)


@router.post("/{product_id}", response_model=CompareOut)
async def add_to_compare(product_id: str, session: UserSession = Depends(user_session)):
    """
    Snapshot the catalog product and append it to the comparison.
    Full/duplicate selections are rejected with a notice, not an error.
    """
    try:
        product = await session.products.get_by_id(product_id)
    except GatewayError as e:
        logger.warning("compare product lookup error product_id=%s err=%s", product_id, e)
        raise HTTPException(status_code=503, detail="Product catalog unavailable.")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    session.compare.add(product)
    return _compare_out(session)


@router.delete("/{product_id}", response_model=CompareOut)
async def remove_from_compare(product_id: str, session: UserSession = Depends(user_session)):
    session.compare.remove(product_id)
    return _compare_out(session)


@router.delete("", response_model=CompareOut)
async def clear_compare(session: UserSession = Depends(user_session)):
    session.compare.clear()
    return _compare_out(session)


@router.put("/panel", response_model=CompareOut)
async def set_compare_panel(
    open: bool = Query(..., description="Show or hide the comparison panel"),
    session: UserSession = Depends(user_session),
):
    session.compare.set_open(open)
    return _compare_out(session)
