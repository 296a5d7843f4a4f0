# api/v1/schemas/shop.py
from pydantic import BaseModel, Field
from typing import List, Optional

from shopfront.domain.models.history import MostViewed, RecentView
from shopfront.domain.models.product import Product
from shopfront.domain.models.result import OpStatus
from shopfront.domain.services.notices import Notice


class NoticesOut(BaseModel):
    notices: List[Notice] = Field(default_factory=list)

class OpOut(NoticesOut):
    ok: bool
    status: OpStatus
    notice: Optional[str] = None

class WishlistIdsOut(NoticesOut):
    items: List[str]
    count: int

class MembershipOut(BaseModel):
    product_id: str
    member: bool

class ToggleOut(OpOut):
    product_id: str
    member: bool

class ProductsOut(NoticesOut):
    items: List[Product]
    count: int

class CompareOut(NoticesOut):
    items: List[Product]
    count: int
    is_open: bool
    max_items: int

class RecentViewsOut(BaseModel):
    items: List[RecentView]
    count: int

class MostViewedOut(BaseModel):
    items: List[MostViewed]
    count: int

class CategoriesOut(BaseModel):
    items: List[str]
    count: int
