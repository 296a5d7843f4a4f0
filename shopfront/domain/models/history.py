from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from shopfront.domain.models.product import Product

class ViewRecord(BaseModel):
    user_id: str
    product_id: str
    view_count: int = Field(ge=1)
    viewed_at: datetime

class RecentView(BaseModel):
    product_id: str
    viewed_at: datetime
    product: Optional[Product] = None
    model_config = {"frozen": True}

class MostViewed(BaseModel):
    product_id: str
    view_count: int = Field(ge=1)
    product: Optional[Product] = None
    model_config = {"frozen": True}
