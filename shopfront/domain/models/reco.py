from pydantic import BaseModel
from typing import List, Optional

from shopfront.domain.models.product import Product

class RecoResult(BaseModel):
    source_product_id: Optional[str] = None
    items: List[Product]
    count: int
    personalized: bool = False
    preferred_categories: List[str] = []
    model_config = {"frozen": True} # immuable = safe
