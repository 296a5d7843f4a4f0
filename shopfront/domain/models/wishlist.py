from pydantic import BaseModel

class WishlistEntry(BaseModel):
    user_id: str
    product_id: str
    model_config = {"frozen": True}
