from pydantic import BaseModel
from typing import Optional, Dict, Any

PLACEHOLDER_IMAGE = "https://via.placeholder.com/300"

class Product(BaseModel):
    id: str
    name: str
    brand: str = ""
    price: float = 0.0
    original_price: Optional[float] = None
    description: str = ""
    image: str = PLACEHOLDER_IMAGE
    category: str = ""
    in_stock: bool = True
    rating: float = 0.0
    reviews: int = 0

    model_config = {"frozen": True}  # immuable = safe

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        """
        Map a `products` table row to a Product.
        Nullable columns fall back to the storefront display defaults.
        """
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            brand=row.get("brand") or "",
            price=float(row.get("price") or 0),
            original_price=row.get("original_price") or None,
            description=row.get("description") or "",
            image=row.get("image") or PLACEHOLDER_IMAGE,
            category=row.get("category") or "",
            rating=float(row.get("rating") or 0),
            reviews=int(row.get("reviews") or 0),
            in_stock=True if row.get("in_stock") is None else bool(row.get("in_stock")),
        )
