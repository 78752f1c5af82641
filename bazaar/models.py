"""Data models for the storefront: products, cart, views and AI content."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

__all__ = ["Product", "CartItem", "Cart", "AIContent", "View"]


class View(str, Enum):
    """Top-level page the shopper is looking at."""

    HOME = "HOME"
    PRODUCT_DETAILS = "PRODUCT_DETAILS"
    CHECKOUT = "CHECKOUT"


@dataclass(frozen=True)
class Product:
    """A catalog entry. Prices are whole Naira so totals stay exact."""

    # Required fields
    id: str
    name: str
    price: int
    category: str
    image: str

    # Optional display fields
    rating: float = 0.0
    reviews: int = 0
    short_description: str = ""
    full_description: Optional[str] = None
    is_new: bool = False
    is_best_seller: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "rating": self.rating,
            "reviews": self.reviews,
            "short_description": self.short_description,
            "full_description": self.full_description,
            "is_new": self.is_new,
            "is_best_seller": self.is_best_seller,
        }


@dataclass
class CartItem:
    product: Product
    quantity: int = 1

    @property
    def line_total(self) -> int:
        return self.product.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        data = self.product.to_dict()
        data["quantity"] = self.quantity
        data["line_total"] = self.line_total
        return data


@dataclass
class Cart:
    """Ordered cart with at most one entry per product id.

    Entries keep first-add order. Totals are computed on every read.
    """

    items: List[CartItem] = field(default_factory=list)

    def find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    def add(self, product: Product) -> CartItem:
        """Add one unit of a product, creating the entry on first add."""
        item = self.find(product.id)
        if item is None:
            item = CartItem(product=product, quantity=1)
            self.items.append(item)
        else:
            item.quantity += 1
        return item

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product.id != product_id]

    def update_quantity(self, product_id: str, delta: int) -> None:
        """Shift a quantity by delta, never going below 1.

        Unknown ids are ignored; removal is the only way to drop an entry.
        """
        item = self.find(product_id)
        if item is not None:
            item.quantity = max(1, item.quantity + delta)

    def total(self) -> int:
        return sum(item.line_total for item in self.items)

    def count(self) -> int:
        return sum(item.quantity for item in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class AIContent:
    """Generated marketing copy for one product."""

    sales_pitch: str
    key_features: Tuple[str, ...]
    seo_tags: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "key_features", tuple(self.key_features))
        object.__setattr__(self, "seo_tags", tuple(self.seo_tags))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape used by the page."""
        return {
            "salesPitch": self.sales_pitch,
            "keyFeatures": list(self.key_features),
            "seoTags": list(self.seo_tags),
        }
