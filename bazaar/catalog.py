"""Read-only product catalog loaded from CSV.

The catalog is loaded once at startup and never mutated. Product order in
the CSV is the display order everywhere in the storefront.
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .config import ALL_CATEGORIES, CATALOG_PATH
from .models import Product

__all__ = ["Catalog", "CATEGORIES", "load_catalog", "CatalogError"]

logger = logging.getLogger(__name__)

# Display order of the category bar; the sentinel always comes first.
CATEGORIES = [
    ALL_CATEGORIES,
    "Electronics",
    "Fashion",
    "Beauty & Hair",
    "Home & Kitchen",
    "Groceries",
    "Phones & Tablets",
]

REQUIRED_COLUMNS = ["id", "name", "price", "category", "image"]


class CatalogError(ValueError):
    """Raised when the catalog file cannot be turned into products."""


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if value is None:
        return False
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _row_to_product(row: Dict[str, Any]) -> Product:
    """Build a Product from one CSV record (NaN already mapped to None)."""
    price = row["price"]
    amount = float(price) if price is not None else math.nan
    if not math.isfinite(amount) or amount < 0 or amount != int(amount):
        raise CatalogError(f"Product {row['id']!r} has invalid price {price!r}")

    rating = float(row.get("rating") or 0.0)
    return Product(
        id=str(row["id"]),
        name=str(row["name"]),
        price=int(amount),
        category=str(row["category"]),
        image=str(row["image"]),
        rating=min(max(rating, 0.0), 5.0),
        reviews=int(row.get("reviews") or 0),
        short_description=_optional_str(row.get("short_description")) or "",
        full_description=_optional_str(row.get("full_description")),
        is_new=_as_bool(row.get("is_new")),
        is_best_seller=_as_bool(row.get("is_best_seller")),
    )


class Catalog:
    """Ordered, read-only collection of products plus the category list."""

    def __init__(self, products: List[Product], categories: Optional[List[str]] = None):
        ids = [p.id for p in products]
        if len(ids) != len(set(ids)):
            raise CatalogError("Duplicate product ids in catalog")

        self._products = tuple(products)
        self._by_id = {p.id: p for p in products}
        self.categories = list(categories or CATEGORIES)
        if not self.categories or self.categories[0] != ALL_CATEGORIES:
            self.categories.insert(0, ALL_CATEGORIES)

        unknown = sorted({p.category for p in products} - set(self.categories))
        if unknown:
            logger.warning("Catalog has products in unlisted categories: %s", ", ".join(unknown))

    @property
    def products(self) -> tuple:
        return self._products

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def by_category(self, category: str) -> List[Product]:
        """Products in a category, catalog order preserved.

        The "All Categories" sentinel returns the whole catalog.
        """
        if category == ALL_CATEGORIES:
            return list(self._products)
        return [p for p in self._products if p.category == category]

    def __len__(self) -> int:
        return len(self._products)


def load_catalog(path: Union[str, Path] = CATALOG_PATH) -> Catalog:
    """Load the product catalog from CSV.

    Args:
        path: Path to product CSV file.

    Returns:
        Catalog with products in file order.

    Raises:
        CatalogError: If required columns are missing or a row is invalid.
    """
    df = pd.read_csv(path, dtype={"id": str})

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CatalogError(f"Catalog {path} is missing columns: {', '.join(missing)}")

    df = df.astype(object).where(pd.notna(df), None)
    products = [_row_to_product(row) for row in df.to_dict(orient="records")]

    logger.info("Loaded %d products from %s", len(products), path)
    return Catalog(products)
