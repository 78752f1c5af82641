"""Application state controller for one shopper session.

Owns navigation, the category filter, the cart and its drawer, the selected
product and the AI-generated copy for it. Every page interaction goes through
one of the operations below; the page only ever reads ``snapshot()``.

AI copy is fetched outside this object. Callers take a token from
``begin_ai_request()``, call the gateway, then hand the result back through
``apply_ai_content()``. Each product selection bumps the token, so a response
started for an earlier product is dropped instead of overwriting the copy of
the product now on screen.
"""

import logging
from typing import Any, Dict, List, Optional

from .catalog import Catalog
from .config import ALL_CATEGORIES, CHECKOUT_STATES, PAYMENT_METHODS
from .formatting import format_price, star_count
from .logging_utils import log_interaction
from .models import AIContent, Cart, Product, View

__all__ = ["StoreState", "InvalidTransition"]

logger = logging.getLogger(__name__)


class InvalidTransition(Exception):
    """Raised when a navigation request is not allowed from the current view."""

    def __init__(self, current: View, target: View):
        super().__init__(f"Cannot navigate from {current.value} to {target.value}")
        self.current = current
        self.target = target


class StoreState:
    """Session-lived storefront state.

    Args:
        catalog: Read-only product catalog shared by all sessions.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.view = View.HOME
        self.active_category = ALL_CATEGORIES
        self.cart = Cart()
        self.cart_open = False
        self.selected_product: Optional[Product] = None
        self.ai_content: Optional[AIContent] = None
        self.ai_loading = False
        self.ai_generation = 0

    # ---------- CART ----------

    def add_to_cart(self, product: Product) -> None:
        self.cart.add(product)
        self.cart_open = True

    def remove_from_cart(self, product_id: str) -> None:
        self.cart.remove(product_id)

    def update_quantity(self, product_id: str, delta: int) -> None:
        self.cart.update_quantity(product_id, delta)

    def open_cart(self) -> None:
        self.cart_open = True

    def close_cart(self) -> None:
        self.cart_open = False

    def cart_total(self) -> int:
        return self.cart.total()

    def cart_count(self) -> int:
        return self.cart.count()

    # ---------- CATALOG BROWSING ----------

    def set_category_filter(self, category: str) -> None:
        self.active_category = category

    def filtered_products(self) -> List[Product]:
        return self.catalog.by_category(self.active_category)

    def select_product(self, product: Product) -> None:
        """Show a product's detail page.

        Copy for the previous product is cleared here, before any pending
        generation can finish, and the token moves on so that pending result
        is ignored when it lands.
        """
        self.selected_product = product
        self.ai_content = None
        self.ai_loading = False
        self.ai_generation += 1
        self.view = View.PRODUCT_DETAILS

    # ---------- NAVIGATION ----------

    def navigate_home(self) -> None:
        self.view = View.HOME

    def navigate_back(self) -> None:
        """Leave product details or checkout for the home page."""
        self.view = View.HOME

    def navigate_to_checkout(self) -> None:
        if self.view is not View.HOME:
            raise InvalidTransition(self.view, View.CHECKOUT)
        self.view = View.CHECKOUT

    def checkout(self) -> None:
        """Checkout from the cart drawer: close it and show the checkout page."""
        self.cart_open, self.view = False, View.CHECKOUT

    # ---------- AI CONTENT ----------

    def begin_ai_request(self) -> int:
        """Mark copy generation as in flight for the selected product.

        Returns:
            Token identifying the current selection.

        Raises:
            LookupError: If no product is selected.
        """
        if self.selected_product is None:
            raise LookupError("No product selected")
        self.ai_loading = True
        return self.ai_generation

    def apply_ai_content(self, token: int, content: Optional[AIContent]) -> bool:
        """Store a generation result if it still belongs to the selected product.

        Args:
            token: Value returned by begin_ai_request() for this fetch.
            content: Gateway result, or None when generation failed.

        Returns:
            True if the result was applied, False if it was stale.
        """
        if token != self.ai_generation:
            log_interaction(
                "stale_ai_response",
                {"token": token, "current_token": self.ai_generation, "had_content": content is not None},
            )
            logger.debug("Dropping AI result for token %d (current %d)", token, self.ai_generation)
            return False

        self.ai_content = content
        self.ai_loading = False
        return True

    # ---------- PRESENTATION ----------

    def snapshot(self) -> Dict[str, Any]:
        """Everything the page needs to render, as JSON-ready data."""
        total = self.cart_total()
        data: Dict[str, Any] = {
            "view": self.view.value,
            "categories": list(self.catalog.categories),
            "active_category": self.active_category,
            "products": [_product_view(p) for p in self.filtered_products()],
            "cart": {
                "open": self.cart_open,
                "items": [
                    {**item.to_dict(), "line_total_display": format_price(item.line_total)}
                    for item in self.cart
                ],
                "count": self.cart_count(),
                "total": total,
                "total_display": format_price(total),
            },
            "selected_product": _product_view(self.selected_product) if self.selected_product else None,
            "ai_content": self.ai_content.to_dict() if self.ai_content else None,
            "ai_loading": self.ai_loading,
        }
        if self.view is View.CHECKOUT:
            data["checkout"] = {
                "total_due": total,
                "total_due_display": format_price(total),
                "states": list(CHECKOUT_STATES),
                "payment_methods": list(PAYMENT_METHODS),
            }
        return data


def _product_view(product: Product) -> Dict[str, Any]:
    data = product.to_dict()
    data["price_display"] = format_price(product.price)
    data["stars"] = star_count(product.rating)
    return data
