"""Display helpers for prices and ratings."""

import math

from .config import CURRENCY_SYMBOL

__all__ = ["format_price", "star_count"]


def format_price(amount: int) -> str:
    """Format a Naira amount with thousands separators, e.g. ₦12,500."""
    return f"{CURRENCY_SYMBOL}{amount:,}"


def star_count(rating: float) -> int:
    """Number of filled stars (0-5) shown for a rating; partial stars round down."""
    if rating is None or math.isnan(rating):
        return 0
    return min(5, max(0, math.floor(rating)))
