"""JSON API behind the storefront page.

Every endpoint works on the caller's session state and answers with the
fresh snapshot, so the page re-renders from one source of truth:

    {"state": {...snapshot...}}

Errors use {"error": "..."} with 400 (bad input), 404 (unknown product) or
409 (action not allowed in the current view).
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request, session

from .logging_utils import log_interaction
from .models import Product
from .sessions import new_session_id
from .state import InvalidTransition, StoreState
from .timing import get_timings, reset_timings

__all__ = ["api", "session_state"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

ApiResponse = Union[Tuple[Response, int], Response]


def _storefront():
    return current_app.extensions["bazaar"]


def _session_id() -> str:
    """Session id from the signed cookie, issuing one on first visit."""
    sid = session.get("sid")
    if not sid:
        sid = new_session_id()
        session["sid"] = sid
    return sid


@contextmanager
def session_state() -> Iterator[StoreState]:
    """Lock and yield the current shopper's state."""
    with _storefront().sessions.session(_session_id()) as state:
        yield state


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


def _find_product(product_id: str) -> Optional[Product]:
    return _storefront().catalog.get(product_id)


def _state_response(state: StoreState, **extra: Any) -> Response:
    return jsonify({"state": state.snapshot(), **extra})


# ---------- READS ----------


@api.route("/state", methods=["GET"])
def get_state() -> Response:
    with session_state() as state:
        return _state_response(state)


@api.route("/categories", methods=["GET"])
def list_categories() -> Response:
    return jsonify({"categories": list(_storefront().catalog.categories)})


@api.route("/products", methods=["GET"])
def list_products() -> Response:
    """Products under the session's active category filter."""
    with session_state() as state:
        return jsonify(
            {
                "category": state.active_category,
                "products": [p.to_dict() for p in state.filtered_products()],
            }
        )


# ---------- BROWSING ----------


@api.route("/filter", methods=["POST"])
def set_filter() -> ApiResponse:
    category = _json_body().get("category")
    if not isinstance(category, str) or not category.strip():
        return _error("category must be a non-empty string", 400)

    with session_state() as state:
        state.set_category_filter(category.strip())
        return _state_response(state)


@api.route("/products/<product_id>/select", methods=["POST"])
def select_product(product_id: str) -> ApiResponse:
    product = _find_product(product_id)
    if product is None:
        return _error(f"Unknown product: {product_id}", 404)

    with session_state() as state:
        state.select_product(product)
        return _state_response(state)


@api.route("/navigate", methods=["POST"])
def navigate() -> ApiResponse:
    """Body: {"to": "home" | "back" | "checkout"}."""
    target = _json_body().get("to")
    with session_state() as state:
        try:
            if target == "home":
                state.navigate_home()
            elif target == "back":
                state.navigate_back()
            elif target == "checkout":
                state.navigate_to_checkout()
            else:
                return _error("to must be one of: home, back, checkout", 400)
        except InvalidTransition as e:
            return _error(str(e), 409)
        return _state_response(state)


# ---------- CART ----------


@api.route("/cart", methods=["POST"])
def add_to_cart() -> ApiResponse:
    product_id = _json_body().get("product_id")
    if not isinstance(product_id, str):
        return _error("product_id must be a string", 400)

    product = _find_product(product_id)
    if product is None:
        return _error(f"Unknown product: {product_id}", 404)

    with session_state() as state:
        state.add_to_cart(product)
        return _state_response(state)


@api.route("/cart/<product_id>", methods=["PATCH"])
def update_quantity(product_id: str) -> ApiResponse:
    delta = _json_body().get("delta")
    if isinstance(delta, bool) or not isinstance(delta, int):
        return _error("delta must be an integer", 400)

    with session_state() as state:
        state.update_quantity(product_id, delta)
        return _state_response(state)


@api.route("/cart/<product_id>", methods=["DELETE"])
def remove_from_cart(product_id: str) -> Response:
    with session_state() as state:
        state.remove_from_cart(product_id)
        return _state_response(state)


@api.route("/cart/open", methods=["POST"])
def open_cart() -> Response:
    with session_state() as state:
        state.open_cart()
        return _state_response(state)


@api.route("/cart/close", methods=["POST"])
def close_cart() -> Response:
    with session_state() as state:
        state.close_cart()
        return _state_response(state)


@api.route("/checkout", methods=["POST"])
def checkout() -> Response:
    with session_state() as state:
        state.checkout()
        return _state_response(state)


# ---------- AI CONTENT ----------


@api.route("/ai/generate", methods=["POST"])
def generate_ai_content() -> ApiResponse:
    """Generate copy for the selected product.

    The gateway call runs without holding the session lock. If the shopper
    picked another product meanwhile, the result is dropped and "applied" is
    false in the response.
    """
    reset_timings()
    store = _storefront()
    sid = _session_id()

    with store.sessions.session(sid) as state:
        product = state.selected_product
        if product is None:
            return _error("No product selected", 409)
        token = state.begin_ai_request()

    content = None
    try:
        content = store.gateway.generate_product_content(product.name, product.category)
    finally:
        # Always settle the request so ai_loading cannot stay stuck
        with store.sessions.session(sid) as state:
            applied = state.apply_ai_content(token, content)

    with store.sessions.session(sid) as state:
        log_interaction(
            "ai_content_request",
            {
                "product_id": product.id,
                "generated": content is not None,
                "applied": applied,
                "timings": get_timings(),
            },
        )
        return _state_response(state, applied=applied, generated=content is not None)


@api.route("/hero-image", methods=["GET"])
def hero_image() -> Response:
    """Hero banner for this session: generated once, then served from cache."""
    store = _storefront()
    sid = _session_id()
    # Registered so that evicting the session also frees its cached image
    store.sessions.touch(sid)
    hero = store.hero.hero_image(sid)
    return jsonify({"status": hero.status, "image": hero.url, "generated": hero.generated})
