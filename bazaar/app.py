"""Flask web app for the LagosBazaar storefront.

Serves the single-page store: catalog browsing, cart, checkout stub and
AI-generated product copy grounded in the product the shopper is viewing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, render_template

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from .cache import HeroImageService, ImageCache, make_image_cache  # noqa: E402
from .catalog import Catalog, load_catalog  # noqa: E402
from .config import (  # noqa: E402
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    HERO_FALLBACK_IMAGE,
    IMAGE_CACHE_BACKEND,
    IMAGE_CACHE_DB,
    MAX_SESSIONS,
    SECRET_KEY,
    SESSION_TTL_SECONDS,
)
from .gateway import ContentGateway  # noqa: E402
from .logging_utils import setup_logging  # noqa: E402
from .sessions import SessionRegistry  # noqa: E402

__all__ = ["create_app", "main", "Storefront", "EXTENSION_KEY"]

logger = logging.getLogger(__name__)

EXTENSION_KEY = "bazaar"


@dataclass
class Storefront:
    """Collaborators shared by every request, stored on the Flask app."""

    catalog: Catalog
    sessions: SessionRegistry
    gateway: ContentGateway
    hero: HeroImageService


def create_app(
    catalog: Optional[Catalog] = None,
    gateway: Optional[ContentGateway] = None,
    image_cache: Optional[ImageCache] = None,
) -> Flask:
    """Build the Flask app with its catalog, gateway and image cache.

    Anything not passed in is built from configuration.
    """
    if catalog is None:
        catalog = load_catalog()
    if gateway is None:
        gateway = ContentGateway()
    if image_cache is None:
        image_cache = make_image_cache(IMAGE_CACHE_BACKEND, IMAGE_CACHE_DB, max_age_seconds=SESSION_TTL_SECONDS)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = SECRET_KEY
    hero = HeroImageService(gateway, image_cache)
    app.extensions[EXTENSION_KEY] = Storefront(
        catalog=catalog,
        sessions=SessionRegistry(
            catalog, ttl_seconds=SESSION_TTL_SECONDS, max_sessions=MAX_SESSIONS, on_evict=hero.forget
        ),
        gateway=gateway,
        hero=hero,
    )

    from .api import api, session_state

    app.register_blueprint(api)

    @app.route("/", methods=["GET"])
    def index() -> str:
        """Render the storefront page with the session's current state."""
        with session_state() as state:
            snapshot = state.snapshot()
        return render_template("index.html", state=snapshot, hero_fallback=HERO_FALLBACK_IMAGE)

    logger.info("Storefront ready with %d products (AI %s)", len(catalog), "on" if gateway.enabled else "off")
    return app


def main() -> None:
    """Run the development server."""
    setup_logging()
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)


if __name__ == "__main__":
    main()
