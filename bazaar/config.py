"""Centralized configuration for the LagosBazaar storefront."""

import os
from pathlib import Path

# Determine project root (parent of 'bazaar' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# Catalog
CATALOG_PATH = os.getenv("CATALOG_PATH", str(_PROJECT_ROOT / "data" / "products.csv"))
ALL_CATEGORIES = "All Categories"
CURRENCY_SYMBOL = "₦"

# Generative content service. API_KEY is accepted for older .env files.
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or os.getenv("API_KEY")
TEXT_MODEL = os.getenv("TEXT_MODEL", "gpt-5-mini")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gpt-image-1")
GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT", "60"))

# Hero banner
HERO_ASPECT_RATIO = "16:9"
HERO_CACHE_KEY = "lagos_bazaar_hero"
HERO_PROMPT = (
    "Front view of a modern Nigerian marketplace called 'LagosBazaar', vibrant and "
    "colorful storefront, African style decorations, people shopping and walking "
    "around, stalls with hair products, beauty items, electronics, and clothing, "
    "sunny day, lively atmosphere, urban Lagos background, high detail, realistic, "
    "wide angle, warm and welcoming vibe, cinematic lighting, realistic textures, "
    "8k resolution"
)
HERO_FALLBACK_IMAGE = (
    "https://images.unsplash.com/photo-1542291026-7eec264c27ff"
    "?auto=format&fit=crop&w=1950&q=80"
)

# Session image cache: "memory" or "sqlite"
IMAGE_CACHE_BACKEND = os.getenv("IMAGE_CACHE_BACKEND", "memory").lower()
IMAGE_CACHE_DB = os.getenv("IMAGE_CACHE_DB", str(_PROJECT_ROOT / "data" / "cache.db"))

# Idle shopper sessions are dropped after this many seconds, oldest first once
# MAX_SESSIONS are held. Their cached hero images go with them.
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "3600"))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))

# Checkout stub options
CHECKOUT_STATES = ["Lagos", "Abuja", "Rivers", "Oyo"]
PAYMENT_METHODS = ["Paystack", "Flutterwave", "Bank Transfer"]

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
SECRET_KEY = os.getenv("SECRET_KEY", "lagos-bazaar-dev-key")

# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", str(_PROJECT_ROOT / "logs")))
