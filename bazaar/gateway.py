"""Gateway to the generative-content service.

Two calls are exposed: marketing copy for a product and the hero banner image.
Both return None instead of raising. A missing API key, a network error, a
refusal or a malformed payload all look the same to callers, who fall back to
static content.
"""

import base64
import binascii
import json
import logging
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

from openai import OpenAI
from PIL import Image, UnidentifiedImageError

from .config import GATEWAY_TIMEOUT, HERO_ASPECT_RATIO, IMAGE_MODEL, OPENAI_API_KEY, TEXT_MODEL
from .logging_utils import log_interaction
from .models import AIContent
from .timing import timer

__all__ = [
    "ContentGateway",
    "parse_product_content",
    "size_for_aspect_ratio",
    "PRODUCT_CONTENT_SCHEMA",
]

logger = logging.getLogger(__name__)

FEATURE_COUNT = (3, 4)
SEO_TAG_COUNT = 5

PRODUCT_CONTENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "salesPitch": {"type": "string"},
        "keyFeatures": {"type": "array", "items": {"type": "string"}},
        "seoTags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["salesPitch", "keyFeatures", "seoTags"],
    "additionalProperties": False,
}

# Landscape, square and portrait sizes offered by the image endpoint.
IMAGE_SIZES: Dict[str, Tuple[int, int]] = {
    "1536x1024": (1536, 1024),
    "1024x1024": (1024, 1024),
    "1024x1536": (1024, 1536),
}


def make_product_content_prompt(product_name: str, category: str) -> str:
    return f"""You are an expert Nigerian marketing copywriter.
Create catchy, localized content for a product named "{product_name}" in the category "{category}".

Requirements:
1. 'salesPitch': A persuasive paragraph (approx 50 words) mixing professional English with a touch of Nigerian Pidgin flavor to make it relatable (e.g., use words like "correct", "durable", "shines").
2. 'keyFeatures': {FEATURE_COUNT[0]}-{FEATURE_COUNT[1]} bullet points of realistic features for this type of product.
3. 'seoTags': exactly {SEO_TAG_COUNT} relevant SEO keywords for a Nigerian e-commerce store.
"""


def _clean_strings(value: Any) -> Optional[Tuple[str, ...]]:
    if not isinstance(value, list):
        return None
    if not all(isinstance(item, str) and item.strip() for item in value):
        return None
    return tuple(item.strip() for item in value)


def parse_product_content(raw: Optional[str]) -> Optional[AIContent]:
    """Validate a raw JSON payload from the service.

    All three fields must be present and well-formed, otherwise nothing is
    returned; copy is never half-filled.

    Args:
        raw: JSON text returned by the service.

    Returns:
        AIContent, or None if the payload is missing or malformed.
    """
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    pitch = data.get("salesPitch")
    features = _clean_strings(data.get("keyFeatures"))
    tags = _clean_strings(data.get("seoTags"))

    if not isinstance(pitch, str) or not pitch.strip():
        return None
    if features is None or not FEATURE_COUNT[0] <= len(features) <= FEATURE_COUNT[1]:
        return None
    if tags is None or len(tags) != SEO_TAG_COUNT:
        return None

    return AIContent(sales_pitch=pitch.strip(), key_features=features, seo_tags=tags)


def size_for_aspect_ratio(aspect_ratio: str) -> str:
    """Pick the offered image size whose shape is closest to "W:H"."""
    try:
        width, height = (float(part) for part in aspect_ratio.split(":", 1))
        target = width / height
    except (ValueError, ZeroDivisionError):
        raise ValueError(f"Invalid aspect ratio: {aspect_ratio!r}")

    return min(IMAGE_SIZES, key=lambda size: abs(IMAGE_SIZES[size][0] / IMAGE_SIZES[size][1] - target))


def _to_data_uri(b64_payload: str) -> Optional[str]:
    """Turn a base64 image payload into a data URI with its real MIME type."""
    try:
        decoded = base64.b64decode(b64_payload, validate=True)
    except (binascii.Error, ValueError):
        return None

    try:
        with Image.open(BytesIO(decoded)) as img:
            mime_type = Image.MIME.get(img.format or "", "image/png")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return None

    return f"data:{mime_type};base64,{b64_payload}"


class ContentGateway:
    """Stateless client for generated product copy and marketing images.

    Args:
        api_key: Service credential. Without one every call returns None.
        client: Pre-built OpenAI client (tests inject a mock here).
    """

    def __init__(
        self,
        api_key: Optional[str] = OPENAI_API_KEY,
        client: Optional[OpenAI] = None,
        text_model: str = TEXT_MODEL,
        image_model: str = IMAGE_MODEL,
        timeout: float = GATEWAY_TIMEOUT,
    ):
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout)
        self._client = client
        self.text_model = text_model
        self.image_model = image_model

        if self._client is None:
            logger.warning("OpenAI API key not found; AI product content and hero images are disabled")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def generate_product_content(self, product_name: str, category: str) -> Optional[AIContent]:
        """Generate a sales pitch, key features and SEO tags for a product.

        One request per call; no retries and no caching.
        """
        if self._client is None:
            return None

        prompt = make_product_content_prompt(product_name, category)
        log_interaction(
            "gateway_call",
            {"stage": "product_content", "model": self.text_model, "product_name": product_name, "category": category},
        )

        try:
            with timer("gateway_product_content"):
                resp = self._client.responses.create(
                    model=self.text_model,
                    input=[{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
                    text={
                        "format": {
                            "type": "json_schema",
                            "name": "product_content",
                            "schema": PRODUCT_CONTENT_SCHEMA,
                            "strict": True,
                        }
                    },
                )
            raw = resp.output_text
        except Exception as e:
            log_interaction("gateway_error", {"error": str(e), "stage": "product_content"})
            logger.exception("Error generating content for %s", product_name)
            return None

        log_interaction("gateway_response", {"stage": "product_content", "model": self.text_model, "raw_response": raw})

        content = parse_product_content(raw)
        if content is None:
            log_interaction("gateway_parse_error", {"stage": "product_content", "raw": raw})
            logger.warning("Malformed product content returned for %s", product_name)
        return content

    def generate_marketing_image(self, prompt: str, aspect_ratio: str = HERO_ASPECT_RATIO) -> Optional[str]:
        """Generate an image and return the first payload as a data URI."""
        if self._client is None:
            return None

        size = size_for_aspect_ratio(aspect_ratio)
        log_interaction(
            "gateway_call",
            {"stage": "marketing_image", "model": self.image_model, "aspect_ratio": aspect_ratio, "size": size},
        )

        try:
            with timer("gateway_marketing_image"):
                resp = self._client.images.generate(model=self.image_model, prompt=prompt, size=size, n=1)
        except Exception as e:
            log_interaction("gateway_error", {"error": str(e), "stage": "marketing_image"})
            logger.exception("Error generating marketing image")
            return None

        for item in resp.data or []:
            payload = getattr(item, "b64_json", None)
            if payload:
                data_uri = _to_data_uri(payload)
                if data_uri is None:
                    log_interaction("gateway_parse_error", {"stage": "marketing_image"})
                    logger.warning("Image payload could not be decoded")
                return data_uri

        log_interaction("gateway_parse_error", {"stage": "marketing_image", "reason": "no image payload"})
        return None
