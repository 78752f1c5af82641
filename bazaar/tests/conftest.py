"""Shared test fixtures and utilities for the storefront test suite."""

import base64
import json
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image

from bazaar.app import create_app
from bazaar.cache import MemoryImageCache
from bazaar.catalog import load_catalog
from bazaar.gateway import ContentGateway
from bazaar.state import StoreState


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep JSONL interaction logs out of the repository during tests."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr("bazaar.logging_utils.LOG_DIR", log_dir)
    return log_dir


@pytest.fixture
def mock_csv_path(tmp_path):
    """Create a temporary CSV with sample products."""
    csv_content = """id,name,price,category,image,rating,reviews,short_description,full_description,is_new,is_best_seller
p1,Tecno Camon 30,5000,Phones & Tablets,https://example.com/p1.jpg,4.5,312,Big battery phone,,true,true
p2,Adire Kaftan,18500,Fashion,https://example.com/p2.jpg,4.8,97,Indigo kaftan,Hand wash cold.,false,true
p3,Oraimo FreePods,24900,Electronics,https://example.com/p3.jpg,4.3,541,Wireless earbuds,,true,false
p4,Ankara Sneakers,27000,Fashion,https://example.com/p4.jpg,4.2,58,Printed sneakers,,false,false
p5,Ofada Rice 5kg,12500,Groceries,https://example.com/p5.jpg,4.4,76,Local rice,,false,false
"""
    csv_file = tmp_path / "test_products.csv"
    csv_file.write_text(csv_content, encoding="utf-8")
    return str(csv_file)


@pytest.fixture
def catalog(mock_csv_path):
    return load_catalog(mock_csv_path)


@pytest.fixture
def state(catalog):
    return StoreState(catalog)


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client for testing without API calls."""
    return MagicMock()


@pytest.fixture
def valid_content_json():
    return json.dumps(
        {
            "salesPitch": "This phone correct well well. Battery go last you all day.",
            "keyFeatures": ["5000mAh battery", "50MP camera", "Fast charging"],
            "seoTags": ["tecno", "phone", "lagos", "android", "camera phone"],
        }
    )


@pytest.fixture
def png_base64():
    """A tiny real PNG, base64 encoded like the image endpoint returns it."""
    buf = BytesIO()
    Image.new("RGB", (4, 2), color=(0, 135, 81)).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def gateway(mock_openai_client):
    return ContentGateway(client=mock_openai_client)


@pytest.fixture
def offline_gateway():
    return ContentGateway(api_key=None)


@pytest.fixture
def app(catalog, gateway):
    """Flask app wired to the sample catalog and a mocked gateway."""
    flask_app = create_app(catalog=catalog, gateway=gateway, image_cache=MemoryImageCache())
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client
