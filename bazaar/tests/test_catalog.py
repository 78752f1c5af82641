"""Test catalog loading and display helpers."""

from pathlib import Path

import pytest

from bazaar.catalog import CATEGORIES, Catalog, CatalogError, load_catalog
from bazaar.config import ALL_CATEGORIES
from bazaar.formatting import format_price, star_count
from bazaar.models import Product


class TestLoadCatalog:
    """Tests for CSV loading."""

    def test_products_in_file_order(self, catalog):
        """Test products keep CSV order."""
        assert [p.id for p in catalog.products] == ["p1", "p2", "p3", "p4", "p5"]

    def test_fields_parsed(self, catalog):
        """Test types and optional fields are converted."""
        p1 = catalog.get("p1")
        assert p1.price == 5000 and isinstance(p1.price, int)
        assert p1.rating == 4.5
        assert p1.reviews == 312
        assert p1.is_new is True
        assert p1.is_best_seller is True
        assert p1.full_description is None

        p2 = catalog.get("p2")
        assert p2.full_description == "Hand wash cold."
        assert p2.is_new is False

    def test_unknown_id(self, catalog):
        """Test lookup of a missing id returns None."""
        assert catalog.get("missing") is None

    def test_categories_start_with_sentinel(self, catalog):
        """Test the category list always starts with All Categories."""
        assert catalog.categories[0] == ALL_CATEGORIES
        assert catalog.categories == CATEGORIES

    def test_bundled_catalog_loads(self):
        """Test the shipped data file is valid."""
        path = Path(__file__).resolve().parents[2] / "data" / "products.csv"
        bundled = load_catalog(path)
        assert len(bundled) > 0
        assert {p.category for p in bundled.products} <= set(CATEGORIES)

    def test_missing_columns(self, tmp_path):
        """Test a CSV without required columns is rejected."""
        path = tmp_path / "bad.csv"
        path.write_text("id,name\np1,Thing\n")
        with pytest.raises(CatalogError):
            load_catalog(path)

    @pytest.mark.parametrize("price", ["-5", "12.5", "inf", "nan"])
    def test_invalid_price(self, tmp_path, price):
        """Test negative, fractional or non-finite prices are rejected."""
        path = tmp_path / "bad.csv"
        path.write_text(f"id,name,price,category,image\np1,Thing,{price},Fashion,x.jpg\n")
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_duplicate_ids(self):
        """Test duplicate product ids are rejected."""
        product = Product(id="p1", name="A", price=1, category="Fashion", image="x.jpg")
        with pytest.raises(CatalogError):
            Catalog([product, product])


class TestFormatting:
    """Tests for price and rating display."""

    @pytest.mark.parametrize(
        "amount,expected",
        [(0, "₦0"), (950, "₦950"), (5000, "₦5,000"), (315000, "₦315,000"), (1250000, "₦1,250,000")],
    )
    def test_format_price(self, amount, expected):
        """Test thousands separators and currency symbol."""
        assert format_price(amount) == expected

    @pytest.mark.parametrize(
        "rating,stars",
        [(0, 0), (3.9, 3), (4.5, 4), (5, 5), (7, 5), (-1, 0)],
    )
    def test_star_count(self, rating, stars):
        """Test partial stars round down and stay within 0-5."""
        assert star_count(rating) == stars
