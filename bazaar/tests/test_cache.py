"""Test the session image cache and hero image loader."""

import sqlite3
import threading
from unittest.mock import MagicMock

import pytest

from bazaar.cache import HeroImageService, MemoryImageCache, SqliteImageCache, make_image_cache

IMAGE = "data:image/png;base64,AAAA"
FALLBACK = "https://example.com/fallback.jpg"


@pytest.fixture
def image_gateway():
    gateway = MagicMock()
    gateway.generate_marketing_image.return_value = IMAGE
    return gateway


@pytest.fixture
def hero(image_gateway):
    return HeroImageService(image_gateway, MemoryImageCache(), prompt="market", fallback_url=FALLBACK)


class TestImageCaches:
    """Tests for cache backends."""

    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_get_set(self, backend, tmp_path):
        """Test basic get/set on each backend."""
        cache = make_image_cache(backend, tmp_path / "cache.db")
        assert cache.get("k") is None
        cache.set("k", "v1")
        cache.set("k", "v2")
        assert cache.get("k") == "v2"

    def test_sqlite_survives_reopen(self, tmp_path):
        """Test sqlite entries persist across cache instances."""
        db_path = tmp_path / "nested" / "cache.db"
        SqliteImageCache(db_path).set("hero", IMAGE)
        assert SqliteImageCache(db_path).get("hero") == IMAGE

    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_delete(self, backend, tmp_path):
        """Test deleting a key, including one that was never stored."""
        cache = make_image_cache(backend, tmp_path / "cache.db")
        cache.set("k", "v")
        cache.delete("k")
        cache.delete("missing")
        assert cache.get("k") is None

    def test_sqlite_purges_old_rows(self, tmp_path):
        """Test rows older than the max age are dropped and fresh ones kept."""
        db_path = tmp_path / "cache.db"
        cache = SqliteImageCache(db_path)
        cache.set("fresh", IMAGE)
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO image_cache (key, value, created_at) VALUES (?, ?, datetime('now', '-2 hours'))",
                ("stale", IMAGE),
            )

        assert cache.purge_older_than(3600) == 1
        assert cache.get("stale") is None
        assert cache.get("fresh") == IMAGE

    def test_sqlite_purges_on_open(self, tmp_path):
        """Test a max age given at open time purges leftovers from earlier runs."""
        db_path = tmp_path / "cache.db"
        SqliteImageCache(db_path)
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO image_cache (key, value, created_at) VALUES (?, ?, datetime('now', '-1 day'))",
                ("old-session:lagos_bazaar_hero", IMAGE),
            )

        cache = make_image_cache("sqlite", db_path, max_age_seconds=3600)
        assert cache.get("old-session:lagos_bazaar_hero") is None

    def test_unknown_backend(self, tmp_path):
        """Test an unknown backend name is rejected."""
        with pytest.raises(ValueError):
            make_image_cache("redis", tmp_path / "cache.db")


class TestHeroImageService:
    """Tests for check-then-fetch-then-store hero loading."""

    def test_first_call_generates_and_stores(self, hero, image_gateway):
        """Test the first request generates and caches the image."""
        result = hero.hero_image("s1")

        assert result.status == "generated"
        assert result.url == IMAGE
        assert hero.cache.get(hero.cache_key("s1")) == IMAGE
        image_gateway.generate_marketing_image.assert_called_once_with("market")

    def test_second_call_uses_cache(self, hero, image_gateway):
        """Test generation runs at most once per session."""
        hero.hero_image("s1")
        result = hero.hero_image("s1")

        assert result.status == "cached"
        assert result.generated is True
        assert image_gateway.generate_marketing_image.call_count == 1

    def test_sessions_are_separate(self, hero, image_gateway):
        """Test that each session gets its own cache slot."""
        hero.hero_image("s1")
        hero.hero_image("s2")
        assert image_gateway.generate_marketing_image.call_count == 2

    def test_failure_returns_fallback_and_does_not_cache(self, hero, image_gateway):
        """Test that a failed generation serves the static image and retries next time."""
        image_gateway.generate_marketing_image.return_value = None

        result = hero.hero_image("s1")

        assert result.status == "fallback"
        assert result.url == FALLBACK
        assert result.generated is False
        assert hero.cache.get(hero.cache_key("s1")) is None

    def test_cache_checked_before_gateway(self, image_gateway):
        """Test a pre-filled cache means the gateway is never called."""
        cache = MemoryImageCache()
        service = HeroImageService(image_gateway, cache, fallback_url=FALLBACK)
        cache.set(service.cache_key("s1"), IMAGE)

        assert service.hero_image("s1").url == IMAGE
        image_gateway.generate_marketing_image.assert_not_called()

    def test_no_duplicate_fetch_while_in_flight(self, hero, image_gateway):
        """Test a second request during generation does not start another one."""
        started = threading.Event()
        release = threading.Event()

        def slow_generate(prompt):
            started.set()
            release.wait(timeout=5)
            return IMAGE

        image_gateway.generate_marketing_image.side_effect = slow_generate
        results = {}
        worker = threading.Thread(target=lambda: results.setdefault("first", hero.hero_image("s1")))
        worker.start()
        assert started.wait(timeout=5)

        second = hero.hero_image("s1")
        release.set()
        worker.join(timeout=5)

        assert second.status == "pending"
        assert second.url == FALLBACK
        assert results["first"].status == "generated"
        assert image_gateway.generate_marketing_image.call_count == 1
        assert hero.hero_image("s1").status == "cached"

    def test_in_flight_cleared_after_error(self, hero, image_gateway):
        """Test an exception from the gateway does not leave the key stuck as pending."""
        image_gateway.generate_marketing_image.side_effect = [RuntimeError("boom"), IMAGE]

        with pytest.raises(RuntimeError):
            hero.hero_image("s1")

        assert hero.hero_image("s1").status == "generated"

    def test_forget_drops_session_image(self, hero, image_gateway):
        """Test a forgotten session regenerates on its next visit."""
        hero.hero_image("s1")
        hero.hero_image("s2")

        hero.forget("s1")

        assert hero.cache.get(hero.cache_key("s1")) is None
        assert hero.cache.get(hero.cache_key("s2")) == IMAGE
        assert hero.hero_image("s1").status == "generated"
