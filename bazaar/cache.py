"""Session image cache and the hero banner loader built on it.

Generating the hero image is slow and costs quota, so it runs at most once
per session: the loader checks the cache, fetches, then stores. While one
fetch is running, other requests for the same key get a "pending" answer
instead of starting a second generation.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Set, Union

from .config import HERO_CACHE_KEY, HERO_FALLBACK_IMAGE, HERO_PROMPT
from .gateway import ContentGateway
from .logging_utils import log_interaction

__all__ = [
    "ImageCache",
    "MemoryImageCache",
    "SqliteImageCache",
    "HeroImage",
    "HeroImageService",
    "make_image_cache",
]

logger = logging.getLogger(__name__)


class ImageCache(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryImageCache:
    """Process-local cache; entries go when their session is evicted or the process exits."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SqliteImageCache:
    """Cache persisted in a SQLite file so images survive restarts.

    Args:
        db_path: SQLite file, created with its parent directory if missing.
        max_age_seconds: Rows older than this are purged on open.
    """

    def __init__(self, db_path: Union[Path, str], max_age_seconds: Optional[float] = None):
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_table_exists()
        if max_age_seconds is not None:
            self.purge_older_than(max_age_seconds)

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(self.db_path, timeout=10)
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_table_exists(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS image_cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM image_cache WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO image_cache (key, value) VALUES (?, ?)",
                (key, value),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM image_cache WHERE key = ?", (key,))
            conn.commit()

    def purge_older_than(self, max_age_seconds: float) -> int:
        """Delete rows stored more than max_age_seconds ago; returns the count."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM image_cache WHERE created_at < datetime('now', ?)",
                (f"-{int(max_age_seconds)} seconds",),
            )
            conn.commit()
        if cursor.rowcount:
            logger.info("Purged %d expired image cache entries", cursor.rowcount)
        return cursor.rowcount


def make_image_cache(
    backend: str, db_path: Union[Path, str], max_age_seconds: Optional[float] = None
) -> ImageCache:
    """Build the configured cache backend ("memory" or "sqlite")."""
    if backend == "memory":
        return MemoryImageCache()
    if backend == "sqlite":
        return SqliteImageCache(db_path, max_age_seconds=max_age_seconds)
    raise ValueError(f"Unknown image cache backend: {backend!r}")


@dataclass(frozen=True)
class HeroImage:
    """Hero banner answer.

    status is one of "cached", "generated", "pending" or "fallback"; url is
    always displayable (the static fallback when nothing was generated).
    """

    status: str
    url: str

    @property
    def generated(self) -> bool:
        return self.status in ("cached", "generated")


class HeroImageService:
    def __init__(
        self,
        gateway: ContentGateway,
        cache: ImageCache,
        prompt: str = HERO_PROMPT,
        fallback_url: str = HERO_FALLBACK_IMAGE,
    ):
        self.gateway = gateway
        self.cache = cache
        self.prompt = prompt
        self.fallback_url = fallback_url
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(scope: str) -> str:
        return f"{scope}:{HERO_CACHE_KEY}"

    def hero_image(self, scope: str) -> HeroImage:
        """Return the hero image for a session, generating it on first use.

        Args:
            scope: Session identifier the cached image belongs to.
        """
        key = self.cache_key(scope)

        with self._lock:
            cached = self.cache.get(key)
            if cached:
                log_interaction("hero_cache_hit", {"scope": scope})
                return HeroImage("cached", cached)
            if key in self._in_flight:
                return HeroImage("pending", self.fallback_url)
            self._in_flight.add(key)

        try:
            image = self.gateway.generate_marketing_image(self.prompt)
            if not image:
                return HeroImage("fallback", self.fallback_url)
            self.cache.set(key, image)
            logger.info("Generated hero image for session %s", scope)
            return HeroImage("generated", image)
        finally:
            with self._lock:
                self._in_flight.discard(key)

    def forget(self, scope: str) -> None:
        """Drop a session's cached image once the session has ended."""
        self.cache.delete(self.cache_key(scope))
