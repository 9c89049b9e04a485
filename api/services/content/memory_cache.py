# api/services/content/memory_cache.py
"""
Process-wide in-memory caches for the catalog and resolved chapters.

One ContentMemoryCache is owned by a ContentService and shared by its
resolvers. All access goes through this object's lock, so callers never
lock at call sites. Duplicate concurrent fetches for one key are allowed;
the last writer wins with an identical value.
"""

import threading
from typing import Any, Dict, Optional

from .models import Catalog, Verse


class ContentMemoryCache:
    """Lock-guarded catalog slot plus chapter map keyed by cache key."""

    def __init__(self):
        self._lock = threading.Lock()
        self._catalog: Optional[Catalog] = None
        self._chapters: Dict[str, list[Verse]] = {}
        self._hits = 0
        self._misses = 0

    def get_catalog(self) -> Optional[Catalog]:
        with self._lock:
            return self._catalog

    def set_catalog(self, catalog: Catalog) -> None:
        with self._lock:
            self._catalog = catalog

    def get_chapter(self, key: str) -> Optional[list[Verse]]:
        with self._lock:
            verses = self._chapters.get(key)
            if verses is None:
                self._misses += 1
                return None
            self._hits += 1
            return list(verses)

    def set_chapter(self, key: str, verses: list[Verse]) -> None:
        with self._lock:
            self._chapters[key] = list(verses)

    def clear_chapters(self) -> None:
        with self._lock:
            self._chapters.clear()

    def clear_all(self) -> None:
        with self._lock:
            self._catalog = None
            self._chapters.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "catalog_loaded": self._catalog is not None,
                "chapters": len(self._chapters),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total > 0 else 0,
            }
