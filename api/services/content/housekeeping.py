# api/services/content/housekeeping.py
"""Cache size accounting and purge operations."""

import logging

from .disk_cache import DiskCacheStore
from .memory_cache import ContentMemoryCache

logger = logging.getLogger(__name__)


class CacheHousekeeping:
    def __init__(self, disk_cache: DiskCacheStore, memory: ContentMemoryCache):
        self.disk_cache = disk_cache
        self.memory = memory

    def purge_all(self) -> None:
        """Clear memory caches and empty the whole cache root."""
        self.memory.clear_all()
        self.disk_cache.purge_all()
        logger.info("All caches cleared")

    def purge_chapters(self) -> None:
        """Clear chapter caches; the catalog snapshot is kept."""
        self.memory.clear_chapters()
        self.disk_cache.purge_chapters()
        logger.info("Chapter caches cleared")

    def size_in_bytes(self) -> int:
        return self.disk_cache.size_in_bytes()

    def cache_stats(self) -> dict:
        """
        Return cache statistics.

        Returns:
            {
                "total_size_bytes": 456789,
                "total_size_mb": 0.44,
                "chapter_files": 120,
                "has_catalog": True,
                "memory": {"chapters": 12, "hits": 40, ...},
            }
        """
        storage = self.disk_cache.storage
        chapter_files = 0
        if storage.chapters_path.exists():
            chapter_files = sum(1 for p in storage.chapters_path.rglob("*") if p.is_file())

        total = self.size_in_bytes()
        return {
            "total_size_bytes": total,
            "total_size_mb": round(total / (1024 * 1024), 2),
            "chapter_files": chapter_files,
            "has_catalog": storage.catalog_path.is_file(),
            "memory": self.memory.stats(),
        }
