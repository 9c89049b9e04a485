# api/services/content/disk_cache.py
"""
On-disk cache for catalog snapshots and resolved chapters.

All writes are whole-file replacements and best-effort: a failed write is
logged and never raised, since the caller already holds the fresh value.
Reads tolerate legacy extension-less chapter files and, for scriptures with
divergent numbering, fall back to the alternate-file strategy.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .alternate_files import AlternateChapterStrategy
from .bundle import decode_catalog, read_json_document, verses_from_document
from .errors import ContentError
from .models import Catalog, Verse
from .normalizer import normalize_verses
from .storage import ContentStorage, write_json_atomic

logger = logging.getLogger(__name__)


def parse_cache_key(key: str) -> tuple[str, str, int]:
    """Split "<scriptureId>/<bookId>/<chapter>" into its parts."""
    scripture_id, book_id, chapter = key.rsplit("/", 2)
    return scripture_id, book_id, int(chapter)


class DiskCacheStore:
    """
    Persists catalog and chapter documents under the content cache root.

    Usage:
        store = DiskCacheStore(ContentStorage())
        store.save_chapter("bible-kjv/genesis/1", verses)
        verses = store.load_chapter_if_present("bible-kjv/genesis/1")
    """

    def __init__(self, storage: ContentStorage, strategy: Optional[AlternateChapterStrategy] = None):
        self.storage = storage
        self.strategy = strategy

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def save_catalog(self, catalog: Catalog) -> bool:
        try:
            write_json_atomic(self.storage.catalog_path, catalog.to_dict())
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write catalog cache {self.storage.catalog_path}: {e}")
            return False

    def load_catalog_if_present(self) -> Optional[Catalog]:
        """Decoded catalog snapshot, or None if missing/unreadable. Not validated."""
        path = self.storage.catalog_path
        if not path.is_file():
            return None
        try:
            return decode_catalog(read_json_document(path), str(path))
        except (ContentError, OSError) as e:
            logger.warning(f"Failed to load catalog from cache: {e}")
            return None

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def chapter_file(self, key: str) -> Path:
        scripture_id, book_id, chapter = parse_cache_key(key)
        return self.storage.chapter_dir(scripture_id, book_id) / f"{chapter}.json"

    def save_chapter(self, key: str, verses: list[Verse]) -> bool:
        target = self.chapter_file(key)
        try:
            write_json_atomic(target, {"verses": [v.to_dict() for v in verses]})
            logger.debug(f"Cached {key} to {target}")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write chapter cache {target}: {e}")
            return False

    def find_chapter_file(self, key: str) -> Optional[Path]:
        scripture_id, book_id, chapter = parse_cache_key(key)
        directory = self.storage.chapter_dir(scripture_id, book_id)

        for candidate in (directory / f"{chapter}.json", directory / str(chapter)):
            if candidate.is_file():
                return candidate

        if self.strategy is not None:
            return self.strategy.resolve(scripture_id, book_id, chapter, directory)
        return None

    def load_chapter_if_present(self, key: str) -> Optional[list[Verse]]:
        """Cached verses re-normalized for `key`, or None if missing/unreadable."""
        path = self.find_chapter_file(key)
        if path is None:
            return None

        scripture_id, book_id, chapter = parse_cache_key(key)
        try:
            data = read_json_document(path)
            return normalize_verses(verses_from_document(data, str(path)), scripture_id, book_id, chapter)
        except (ContentError, OSError) as e:
            logger.warning(f"Failed to read cache file {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def purge_all(self) -> None:
        self._reset_dir(self.storage.cache_root)
        self.storage.chapters_path.mkdir(parents=True, exist_ok=True)

    def purge_chapters(self) -> None:
        self._reset_dir(self.storage.chapters_path)

    def size_in_bytes(self) -> int:
        total = 0
        root = self.storage.cache_root
        if not root.exists():
            return 0
        for dirpath, _dirnames, filenames in os.walk(root):
            for name in filenames:
                try:
                    total += os.path.getsize(os.path.join(dirpath, name))
                except OSError:
                    continue
        return total

    def _reset_dir(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")
        path.mkdir(parents=True, exist_ok=True)
