# api/services/content/storage.py
"""
Content cache storage layout and state persistence.

Provides directory structure management for the on-disk content cache and
a small JSON state file (prefetch bookkeeping). The root can be configured
via environment variable to point at the platform's app-support directory.
"""

import os
import json
import tempfile
import logging
from pathlib import Path
from typing import Optional

from core import config

logger = logging.getLogger(__name__)


class ContentStorage:
    """
    Manages the content cache directory structure and state file.

    Directory structure:
        {SEEK_CACHE_ROOT}/
        ├── {namespace}/
        │   ├── index.json
        │   └── chapters/
        │       └── <scriptureId>/<bookId>/<chapter>.json
        └── state.json
    """

    def __init__(self, base_path: Optional[Path] = None, namespace: Optional[str] = None):
        self.base_path = Path(base_path or config.APP_SUPPORT_DIR)
        self.namespace = namespace or config.CACHE_NAMESPACE
        self._ensure_structure()

    def _ensure_structure(self):
        """Create directory structure if it doesn't exist."""
        self.chapters_path.mkdir(parents=True, exist_ok=True)

    @property
    def cache_root(self) -> Path:
        """Root of everything the cache owns; purged as a unit."""
        return self.base_path / self.namespace

    @property
    def catalog_path(self) -> Path:
        """Path to the cached catalog snapshot."""
        return self.cache_root / "index.json"

    @property
    def chapters_path(self) -> Path:
        """Path to cached chapter documents."""
        return self.cache_root / "chapters"

    @property
    def state_path(self) -> Path:
        """Scheduler state lives beside the cache root so purges keep it."""
        return self.base_path / "state.json"

    def chapter_dir(self, scripture_id: str, book_id: str) -> Path:
        return self.chapters_path / scripture_id / book_id

    def get_state(self) -> dict:
        """Load and return persisted state, empty if missing or unreadable."""
        if not self.state_path.exists():
            return {}
        try:
            with open(self.state_path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read state file {self.state_path}: {e}")
            return {}

    def update_state(self, **kwargs):
        """Update state with provided key-value pairs."""
        state = self.get_state()
        state.update(kwargs)
        write_json_atomic(self.state_path, state)


def write_json_atomic(path: Path, payload) -> None:
    """Replace `path` as a whole file; readers never observe a partial write."""
    path.parent.mkdir(parents=True, exist_ok=True)
    # Unique temp name per writer; concurrent writers of one key must not collide
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False)
        os.replace(tmp_path, str(path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
