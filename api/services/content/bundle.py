# api/services/content/bundle.py
"""
Read-only access to the bundled data folder shipped with the app.

Layout:
    <dataRoot>/index.json
    <dataRoot>/<scriptureId>/<bookId>/<chapter>.json   (or legacy <chapter>)
"""

import json
import logging
from pathlib import Path
from typing import Optional

from core import config

from .alternate_files import AlternateChapterStrategy
from .errors import DecodeFailure, MissingBundleAsset
from .models import Catalog, Verse
from .normalizer import normalize_book_id, normalize_verses

logger = logging.getLogger(__name__)


def read_json_document(path: Path, source: Optional[str] = None) -> dict:
    """Read a JSON object from disk, raising DecodeFailure on bad content."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeFailure(source or str(path), e) from e
    if not isinstance(data, dict):
        raise DecodeFailure(source or str(path), TypeError("expected a JSON object"))
    return data


def decode_catalog(data: dict, source: str) -> Catalog:
    try:
        return Catalog.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DecodeFailure(source, e) from e


def verses_from_document(data: dict, source: str) -> list:
    verses = data.get("verses")
    if not isinstance(verses, list):
        raise DecodeFailure(source, KeyError("verses"))
    return verses


class BundleSource:
    """Locates and decodes bundled catalog and chapter files."""

    def __init__(self, data_root: Optional[Path] = None, strategy: Optional[AlternateChapterStrategy] = None):
        self.data_root = Path(data_root or config.DATA_ROOT)
        self.strategy = strategy

    @property
    def index_path(self) -> Path:
        return self.data_root / "index.json"

    def has_index(self) -> bool:
        return self.index_path.is_file()

    def load_catalog(self) -> Catalog:
        """
        Decode the bundled index.json (not validated here).

        Raises:
            MissingBundleAsset: index.json not present
            DecodeFailure: index.json unreadable
        """
        if not self.has_index():
            raise MissingBundleAsset(f"{config.BUNDLED_DATA_FOLDER}/index.json")
        data = read_json_document(self.index_path)
        return decode_catalog(data, str(self.index_path))

    def _book_dirs(self, scripture_id: str, book_id: str) -> list[Path]:
        """Original id first, then normalized, then lowercased."""
        names = [book_id]
        for candidate in (normalize_book_id(book_id), book_id.lower()):
            if candidate not in names:
                names.append(candidate)
        return [self.data_root / scripture_id / name for name in names]

    def find_chapter_file(self, scripture_id: str, book_id: str, chapter: int) -> Optional[Path]:
        """
        Locate the bundled file for a chapter.

        Tries <chapter>.json and extension-less <chapter> in each candidate
        book directory, then the intended chapter number, then the
        alternate-file strategy for divergent scriptures.
        """
        numbers = [chapter]
        if self.strategy is not None:
            intended = self.strategy.intended_chapter(scripture_id, book_id, chapter)
            if intended != chapter:
                numbers.append(intended)

        directories = self._book_dirs(scripture_id, book_id)
        for directory in directories:
            for number in numbers:
                for name in (f"{number}.json", str(number)):
                    candidate = directory / name
                    if candidate.is_file():
                        return candidate

        if self.strategy is not None:
            for directory in directories:
                resolved = self.strategy.resolve(scripture_id, book_id, chapter, directory)
                if resolved is not None:
                    return resolved

        logger.debug(
            f"Bundled chapter not found: {scripture_id}/{book_id}/{chapter} "
            f"(tried {[d.name for d in directories]})"
        )
        return None

    def chapter_exists(self, scripture_id: str, book_id: str, chapter: int) -> bool:
        return self.find_chapter_file(scripture_id, book_id, chapter) is not None

    def load_chapter(self, scripture_id: str, book_id: str, chapter: int) -> Optional[list[Verse]]:
        """
        Load and normalize a bundled chapter.

        Returns:
            Verses, or None when no bundled file exists

        Raises:
            DecodeFailure: File exists but is not a chapter document
            EmptyResult: File has no verses
        """
        path = self.find_chapter_file(scripture_id, book_id, chapter)
        if path is None:
            return None
        data = read_json_document(path)
        return normalize_verses(verses_from_document(data, str(path)), scripture_id, book_id, chapter)

    def expected_chapter_path(self, scripture_id: str, book_id: str, chapter: int) -> str:
        normalized = normalize_book_id(book_id)
        number = chapter
        if self.strategy is not None:
            number = self.strategy.intended_chapter(scripture_id, normalized, chapter)
        return f"{config.BUNDLED_DATA_FOLDER}/{scripture_id}/{normalized}/{number}.json"
