# api/services/content/alternate_files.py
"""
Alternate chapter file lookup for scriptures with divergent numbering.

A few single-unit scriptures (one chapter per book) store that chapter under
a file number that does not match the requested chapter=1. Bundle lookup and
disk-cache lookup both resolve through AlternateChapterStrategy so they agree
on which file a request maps to.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from .normalizer import normalize_book_id

logger = logging.getLogger(__name__)

# Returns the 1-based position of a book within its scripture, or None
BookPositionLookup = Callable[[str, str], Optional[int]]


def intended_chapter_number(
    scripture_id: str,
    book_id: str,
    requested_chapter: int,
    rule: Optional[str],
    book_position: Optional[BookPositionLookup] = None,
) -> int:
    """
    Map a requested chapter to the number the data is actually stored under.

    Only chapter 1 is remapped. Rules:
        catalog_position: the book's 1-based ordinal in the catalog
        book_suffix: numeric suffix after the last "-" of the book id
    """
    if requested_chapter != 1:
        return requested_chapter

    if rule == "catalog_position" and book_position is not None:
        position = book_position(scripture_id, normalize_book_id(book_id))
        if position:
            return position

    if rule == "book_suffix":
        suffix = normalize_book_id(book_id).rsplit("-", 1)[-1]
        if suffix.isdigit():
            return int(suffix)

    return 1


def _numeric_stem(path: Path) -> Optional[int]:
    stem = path.stem if path.suffix.lower() == ".json" else path.name
    return int(stem) if stem.isdigit() else None


class AlternateChapterStrategy:
    """
    Pick a chapter file from a book directory when the literal name misses.

    Order:
        1. the only numeric .json file
        2. the .json file numbered with the intended chapter
        3. the only numeric extension-less file
        4. the extension-less file numbered with the intended chapter
        5. the lowest-numbered candidate of either kind
    """

    def __init__(
        self,
        rules: Dict[str, str],
        book_position: Optional[BookPositionLookup] = None,
    ):
        self.rules = dict(rules)
        self.book_position = book_position

    def applies_to(self, scripture_id: str) -> bool:
        return scripture_id in self.rules

    def intended_chapter(self, scripture_id: str, book_id: str, requested_chapter: int) -> int:
        return intended_chapter_number(
            scripture_id,
            book_id,
            requested_chapter,
            self.rules.get(scripture_id),
            self.book_position,
        )

    def resolve(
        self,
        scripture_id: str,
        book_id: str,
        requested_chapter: int,
        directory: Path,
    ) -> Optional[Path]:
        # Only the externally requested chapter 1 is ever remapped
        if requested_chapter != 1 or not self.applies_to(scripture_id) or not directory.is_dir():
            return None

        entries = [
            p for p in directory.iterdir()
            if p.is_file() and not p.name.startswith(".")
        ]
        target = self.intended_chapter(scripture_id, book_id, requested_chapter)
        chosen = self.choose(entries, target)
        if chosen is not None:
            logger.debug(
                f"Alternate chapter file for {scripture_id}/{book_id}/{requested_chapter}: {chosen.name}"
            )
        return chosen

    @staticmethod
    def choose(entries: Iterable[Path], target: int) -> Optional[Path]:
        numeric_json = []
        numeric_no_ext = []
        for p in entries:
            number = _numeric_stem(p)
            if number is None:
                continue
            if p.suffix.lower() == ".json":
                numeric_json.append((number, p))
            elif not p.suffix:
                numeric_no_ext.append((number, p))

        for group in (numeric_json, numeric_no_ext):
            if len(group) == 1:
                return group[0][1]
            exact = [p for number, p in group if number == target]
            if exact:
                return exact[0]

        candidates = sorted(numeric_json + numeric_no_ext, key=lambda item: item[0])
        return candidates[0][1] if candidates else None
