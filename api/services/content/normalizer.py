# api/services/content/normalizer.py
"""
Identifier and verse normalization shared by every tier.

The cache key built here is the single canonical key for the memory cache,
the disk cache layout and bundle lookup. Book ids must go through
normalize_book_id() everywhere or the same chapter ends up under two keys.
"""

from typing import Iterable, Union

from .errors import DecodeFailure, EmptyResult
from .models import Verse


def normalize_book_id(book_id: str) -> str:
    """
    Normalize a book id to a folder-safe form.

    Lowercases, keeps letters, digits and hyphens, drops everything else.
    "1 Corinthians" -> "1corinthians", "Bhagavad-Gita 2" -> "bhagavad-gita2"
    """
    return "".join(c for c in book_id.lower() if c.isalnum() or c == "-")


def make_cache_key(scripture_id: str, book_id: str, chapter: int) -> str:
    return f"{scripture_id}/{normalize_book_id(book_id)}/{chapter}"


def make_verse_id(scripture_id: str, book_id: str, chapter: int, number: int) -> str:
    return f"{scripture_id}|{book_id}|{chapter}|{number}"


RawVerse = Union[Verse, dict, tuple]


def _number_and_text(raw: RawVerse) -> tuple[int, str]:
    if isinstance(raw, Verse):
        return raw.number, raw.text
    if isinstance(raw, dict):
        number, text = raw["number"], raw["text"]
    else:
        number, text = raw
    if isinstance(number, bool) or not isinstance(number, int) or not isinstance(text, str):
        raise TypeError(f"verse entries need an int number and str text, got {raw!r}")
    return number, text


def normalize_verses(
    raw_verses: Iterable[RawVerse],
    scripture_id: str,
    book_id: str,
    chapter: int,
) -> list[Verse]:
    """
    Trim verse text and assign composite ids.

    Args:
        raw_verses: (number, text) pairs, {"number", "text"} dicts or Verses
        scripture_id: Scripture id
        book_id: Book id (normalized before use)
        chapter: Requested chapter number

    Returns:
        Ordered list of Verse

    Raises:
        EmptyResult: No verses supplied
        DecodeFailure: An entry lacks a usable number/text
    """
    normalized_book_id = normalize_book_id(book_id)
    cache_key = f"{scripture_id}/{normalized_book_id}/{chapter}"

    try:
        pairs = [_number_and_text(raw) for raw in raw_verses]
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeFailure(cache_key, e) from e

    if not pairs:
        raise EmptyResult(cache_key)

    return [
        Verse(
            id=make_verse_id(scripture_id, normalized_book_id, chapter, number),
            number=number,
            text=text.strip(),
        )
        for number, text in pairs
    ]
