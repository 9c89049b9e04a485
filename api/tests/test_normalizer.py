# api/tests/test_normalizer.py
"""
Tests for normalizer.py - book ids, cache keys and verse normalization.
"""

import pytest

from services.content.errors import DecodeFailure, EmptyResult, InvalidChapterSchema
from services.content.models import Verse
from services.content.normalizer import (
    make_cache_key,
    make_verse_id,
    normalize_book_id,
    normalize_verses,
)


def test_normalize_book_id():
    """Lowercase, keep alphanumerics and hyphens."""
    assert normalize_book_id("Genesis") == "genesis"
    assert normalize_book_id("chapter-2") == "chapter-2"
    assert normalize_book_id("1 Corinthians") == "1corinthians"
    assert normalize_book_id("Song of Songs!") == "songofsongs"
    assert normalize_book_id("st. john's") == "stjohns"

    # Idempotent
    once = normalize_book_id("Bhagavad Gita 2")
    assert normalize_book_id(once) == once


def test_cache_key():
    assert make_cache_key("bible-kjv", "genesis", 1) == "bible-kjv/genesis/1"
    # Book variants share one key
    assert make_cache_key("bible-kjv", "Genesis", 3) == make_cache_key("bible-kjv", "genesis", 3)
    assert make_verse_id("quran", "al-fatiha", 1, 7) == "quran|al-fatiha|1|7"


def test_normalize_verses_trims_and_builds_ids():
    verses = normalize_verses(
        [(1, "  In the beginning  "), (2, "\nAnd the earth\t")],
        "bible-kjv", "Genesis", 1,
    )
    assert [v.text for v in verses] == ["In the beginning", "And the earth"]
    assert [v.id for v in verses] == ["bible-kjv|genesis|1|1", "bible-kjv|genesis|1|2"]


def test_normalize_verses_input_shapes():
    """Dicts and Verse objects are accepted; ids are always reassigned."""
    verses = normalize_verses([{"number": 1, "text": "a"}], "quran", "al-fatiha", 1)
    assert verses == [Verse(id="quran|al-fatiha|1|1", number=1, text="a")]

    verses = normalize_verses([Verse(id="stale", number=4, text=" four ")], "bible-kjv", "exodus", 2)
    assert verses[0].id == "bible-kjv|exodus|2|4"
    assert verses[0].text == "four"


def test_normalize_verses_order_and_uniqueness():
    verses = normalize_verses([(3, "c"), (1, "a"), (2, "b")], "s", "b", 1)
    assert [v.number for v in verses] == [3, 1, 2]

    verses = normalize_verses([(n, f"v{n}") for n in range(1, 51)], "s", "b", 9)
    assert len({v.id for v in verses}) == 50


def test_normalize_verses_empty():
    with pytest.raises(EmptyResult) as exc_info:
        normalize_verses([], "bible-kjv", "genesis", 1)
    assert exc_info.value.cache_key == "bible-kjv/genesis/1"
    assert isinstance(exc_info.value, InvalidChapterSchema)


@pytest.mark.parametrize("entry", [
    {"text": "missing number"},
    {"number": "1", "text": "string number"},
    {"number": True, "text": "bool number"},
    {"number": 1, "text": None},
    (1,),
])
def test_normalize_verses_bad_entries(entry):
    with pytest.raises(DecodeFailure):
        normalize_verses([entry], "bible-kjv", "genesis", 1)
