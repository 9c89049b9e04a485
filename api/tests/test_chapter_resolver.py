# api/tests/test_chapter_resolver.py
"""
Tests for chapter_resolver.py - privileged and general resolution policies.
"""

import threading

import pytest

from conftest import (
    BASE_URL,
    GENESIS_1_VERSES,
    MIRROR_URL,
    FakeResponse,
    FakeSession,
    chapter_doc,
    chapter_url,
    offline_session,
    write_json,
)
from services.content.chapter_resolver import DatasetMode
from services.content.errors import (
    AllEndpointsFailed,
    DecodeFailure,
    InvalidChapterSchema,
    MissingPrivilegedLocalData,
    NetworkUnavailable,
    ResolutionCancelled,
)
from services.content.normalizer import normalize_verses

THOMAS_URL = chapter_url("gospel-thomas", "sayings", 1)


# =============================================================================
# Privileged policy
# =============================================================================

def test_genesis_from_bundle(make_service):
    """Bundled Genesis 1 yields 31 ordered, trimmed verses with stable ids."""
    session = offline_session()
    service = make_service(session=session)

    verses = service.resolve_chapter("bible-kjv", "genesis", 1)
    assert len(verses) == GENESIS_1_VERSES
    assert [v.number for v in verses] == list(range(1, 32))
    assert verses[0].id == "bible-kjv|genesis|1|1"
    assert verses[-1].id == "bible-kjv|genesis|1|31"
    assert verses[0].text == "In the beginning 1"
    assert session.calls == []


def test_privileged_book_id_variants(make_service):
    service = make_service()
    first = service.resolve_chapter("bible-kjv", "Genesis", 2)
    assert first[0].id == "bible-kjv|genesis|2|1"
    assert service.resolve_chapter("bible-kjv", "genesis", 2) == first


def test_privileged_legacy_and_divergent_files(make_service):
    service = make_service()
    assert service.resolve_chapter("bible-kjv", "exodus", 1)[0].text == "Now these are the names 1"

    # Stored as 2.json: book is second in the catalog
    baqarah = service.resolve_chapter("quran", "al-baqarah", 1)
    assert baqarah[0].text == "Baqarah 1"
    assert baqarah[0].id == "quran|al-baqarah|1|1"

    # Stored under the book id's numeric suffix
    assert service.resolve_chapter("bhagavad-gita", "chapter-2", 1)[0].text == "Gita 1"


def test_privileged_falls_back_to_disk_cache(make_service, bundle_root):
    (bundle_root / "tanakh-jps" / "bereshit" / "1.json").unlink()
    service = make_service()
    cached = normalize_verses([(1, "cached bereshit")], "tanakh-jps", "bereshit", 1)
    service.disk_cache.save_chapter("tanakh-jps/bereshit/1", cached)

    assert service.resolve_chapter("tanakh-jps", "bereshit", 1) == cached


def test_privileged_missing_locally_offline(make_service):
    service = make_service()
    with pytest.raises(MissingPrivilegedLocalData) as exc_info:
        service.resolve_chapter("bible-kjv", "exodus", 40)
    assert exc_info.value.path == "SeekData/bible-kjv/exodus/40.json"


def test_privileged_bundle_only_never_uses_network(make_service):
    session = FakeSession({chapter_url("bible-kjv", "exodus", 40): FakeResponse(200, chapter_doc(2))})
    service = make_service(session=session, dataset_mode=DatasetMode.BUNDLE_ONLY)

    with pytest.raises(MissingPrivilegedLocalData):
        service.resolve_chapter("bible-kjv", "exodus", 40)
    assert session.calls == []


def test_privileged_remote_last_resort(make_service):
    url = chapter_url("bible-kjv", "exodus", 40)
    session = FakeSession({url: FakeResponse(200, chapter_doc(2, "Then a cloud"))})
    service = make_service(session=session)

    verses = service.resolve_chapter("bible-kjv", "exodus", 40)
    assert verses[0].text == "Then a cloud 1"
    assert service.disk_cache.load_chapter_if_present("bible-kjv/exodus/40") == verses


def test_bundle_preferred_over_remote_for_privileged(make_service):
    session = FakeSession({chapter_url("bible-kjv", "genesis", 1): FakeResponse(200, chapter_doc(1, "remote"))})
    service = make_service(session=session)
    assert service.resolve_chapter("bible-kjv", "genesis", 1)[0].text == "In the beginning 1"
    assert session.calls == []


def test_remote_preferred_keeps_privileged_order(make_service):
    """Privileged content stays bundle-first whatever the dataset mode."""
    session = FakeSession({chapter_url("bible-kjv", "genesis", 1): FakeResponse(200, chapter_doc(1, "remote"))})
    service = make_service(session=session, dataset_mode=DatasetMode.REMOTE_PREFERRED)
    assert service.resolve_chapter("bible-kjv", "genesis", 1)[0].text == "In the beginning 1"
    assert session.calls == []


def test_divergent_scripture_missing_chapter(make_service):
    """Only chapter 1 is remapped; a missing later chapter is not served another file."""
    service = make_service()
    with pytest.raises(MissingPrivilegedLocalData) as exc_info:
        service.resolve_chapter("quran", "al-fatiha", 2)
    assert exc_info.value.path == "SeekData/quran/al-fatiha/2.json"
    assert service.get_cached_chapter_if_any("quran", "al-fatiha", 2) is None


def test_concurrent_resolution_of_one_chapter(make_service):
    """Duplicate concurrent fetches of one key all succeed with identical verses."""
    session = FakeSession({THOMAS_URL: FakeResponse(200, chapter_doc(5, "Saying"))})
    service = make_service(session=session)
    results, errors = [], []

    def worker():
        try:
            for _ in range(10):
                service.memory.clear_chapters()
                results.append(service.resolve_chapter("gospel-thomas", "sayings", 1))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    assert len(results) == 40
    assert all(r == results[0] for r in results)
    assert service.disk_cache.load_chapter_if_present("gospel-thomas/sayings/1") == results[0]


# =============================================================================
# General policy
# =============================================================================

def test_general_remote_success_is_cached(make_service):
    session = FakeSession({THOMAS_URL: FakeResponse(200, chapter_doc(3, "Saying"))})
    service = make_service(session=session)

    verses = service.resolve_chapter("gospel-thomas", "sayings", 1)
    assert [v.id for v in verses] == [f"gospel-thomas|sayings|1|{n}" for n in (1, 2, 3)]
    assert service.disk_cache.load_chapter_if_present("gospel-thomas/sayings/1") == verses

    # Memoized: no second request
    assert service.resolve_chapter("gospel-thomas", "Sayings", 1) == verses
    assert session.calls == [THOMAS_URL]


def test_general_endpoint_order(make_service):
    mirror = chapter_url("gospel-thomas", "sayings", 1, base=MIRROR_URL)
    session = FakeSession({
        THOMAS_URL: FakeResponse(404, {"error": "not found"}),
        mirror: FakeResponse(200, chapter_doc(1, "Mirror")),
    })
    service = make_service(session=session, base_urls=(BASE_URL, MIRROR_URL))
    assert service.resolve_chapter("gospel-thomas", "sayings", 1)[0].text == "Mirror 1"
    assert session.calls == [THOMAS_URL, mirror]


def test_general_offline_falls_back_to_cache(make_service):
    service = make_service()
    cached = normalize_verses([(1, "cached saying")], "gospel-thomas", "sayings", 1)
    service.disk_cache.save_chapter("gospel-thomas/sayings/1", cached)

    assert service.resolve_chapter("gospel-thomas", "sayings", 1) == cached


def test_general_offline_falls_back_to_bundle(make_service, bundle_root):
    write_json(bundle_root / "gospel-thomas" / "sayings" / "1.json", chapter_doc(2, "Bundled saying"))
    service = make_service()
    assert service.resolve_chapter("gospel-thomas", "sayings", 1)[0].text == "Bundled saying 1"


def test_general_offline_without_local_data(make_service):
    with pytest.raises(AllEndpointsFailed) as exc_info:
        make_service().resolve_chapter("gospel-thomas", "sayings", 1)
    assert exc_info.value.attempted == 1
    assert isinstance(exc_info.value.__cause__, NetworkUnavailable)


def test_general_no_endpoints_configured(make_service):
    with pytest.raises(NetworkUnavailable):
        make_service(base_urls=()).resolve_chapter("gospel-thomas", "sayings", 1)


def test_general_malformed_not_masked_by_cache(make_service):
    """A bad publish must surface even when stale data exists."""
    session = FakeSession({THOMAS_URL: FakeResponse(200, text="not json")})
    service = make_service(session=session)
    service.disk_cache.save_chapter(
        "gospel-thomas/sayings/1",
        normalize_verses([(1, "stale")], "gospel-thomas", "sayings", 1),
    )

    with pytest.raises(DecodeFailure):
        service.resolve_chapter("gospel-thomas", "sayings", 1)


def test_general_wrong_shape_is_malformed(make_service):
    session = FakeSession({THOMAS_URL: FakeResponse(200, {"chapter": 1})})
    with pytest.raises(DecodeFailure):
        make_service(session=session).resolve_chapter("gospel-thomas", "sayings", 1)


def test_general_empty_verses_is_schema_error(make_service):
    session = FakeSession({THOMAS_URL: FakeResponse(200, {"verses": []})})
    service = make_service(session=session)
    service.disk_cache.save_chapter(
        "gospel-thomas/sayings/1",
        normalize_verses([(1, "stale")], "gospel-thomas", "sayings", 1),
    )

    with pytest.raises(InvalidChapterSchema):
        service.resolve_chapter("gospel-thomas", "sayings", 1)


def test_general_later_endpoint_success_wins_over_malformed(make_service):
    mirror = chapter_url("gospel-thomas", "sayings", 1, base=MIRROR_URL)
    session = FakeSession({
        THOMAS_URL: FakeResponse(200, text="<html>"),
        mirror: FakeResponse(200, chapter_doc(1, "Mirror")),
    })
    service = make_service(session=session, base_urls=(BASE_URL, MIRROR_URL))
    assert service.resolve_chapter("gospel-thomas", "sayings", 1)[0].text == "Mirror 1"


# =============================================================================
# Local-only access & cancellation
# =============================================================================

def test_cancelled_before_network(make_service):
    session = FakeSession({THOMAS_URL: FakeResponse(200, chapter_doc(1))})
    service = make_service(session=session)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(ResolutionCancelled):
        service.resolve_chapter("gospel-thomas", "sayings", 1, cancel_event=cancel)
    assert session.calls == []


def test_get_cached_chapter_if_any(make_service):
    session = FakeSession({THOMAS_URL: FakeResponse(200, chapter_doc(1))})
    service = make_service(session=session)

    assert service.get_cached_chapter_if_any("gospel-thomas", "sayings", 1) is None
    assert service.get_cached_chapter_if_any("bible-kjv", "genesis", 1)[0].id == "bible-kjv|genesis|1|1"
    assert session.calls == []


def test_chapter_exists_and_available_count(make_service, bundle_root):
    service = make_service()
    assert service.chapters.chapter_exists("bible-kjv", "genesis", 2)
    assert not service.chapters.chapter_exists("bible-kjv", "genesis", 3)
    assert service.count_available_chapters("bible-kjv", "genesis") == 2

    (bundle_root / "bible-kjv" / "genesis" / "1.json").unlink()
    assert service.count_available_chapters("bible-kjv", "genesis") == 0


def test_corrupt_bundle_file_falls_through(make_service, bundle_root):
    (bundle_root / "dhammapada" / "yamaka-vagga" / "1.json").write_text("{broken")
    service = make_service()
    with pytest.raises(MissingPrivilegedLocalData):
        service.resolve_chapter("dhammapada", "yamaka-vagga", 1)
