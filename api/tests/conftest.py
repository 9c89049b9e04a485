# api/tests/conftest.py
"""
Shared fixtures for content engine tests.

Builds a small bundled data folder in a temp directory and provides a fake
HTTP session so no test touches the network.
"""

import json
import os
import sys
from pathlib import Path

import pytest
import requests

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.content import (
    ContentService,
    ContentStorage,
    DatasetMode,
    RemoteContentClient,
    StaticDeviceProbe,
)
from services.content.config_loader import get_default_policy

BASE_URL = "https://cdn.test/data"
MIRROR_URL = "https://mirror.test/data"

GENESIS_1_VERSES = 31


def write_json(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def chapter_doc(count: int, prefix: str = "Verse", pad: bool = False) -> dict:
    verses = []
    for n in range(1, count + 1):
        text = f"{prefix} {n}"
        verses.append({"number": n, "text": f"  {text}\n" if pad else text})
    return {"verses": verses}


def catalog_doc() -> dict:
    return {
        "version": "2024.1",
        "traditions": [
            {"id": "christianity", "name": "Christianity", "icon": "cross",
             "scriptures": ["bible-kjv", "gospel-thomas"]},
            {"id": "judaism", "name": "Judaism", "icon": "book", "scriptures": ["tanakh-jps"]},
            {"id": "islam", "name": "Islam", "icon": "moon", "scriptures": ["quran"]},
            {"id": "hinduism", "name": "Hinduism", "icon": "om", "scriptures": ["bhagavad-gita"]},
            {"id": "buddhism", "name": "Buddhism", "icon": "wheel", "scriptures": ["dhammapada"]},
            {"id": "gnosticism", "name": "Gnosticism", "icon": "eye", "scriptures": ["gospel-thomas"]},
        ],
        "scriptures": {
            "bible-kjv": {
                "id": "bible-kjv", "name": "King James Bible", "description": "1769 KJV",
                "books": [
                    {"id": "genesis", "name": "Genesis", "chapterCount": 2},
                    {"id": "exodus", "name": "Exodus", "chapterCount": 1},
                ],
            },
            "tanakh-jps": {
                "id": "tanakh-jps", "name": "Tanakh",
                "books": [{"id": "bereshit", "name": "Bereshit", "chapterCount": 1}],
            },
            "quran": {
                "id": "quran", "name": "Quran",
                "books": [
                    {"id": "al-fatiha", "name": "Al-Fatiha", "chapterCount": 1},
                    {"id": "al-baqarah", "name": "Al-Baqarah", "chapterCount": 1},
                ],
            },
            "bhagavad-gita": {
                "id": "bhagavad-gita", "name": "Bhagavad Gita",
                "books": [{"id": "chapter-2", "name": "Chapter 2", "chapterCount": 1}],
            },
            "dhammapada": {
                "id": "dhammapada", "name": "Dhammapada",
                "books": [{"id": "yamaka-vagga", "name": "Yamaka Vagga", "chapterCount": 1}],
            },
            "gospel-thomas": {
                "id": "gospel-thomas", "name": "Gospel of Thomas",
                "books": [{"id": "sayings", "name": "Sayings", "chapterCount": 1}],
            },
        },
    }


@pytest.fixture
def bundle_root(tmp_path) -> Path:
    """
    Bundled data folder:
        bible-kjv/genesis/1.json (31 padded verses), genesis/2.json
        bible-kjv/exodus/1       (legacy, no extension)
        quran/al-fatiha/1.json, quran/al-baqarah/2.json (divergent numbering)
        bhagavad-gita/chapter-2/2.json (numbered by book suffix)
        tanakh-jps/bereshit/1.json, dhammapada/yamaka-vagga/1.json
        gospel-thomas has no bundled chapters
    """
    root = tmp_path / "SeekData"
    write_json(root / "index.json", catalog_doc())
    write_json(root / "bible-kjv" / "genesis" / "1.json",
               {"scriptureId": "bible-kjv", "bookId": "genesis", "chapter": 1,
                **chapter_doc(GENESIS_1_VERSES, "In the beginning", pad=True)})
    write_json(root / "bible-kjv" / "genesis" / "2.json", chapter_doc(3, "Thus the heavens"))
    write_json(root / "bible-kjv" / "exodus" / "1", chapter_doc(2, "Now these are the names"))
    write_json(root / "quran" / "al-fatiha" / "1.json", chapter_doc(7, "Fatiha"))
    write_json(root / "quran" / "al-baqarah" / "2.json", chapter_doc(4, "Baqarah"))
    write_json(root / "bhagavad-gita" / "chapter-2" / "2.json", chapter_doc(5, "Gita"))
    write_json(root / "tanakh-jps" / "bereshit" / "1.json", chapter_doc(3, "Bereshit"))
    write_json(root / "dhammapada" / "yamaka-vagga" / "1.json", chapter_doc(2, "Yamaka"))
    return root


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = None):
        self.status_code = status_code
        self.headers = {}
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """
    Stand-in for requests.Session.

    routes: url -> FakeResponse or exception instance to raise
    error: exception raised for any url not in routes (default: 404 response)
    """

    def __init__(self, routes: dict = None, error: Exception = None):
        self.routes = dict(routes or {})
        self.error = error
        self.calls = []
        self.headers = {}

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        if url in self.routes:
            value = self.routes[url]
            if isinstance(value, Exception):
                raise value
            return value
        if self.error is not None:
            raise self.error
        return FakeResponse(404, {"error": "not found"})


def offline_session() -> FakeSession:
    return FakeSession(error=requests.ConnectionError("Network is unreachable"))


def chapter_url(scripture_id: str, book_id: str, chapter: int, base: str = BASE_URL) -> str:
    return f"{base}/{scripture_id}/{book_id}/{chapter}.json"


@pytest.fixture
def make_service(tmp_path, bundle_root):
    """Factory for ContentService wired to the temp bundle and a fake session."""

    def _make(
        session: FakeSession = None,
        base_urls=(BASE_URL,),
        dataset_mode: DatasetMode = DatasetMode.BUNDLE_PREFERRED,
        probe=None,
        data_root: Path = None,
        **kwargs,
    ) -> ContentService:
        remote = RemoteContentClient(
            base_urls=list(base_urls),
            session=session or offline_session(),
            timeout=1,
            max_retries=1,
            backoff=0,
        )
        return ContentService(
            data_root=data_root or bundle_root,
            storage=ContentStorage(tmp_path / "support"),
            remote=remote,
            dataset_mode=dataset_mode,
            probe=probe or StaticDeviceProbe(),
            probe_timeout=1,
            policy=get_default_policy(),
            **kwargs,
        )

    return _make
