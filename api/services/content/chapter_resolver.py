# api/services/content/chapter_resolver.py
"""
Chapter resolution across bundle, disk cache and remote tiers.

Two orderings:

    Privileged (always-offline scriptures):
        memory -> bundle -> disk cache -> remote (unless bundle_only)
        Exhausting local tiers without remote is MissingPrivilegedLocalData,
        a packaging defect rather than a connectivity problem.

    General (everything else):
        memory -> remote endpoints in priority order
        connectivity-class failure -> disk cache -> bundle
        malformed-class failure    -> raised, never masked by stale data

Dataset mode only changes the privileged ordering under bundle_only, which
drops the remote tier. remote_preferred is accepted for configuration
compatibility and resolves privileged content like bundle_preferred.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from core import config

from .bundle import BundleSource
from .classifier import FailureClass, classify
from .disk_cache import DiskCacheStore
from .errors import (
    AllEndpointsFailed,
    ContentError,
    MissingPrivilegedLocalData,
    NetworkUnavailable,
    ResolutionCancelled,
)
from .memory_cache import ContentMemoryCache
from .models import Verse
from .normalizer import make_cache_key
from .remote_client import RemoteContentClient

logger = logging.getLogger(__name__)


class DatasetMode(str, Enum):
    BUNDLE_ONLY = "bundle_only"
    BUNDLE_PREFERRED = "bundle_preferred"
    REMOTE_PREFERRED = "remote_preferred"


def _check_cancelled(cancel_event: Optional[threading.Event], key: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelled(f"Resolution of {key} cancelled")


class ChapterResolver:
    """
    Resolves ordered verse lists for (scripture, book, chapter).

    Usage:
        resolver = ChapterResolver(bundle, disk_cache, remote, memory, privileged)
        verses = resolver.resolve_chapter("bible-kjv", "genesis", 1)
        print(verses[0].id)   # "bible-kjv|genesis|1|1"
    """

    def __init__(
        self,
        bundle: BundleSource,
        disk_cache: DiskCacheStore,
        remote: RemoteContentClient,
        memory: ContentMemoryCache,
        privileged_scriptures: list[str],
        dataset_mode: Optional[DatasetMode] = None,
    ):
        self.bundle = bundle
        self.disk_cache = disk_cache
        self.remote = remote
        self.memory = memory
        self.privileged_scriptures = list(privileged_scriptures)
        self.dataset_mode = DatasetMode(dataset_mode or config.DATASET_MODE)

    def is_privileged(self, scripture_id: str) -> bool:
        return scripture_id in self.privileged_scriptures

    def resolve_chapter(
        self,
        scripture_id: str,
        book_id: str,
        chapter: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Verse]:
        """
        Resolve a chapter's verses.

        Args:
            scripture_id: Scripture id (e.g., "bible-kjv")
            book_id: Book id in any casing/punctuation (normalized internally)
            chapter: 1-based chapter number
            cancel_event: Set to abandon the resolution between tiers

        Returns:
            Non-empty ordered list of Verse

        Raises:
            MissingPrivilegedLocalData: Privileged content absent locally
            DecodeFailure / InvalidChapterSchema: Remote published bad data
            AllEndpointsFailed / NetworkUnavailable: No tier could serve it
            ResolutionCancelled: cancel_event was set
        """
        key = make_cache_key(scripture_id, book_id, chapter)

        cached = self.memory.get_chapter(key)
        if cached is not None:
            return cached

        if self.is_privileged(scripture_id):
            return self._resolve_privileged(scripture_id, book_id, chapter, key, cancel_event)
        return self._resolve_general(scripture_id, book_id, chapter, key, cancel_event)

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def _resolve_privileged(
        self,
        scripture_id: str,
        book_id: str,
        chapter: int,
        key: str,
        cancel_event: Optional[threading.Event],
    ) -> list[Verse]:
        # STRICT ORDER: bundle -> cache -> remote
        _check_cancelled(cancel_event, key)
        bundled = self.load_from_bundle(scripture_id, book_id, chapter)
        if bundled:
            self.memory.set_chapter(key, bundled)
            logger.debug(f"Chapter {key} loaded from bundle")
            return bundled

        cached = self.disk_cache.load_chapter_if_present(key)
        if cached:
            self.memory.set_chapter(key, cached)
            logger.debug(f"Chapter {key} loaded from disk cache")
            return cached

        expected = self.bundle.expected_chapter_path(scripture_id, book_id, chapter)
        if self.dataset_mode is DatasetMode.BUNDLE_ONLY:
            raise MissingPrivilegedLocalData(expected)

        for base_url in self.remote.base_urls:
            _check_cancelled(cancel_event, key)
            try:
                verses = self.remote.fetch_chapter(base_url, scripture_id, book_id, chapter)
            except ContentError as e:
                logger.warning(f"Failed to load privileged chapter {key} from {base_url}: {e}")
                continue
            self._remember(key, verses)
            logger.info(f"Privileged chapter {key} loaded from network")
            return verses

        logger.error(f"Privileged chapter missing from bundle and cache: {expected}")
        raise MissingPrivilegedLocalData(expected)

    def _resolve_general(
        self,
        scripture_id: str,
        book_id: str,
        chapter: int,
        key: str,
        cancel_event: Optional[threading.Event],
    ) -> list[Verse]:
        malformed: Optional[BaseException] = None
        last_error: Optional[BaseException] = None

        for base_url in self.remote.base_urls:
            _check_cancelled(cancel_event, key)
            try:
                verses = self.remote.fetch_chapter(base_url, scripture_id, book_id, chapter)
            except ContentError as e:
                last_error = e
                failure = classify(e)
                if failure is FailureClass.MALFORMED and malformed is None:
                    malformed = e
                logger.warning(f"Failed to load chapter {key} from {base_url} ({failure.value}): {e}")
                continue
            self._remember(key, verses)
            logger.debug(f"Chapter {key} loaded from network")
            return verses

        # Stale local data must not mask a publishing defect
        if malformed is not None:
            raise malformed

        _check_cancelled(cancel_event, key)
        cached = self.disk_cache.load_chapter_if_present(key)
        if cached:
            self.memory.set_chapter(key, cached)
            logger.info(f"Chapter {key} loaded from disk cache")
            return cached

        bundled = self.load_from_bundle(scripture_id, book_id, chapter)
        if bundled:
            self.memory.set_chapter(key, bundled)
            logger.info(f"Chapter {key} loaded from bundle")
            return bundled

        if last_error is None:
            raise NetworkUnavailable(f"No remote endpoints configured for {key}")
        raise AllEndpointsFailed(len(self.remote.base_urls)) from last_error

    # ------------------------------------------------------------------
    # Tier helpers
    # ------------------------------------------------------------------

    def _remember(self, key: str, verses: list[Verse]) -> None:
        self.memory.set_chapter(key, verses)
        self.disk_cache.save_chapter(key, verses)

    def load_from_bundle(self, scripture_id: str, book_id: str, chapter: int) -> Optional[list[Verse]]:
        try:
            return self.bundle.load_chapter(scripture_id, book_id, chapter)
        except (ContentError, OSError) as e:
            logger.warning(f"Failed to decode bundled chapter {scripture_id}/{book_id}/{chapter}: {e}")
            return None

    # ------------------------------------------------------------------
    # Local-only access
    # ------------------------------------------------------------------

    def get_cached_chapter_if_any(self, scripture_id: str, book_id: str, chapter: int) -> Optional[list[Verse]]:
        """Verses from memory, bundle or disk cache; never touches the network."""
        key = make_cache_key(scripture_id, book_id, chapter)
        cached = self.memory.get_chapter(key)
        if cached is not None:
            return cached

        if self.is_privileged(scripture_id):
            tiers = (
                lambda: self.load_from_bundle(scripture_id, book_id, chapter),
                lambda: self.disk_cache.load_chapter_if_present(key),
            )
        else:
            tiers = (
                lambda: self.disk_cache.load_chapter_if_present(key),
                lambda: self.load_from_bundle(scripture_id, book_id, chapter),
            )

        for load in tiers:
            verses = load()
            if verses:
                self.memory.set_chapter(key, verses)
                return verses
        return None

    def chapter_exists(self, scripture_id: str, book_id: str, chapter: int) -> bool:
        """Whether a bundled file exists for the chapter."""
        return self.bundle.chapter_exists(scripture_id, book_id, chapter)

    def count_available_chapters(self, scripture_id: str, book_id: str, chapter_count: int) -> int:
        """Count bundled chapters from 1, stopping at the first gap."""
        count = 0
        for chapter in range(1, max(1, chapter_count) + 1):
            if not self.chapter_exists(scripture_id, book_id, chapter):
                break
            count += 1
        return count

