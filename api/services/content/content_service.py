# api/services/content/content_service.py
"""
Content engine facade.

ContentService is constructed explicitly and owns its cache state; callers
hold a reference to it instead of reaching for a module-level singleton.
It wires the bundle, disk cache, remote client and memory cache into the
catalog and chapter resolvers, prefetch scheduler and housekeeping, and
produces the diagnostics report used by operational tooling.
"""

import logging
import threading
from datetime import timedelta
from pathlib import Path
from typing import Optional

import requests

from . import config_loader
from .alternate_files import AlternateChapterStrategy
from .bundle import BundleSource
from .catalog_resolver import CatalogResolver
from .chapter_resolver import ChapterResolver, DatasetMode
from .device_probe import DeviceProbe
from .disk_cache import DiskCacheStore
from .errors import ContentError
from .housekeeping import CacheHousekeeping
from .memory_cache import ContentMemoryCache
from .models import Catalog, DataStatusReport, PrefetchResult, ScriptureStatus, Verse
from .prefetch import LastRunStore, PrefetchScheduler, StateFileLastRunStore
from .remote_client import RemoteContentClient
from .storage import ContentStorage

logger = logging.getLogger(__name__)


class ContentService:
    """
    Single entry point for catalog and chapter content.

    Usage:
        service = ContentService()

        catalog = service.load_catalog()
        verses = service.resolve_chapter("bible-kjv", "genesis", 1)
        print(verses[0].text)

        # Warm privileged content when on Wi-Fi or charging
        service.start_background_prefetch()

        # Diagnostics
        report = service.data_status_report()
        print(report.source_summary)
    """

    def __init__(
        self,
        data_root: Optional[Path] = None,
        storage: Optional[ContentStorage] = None,
        remote: Optional[RemoteContentClient] = None,
        dataset_mode: Optional[DatasetMode] = None,
        probe: Optional[DeviceProbe] = None,
        last_run_store: Optional[LastRunStore] = None,
        prefetch_interval: Optional[timedelta] = None,
        probe_timeout: Optional[float] = None,
        policy: Optional[dict] = None,
    ):
        policy = policy or config_loader.load_policy()
        self.privileged_scriptures = list(policy.get("privileged_scriptures", []))
        self.privileged_traditions = list(policy.get("privileged_traditions", []))

        self.memory = ContentMemoryCache()
        self.storage = storage or ContentStorage()
        self.remote = remote or RemoteContentClient()
        self.strategy = AlternateChapterStrategy(
            policy.get("divergent_numbering", {}),
            book_position=lambda scripture_id, book_id: self.catalogs.book_position(scripture_id, book_id),
        )
        self.bundle = BundleSource(data_root, strategy=self.strategy)
        self.disk_cache = DiskCacheStore(self.storage, strategy=self.strategy)

        self.catalogs = CatalogResolver(
            self.bundle,
            self.disk_cache,
            self.remote,
            self.memory,
            privileged_traditions=self.privileged_traditions,
            privileged_scriptures=self.privileged_scriptures,
            icon_overrides=policy.get("tradition_icon_overrides", {}),
        )
        self.chapters = ChapterResolver(
            self.bundle,
            self.disk_cache,
            self.remote,
            self.memory,
            privileged_scriptures=self.privileged_scriptures,
            dataset_mode=dataset_mode,
        )
        self.prefetcher = PrefetchScheduler(
            self.catalogs,
            self.chapters,
            last_run_store or StateFileLastRunStore(self.storage),
            probe=probe,
            min_interval=prefetch_interval,
            probe_timeout=probe_timeout,
        )
        self.housekeeping = CacheHousekeeping(self.disk_cache, self.memory)
        self._verified_bundle = False

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def load_catalog(self, extended: bool = False) -> Catalog:
        return self.catalogs.load_catalog(extended=extended)

    def get_cached_catalog_if_any(self) -> Optional[Catalog]:
        return self.catalogs.get_cached_catalog_if_any()

    def chapter_count(self, scripture_id: str, book_id: str) -> int:
        return self.catalogs.chapter_count(scripture_id, book_id)

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def resolve_chapter(
        self,
        scripture_id: str,
        book_id: str,
        chapter: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Verse]:
        return self.chapters.resolve_chapter(scripture_id, book_id, chapter, cancel_event=cancel_event)

    def get_cached_chapter_if_any(self, scripture_id: str, book_id: str, chapter: int) -> Optional[list[Verse]]:
        return self.chapters.get_cached_chapter_if_any(scripture_id, book_id, chapter)

    def count_available_chapters(self, scripture_id: str, book_id: str) -> int:
        return self.chapters.count_available_chapters(
            scripture_id, book_id, self.chapter_count(scripture_id, book_id)
        )

    # ------------------------------------------------------------------
    # Prefetch & housekeeping
    # ------------------------------------------------------------------

    def prefetch_if_eligible(self) -> Optional[PrefetchResult]:
        return self.prefetcher.prefetch_if_eligible()

    def prefetch_now(self) -> PrefetchResult:
        return self.prefetcher.prefetch_now()

    def start_background_prefetch(self) -> threading.Thread:
        return self.prefetcher.start_background_prefetch()

    def purge_all(self) -> None:
        self.housekeeping.purge_all()

    def purge_chapters(self) -> None:
        self.housekeeping.purge_chapters()

    def size_in_bytes(self) -> int:
        return self.housekeeping.size_in_bytes()

    def cache_stats(self) -> dict:
        return self.housekeeping.cache_stats()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def verify_bundle(self) -> dict[str, bool]:
        """
        Check that the bundle has an index and a readable first chapter for
        each privileged scripture. Logged once per service instance.
        """
        try:
            bundled = self.catalogs.load_bundled_catalog()
        except ContentError:
            bundled = None

        results = {"index": bundled is not None}
        for scripture_id in self.privileged_scriptures:
            scripture = bundled.scriptures.get(scripture_id) if bundled else None
            readable = False
            if scripture and scripture.books:
                readable = bool(self.chapters.load_from_bundle(scripture_id, scripture.books[0].id, 1))
            results[scripture_id] = readable

        if not self._verified_bundle:
            self._verified_bundle = True
            summary = ", ".join(f"{k}: {'ok' if v else 'missing'}" for k, v in results.items())
            logger.info(f"[SeekDataCheck] {summary}")
        return results

    def _remote_index_reachable(self) -> bool:
        if not self.remote.configured:
            return False
        try:
            self.remote.fetch_catalog(self.remote.base_urls[0])
            return True
        except (ContentError, requests.RequestException) as e:
            logger.debug(f"Remote index check failed: {e}")
            return False

    def data_status_report(self) -> DataStatusReport:
        """Per-scripture sample-chapter health for the privileged set."""
        try:
            self.catalogs.load_bundled_catalog()
            has_bundle_index = True
        except ContentError:
            has_bundle_index = False
        has_cache_index = self.catalogs.has_cache_index()
        has_remote_index = self._remote_index_reachable()

        if has_remote_index:
            source_summary = "remote"
        elif has_cache_index:
            source_summary = "cache"
        elif has_bundle_index:
            source_summary = "bundle"
        else:
            source_summary = "missing"

        try:
            catalog = self.load_catalog()
        except ContentError:
            catalog = self.get_cached_catalog_if_any()

        statuses = []
        for scripture_id in self.privileged_scriptures:
            scripture = catalog.scriptures.get(scripture_id) if catalog else None
            if scripture is None:
                statuses.append(ScriptureStatus(
                    id=scripture_id,
                    name=scripture_id,
                    total_books=0,
                    total_chapters=0,
                    sample_chapter_success=False,
                    sample_chapter_reference="Missing in index",
                ))
                continue

            sample_ok = False
            sample_ref = "No sample"
            if scripture.books:
                sample_book = scripture.books[0]
                sample_ref = f"{sample_book.name} 1"
                try:
                    sample_ok = bool(self.resolve_chapter(scripture_id, sample_book.id, 1))
                except ContentError as e:
                    logger.warning(f"Sample chapter failed for {scripture_id}: {e}")

            statuses.append(ScriptureStatus(
                id=scripture_id,
                name=scripture.name,
                total_books=len(scripture.books),
                total_chapters=sum(max(1, b.chapter_count) for b in scripture.books),
                sample_chapter_success=sample_ok,
                sample_chapter_reference=sample_ref,
            ))

        return DataStatusReport(
            has_bundle_index=has_bundle_index,
            has_cache_index=has_cache_index,
            has_remote_index=has_remote_index,
            source_summary=source_summary,
            scripture_statuses=statuses,
        )
