# api/services/content/catalog_resolver.py
"""
Catalog (index) resolution.

Privileged loads come only from the bundled index.json, filtered to the
privileged tradition/scripture sets. They never touch the network. Extended
loads try the remote index first and degrade to disk cache, then bundle,
on connectivity-class failures only.
"""

import logging
from dataclasses import replace
from typing import Optional

from .bundle import BundleSource
from .classifier import FailureClass, classify
from .disk_cache import DiskCacheStore
from .errors import AllEndpointsFailed, ContentError, InvalidCatalogSchema, NetworkUnavailable
from .memory_cache import ContentMemoryCache
from .models import Book, Catalog
from .normalizer import normalize_book_id
from .remote_client import RemoteContentClient

logger = logging.getLogger(__name__)


def validate_catalog(catalog: Catalog) -> Catalog:
    """
    Reject catalogs that break structural invariants.

    Raises:
        InvalidCatalogSchema: With the first violation found
    """
    if not catalog.traditions:
        raise InvalidCatalogSchema("traditions is empty")
    if not catalog.scriptures:
        raise InvalidCatalogSchema("scriptures is empty")
    for scripture_id, scripture in catalog.scriptures.items():
        if not scripture.books:
            raise InvalidCatalogSchema(f"scripture {scripture_id} has no books")
        if any(book.chapter_count < 1 for book in scripture.books):
            raise InvalidCatalogSchema(f"scripture {scripture_id} has a book with chapterCount < 1")
    return catalog


def filter_catalog(catalog: Catalog, tradition_ids: set[str], scripture_ids: set[str]) -> Catalog:
    """Keep only the given traditions/scriptures, pruning membership lists too."""
    traditions = [
        replace(t, scriptures=[s for s in t.scriptures if s in scripture_ids])
        for t in catalog.traditions
        if t.id in tradition_ids
    ]
    scriptures = {k: v for k, v in catalog.scriptures.items() if k in scripture_ids}
    return Catalog(version=catalog.version, traditions=traditions, scriptures=scriptures)


def apply_icon_overrides(catalog: Catalog, overrides: dict[str, str]) -> Catalog:
    """Correct known upstream tradition icon metadata."""
    traditions = [
        replace(t, icon=overrides[t.id]) if t.id in overrides else t
        for t in catalog.traditions
    ]
    return Catalog(version=catalog.version, traditions=traditions, scriptures=catalog.scriptures)


class CatalogResolver:
    """
    Loads, validates and memoizes the scripture catalog.

    Usage:
        resolver = CatalogResolver(bundle, disk_cache, remote, memory, ...)
        catalog = resolver.load_catalog()
        count = resolver.chapter_count("bible-kjv", "genesis")
    """

    def __init__(
        self,
        bundle: BundleSource,
        disk_cache: DiskCacheStore,
        remote: RemoteContentClient,
        memory: ContentMemoryCache,
        privileged_traditions: list[str],
        privileged_scriptures: list[str],
        icon_overrides: Optional[dict[str, str]] = None,
    ):
        self.bundle = bundle
        self.disk_cache = disk_cache
        self.remote = remote
        self.memory = memory
        self.privileged_traditions = set(privileged_traditions)
        self.privileged_scriptures = set(privileged_scriptures)
        self.icon_overrides = dict(icon_overrides or {})

    def _privileged_view(self, catalog: Catalog) -> Catalog:
        filtered = filter_catalog(catalog, self.privileged_traditions, self.privileged_scriptures)
        return apply_icon_overrides(filtered, self.icon_overrides)

    def load_bundled_catalog(self) -> Catalog:
        """Validated, unfiltered bundled catalog."""
        return validate_catalog(self.bundle.load_catalog())

    def load_catalog(self, extended: bool = False) -> Catalog:
        """
        Resolve the catalog.

        Args:
            extended: Also consult the remote index (non-privileged content)

        Raises:
            MissingBundleAsset: Bundled index.json absent
            InvalidCatalogSchema: Catalog violates invariants
            DecodeFailure / NetworkUnavailable: extended loads only
        """
        if not extended:
            cached = self.memory.get_catalog()
            if cached is not None:
                return cached

            catalog = self._privileged_view(self.load_bundled_catalog())
            self.memory.set_catalog(catalog)
            self.disk_cache.save_catalog(catalog)
            logger.info(f"Loaded bundled catalog v{catalog.version} with {len(catalog.scriptures)} scriptures")
            return catalog

        return self._load_extended_catalog()

    def _load_extended_catalog(self) -> Catalog:
        # The memory slot only ever holds the privileged view
        if not self.remote.configured:
            raise NetworkUnavailable("No remote endpoints configured")

        malformed: Optional[BaseException] = None
        last_error: Optional[BaseException] = None
        for base_url in self.remote.base_urls:
            try:
                catalog = validate_catalog(self.remote.fetch_catalog(base_url))
            except ContentError as e:
                last_error = e
                if classify(e) is FailureClass.MALFORMED and malformed is None:
                    malformed = e
                logger.warning(f"Failed to load index from {base_url}: {e}")
                continue

            catalog = apply_icon_overrides(catalog, self.icon_overrides)
            self.disk_cache.save_catalog(catalog)
            logger.info(f"Loaded remote catalog v{catalog.version} from {base_url}")
            return catalog

        if malformed is not None:
            raise malformed

        cached = self._cached_catalog_from_disk()
        if cached is not None:
            logger.info("Remote index unavailable, serving cached catalog")
            return cached

        try:
            bundled = apply_icon_overrides(self.load_bundled_catalog(), self.icon_overrides)
        except ContentError:
            raise AllEndpointsFailed(len(self.remote.base_urls)) from last_error
        logger.info("Remote index unavailable, serving bundled catalog")
        return bundled

    def _cached_catalog_from_disk(self) -> Optional[Catalog]:
        catalog = self.disk_cache.load_catalog_if_present()
        if catalog is None:
            return None
        try:
            return validate_catalog(catalog)
        except InvalidCatalogSchema as e:
            logger.warning(f"Ignoring invalid cached catalog: {e}")
            return None

    def get_cached_catalog_if_any(self) -> Optional[Catalog]:
        """Best-effort catalog without network: memory, bundle, then disk cache."""
        cached = self.memory.get_catalog()
        if cached is not None:
            return cached
        try:
            catalog = self._privileged_view(self.load_bundled_catalog())
        except ContentError as e:
            logger.debug(f"Bundled catalog unavailable: {e}")
            catalog = self._cached_catalog_from_disk()
            if catalog is None:
                return None
            catalog = self._privileged_view(catalog)
        self.memory.set_catalog(catalog)
        return catalog

    def has_cache_index(self) -> bool:
        return self._cached_catalog_from_disk() is not None

    # ------------------------------------------------------------------
    # Book lookups
    # ------------------------------------------------------------------

    def find_book(self, scripture_id: str, book_id: str) -> Optional[Book]:
        catalog = self.get_cached_catalog_if_any()
        scripture = catalog.scriptures.get(scripture_id) if catalog else None
        if scripture is None:
            return None
        for book in scripture.books:
            if book.id == book_id:
                return book
        normalized = normalize_book_id(book_id)
        for book in scripture.books:
            if normalize_book_id(book.id) == normalized:
                return book
        return None

    def chapter_count(self, scripture_id: str, book_id: str) -> int:
        book = self.find_book(scripture_id, book_id)
        if book is None:
            logger.debug(f"chapter_count: book not found {scripture_id}/{book_id}")
            return 0
        return book.chapter_count

    def book_position(self, scripture_id: str, book_id: str) -> Optional[int]:
        """1-based position of a book within its scripture."""
        catalog = self.get_cached_catalog_if_any()
        scripture = catalog.scriptures.get(scripture_id) if catalog else None
        if scripture is None:
            return None
        normalized = normalize_book_id(book_id)
        for position, book in enumerate(scripture.books, start=1):
            if normalize_book_id(book.id) == normalized:
                return position
        return None

