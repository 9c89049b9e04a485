# api/services/content/__init__.py
"""
Tiered content resolution and cache engine for Seek.

This package provides:
- ContentService: Explicitly constructed facade owning all cache state
- CatalogResolver: Tradition -> scripture -> book catalog loading
- ChapterResolver: Bundle / disk cache / remote resolution policies
- DiskCacheStore: On-disk catalog and chapter cache
- AlternateChapterStrategy: File lookup for divergent chapter numbering
- PrefetchScheduler: Power/network-gated warm-up of privileged content
- CacheHousekeeping: Size accounting and purge operations
- classify: Connectivity vs. malformed-data failure classification
"""

from .models import (
    Book,
    Catalog,
    Chapter,
    DataStatusReport,
    PrefetchResult,
    Scripture,
    ScriptureStatus,
    Tradition,
    Verse,
)
from .errors import (
    AllEndpointsFailed,
    ContentError,
    DecodeFailure,
    EmptyResult,
    EndpointHTTPError,
    InvalidCatalogSchema,
    InvalidChapterSchema,
    MissingBundleAsset,
    MissingPrivilegedLocalData,
    NetworkUnavailable,
    ResolutionCancelled,
)
from .classifier import FailureClass, classify, is_connectivity_error, is_malformed_error
from .normalizer import make_cache_key, make_verse_id, normalize_book_id, normalize_verses
from .alternate_files import AlternateChapterStrategy, intended_chapter_number
from .storage import ContentStorage
from .bundle import BundleSource
from .disk_cache import DiskCacheStore
from .remote_client import RemoteContentClient
from .memory_cache import ContentMemoryCache
from .catalog_resolver import CatalogResolver, validate_catalog
from .chapter_resolver import ChapterResolver, DatasetMode
from .device_probe import DeviceProbe, DeviceState, StaticDeviceProbe, SysfsDeviceProbe
from .prefetch import LastRunStore, PrefetchScheduler, StateFileLastRunStore
from .housekeeping import CacheHousekeeping
from .content_service import ContentService

__all__ = [
    # Facade (primary interface)
    "ContentService",
    # Models
    "Book",
    "Catalog",
    "Chapter",
    "DataStatusReport",
    "PrefetchResult",
    "Scripture",
    "ScriptureStatus",
    "Tradition",
    "Verse",
    # Errors
    "ContentError",
    "AllEndpointsFailed",
    "DecodeFailure",
    "EmptyResult",
    "EndpointHTTPError",
    "InvalidCatalogSchema",
    "InvalidChapterSchema",
    "MissingBundleAsset",
    "MissingPrivilegedLocalData",
    "NetworkUnavailable",
    "ResolutionCancelled",
    "FailureClass",
    "classify",
    "is_connectivity_error",
    "is_malformed_error",
    # Normalization
    "make_cache_key",
    "make_verse_id",
    "normalize_book_id",
    "normalize_verses",
    # Tiers
    "AlternateChapterStrategy",
    "intended_chapter_number",
    "ContentStorage",
    "BundleSource",
    "DiskCacheStore",
    "RemoteContentClient",
    "ContentMemoryCache",
    # Resolvers
    "CatalogResolver",
    "ChapterResolver",
    "DatasetMode",
    "validate_catalog",
    # Prefetch & housekeeping
    "DeviceProbe",
    "DeviceState",
    "StaticDeviceProbe",
    "SysfsDeviceProbe",
    "LastRunStore",
    "PrefetchScheduler",
    "StateFileLastRunStore",
    "CacheHousekeeping",
]
