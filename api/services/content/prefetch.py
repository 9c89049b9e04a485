# api/services/content/prefetch.py
"""
Background warm-up of privileged content.

prefetch_if_eligible() runs at most once per interval, and only when a
single device probe reports an unmetered network or external power. Each
chapter goes through the ChapterResolver, which answers from memory, bundle
or disk cache before it would touch the network.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from core import config

from .catalog_resolver import CatalogResolver
from .chapter_resolver import ChapterResolver
from .device_probe import DeviceProbe, SysfsDeviceProbe, probe_device_state
from .errors import ContentError
from .models import PrefetchResult
from .storage import ContentStorage

logger = logging.getLogger(__name__)

LAST_RUN_KEY = "privileged_prefetch_last_run"


class LastRunStore:
    """Interface for the persisted prefetch timestamp."""

    def get_last_run(self) -> Optional[datetime]:
        raise NotImplementedError

    def set_last_run(self, when: datetime) -> None:
        raise NotImplementedError


class StateFileLastRunStore(LastRunStore):
    """Keeps the timestamp in the content storage state file."""

    def __init__(self, storage: ContentStorage, key: str = LAST_RUN_KEY):
        self.storage = storage
        self.key = key

    def get_last_run(self) -> Optional[datetime]:
        raw = self.storage.get_state().get(self.key)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unparseable prefetch timestamp: {raw!r}")
            return None

    def set_last_run(self, when: datetime) -> None:
        self.storage.update_state(**{self.key: when.isoformat()})


class PrefetchScheduler:
    """
    Time- and device-gated batch prefetch of privileged scriptures.

    Usage:
        scheduler = PrefetchScheduler(catalogs, chapters, StateFileLastRunStore(storage))
        result = scheduler.prefetch_if_eligible()
        if result:
            print(f"{result.succeeded_chapters}/{result.attempted_chapters} cached")
    """

    def __init__(
        self,
        catalog_resolver: CatalogResolver,
        chapter_resolver: ChapterResolver,
        last_run_store: LastRunStore,
        probe: Optional[DeviceProbe] = None,
        min_interval: Optional[timedelta] = None,
        probe_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.catalog_resolver = catalog_resolver
        self.chapter_resolver = chapter_resolver
        self.last_run_store = last_run_store
        self.probe = probe or SysfsDeviceProbe()
        self.min_interval = min_interval or timedelta(hours=config.PREFETCH_INTERVAL_HOURS)
        self.probe_timeout = config.PROBE_TIMEOUT if probe_timeout is None else probe_timeout
        self.clock = clock
        self._running = threading.Lock()

    def is_due(self, now: Optional[datetime] = None) -> bool:
        last_run = self.last_run_store.get_last_run()
        if last_run is None:
            return True
        return (now or self.clock()) - last_run >= self.min_interval

    def prefetch_if_eligible(self) -> Optional[PrefetchResult]:
        """
        Prefetch when the throttle window has passed and the device allows it.

        Returns:
            PrefetchResult, or None if skipped (throttled, device state, or
            another batch already running)
        """
        now = self.clock()
        if not self.is_due(now):
            logger.debug("Prefetch skipped: last run within interval")
            return None

        state = probe_device_state(self.probe, self.probe_timeout)
        if not state.prefetch_allowed:
            logger.debug(f"Prefetch skipped: device state {state}")
            return None

        if not self._running.acquire(blocking=False):
            logger.debug("Prefetch skipped: batch already running")
            return None
        try:
            result = self._prefetch_privileged()
            self.last_run_store.set_last_run(now)
        finally:
            self._running.release()
        return result

    def prefetch_now(self) -> PrefetchResult:
        """Prefetch unconditionally; does not touch the throttle timestamp."""
        with self._running:
            return self._prefetch_privileged()

    def start_background_prefetch(self) -> threading.Thread:
        """Run prefetch_if_eligible() on a daemon thread."""
        thread = threading.Thread(
            target=self._run_in_background,
            name="seek-prefetch",
            daemon=True,
        )
        thread.start()
        return thread

    def _run_in_background(self) -> None:
        try:
            result = self.prefetch_if_eligible()
        except Exception as e:
            logger.warning(f"Background prefetch failed: {e}")
            return
        if result:
            logger.info(
                f"Background prefetch: {result.succeeded_chapters}/{result.attempted_chapters} "
                f"chapters cached, {result.failed_chapters} failed"
            )

    def _prefetch_privileged(self) -> PrefetchResult:
        result = PrefetchResult()
        try:
            catalog = self.catalog_resolver.load_catalog()
        except ContentError as e:
            logger.warning(f"Prefetch aborted, catalog unavailable: {e}")
            return result

        for scripture_id in self.chapter_resolver.privileged_scriptures:
            scripture = catalog.scriptures.get(scripture_id)
            if scripture is None:
                continue
            for book in scripture.books:
                for chapter in range(1, max(1, book.chapter_count) + 1):
                    result.attempted_chapters += 1
                    try:
                        self.chapter_resolver.resolve_chapter(scripture_id, book.id, chapter)
                        result.succeeded_chapters += 1
                    except ContentError as e:
                        result.failed_chapters += 1
                        logger.debug(f"Prefetch failed for {scripture_id}/{book.id}/{chapter}: {e}")

        logger.info(
            f"Prefetch complete: {result.succeeded_chapters}/{result.attempted_chapters} "
            f"chapters cached, {result.failed_chapters} failed"
        )
        return result
