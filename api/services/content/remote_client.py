# api/services/content/remote_client.py
"""
HTTP client for remotely hosted catalog and chapter documents.

Maps transport failures onto the content error taxonomy:
    connection refused / DNS / timeout -> NetworkUnavailable
    non-2xx status                     -> EndpointHTTPError
    body not JSON / wrong shape        -> DecodeFailure
    empty verse array                  -> InvalidChapterSchema
"""

import logging
from typing import Optional

import requests

from core import config
from utils.http_retry import get_with_retry

from .bundle import decode_catalog, verses_from_document
from .errors import DecodeFailure, EndpointHTTPError, InvalidChapterSchema, NetworkUnavailable
from .models import Catalog, Verse
from .normalizer import normalize_book_id, normalize_verses

logger = logging.getLogger(__name__)


class RemoteContentClient:
    """
    Fetches documents from a prioritized list of base URLs.

    Usage:
        client = RemoteContentClient(["https://cdn.example.com/data"])
        for base_url in client.base_urls:
            verses = client.fetch_chapter(base_url, "bible-kjv", "genesis", 1)
    """

    def __init__(
        self,
        base_urls: Optional[list[str]] = None,
        index_path: Optional[str] = None,
        chapter_path_template: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
        backoff: float = 1.0,
    ):
        self.base_urls = [u.rstrip("/") for u in (config.REMOTE_BASE_URLS if base_urls is None else base_urls)]
        self.index_path = index_path or config.INDEX_PATH
        self.chapter_path_template = chapter_path_template or config.CHAPTER_PATH_TEMPLATE
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        self.max_retries = config.MAX_RETRIES if max_retries is None else max_retries
        self.session = session or requests.Session()
        self.session.headers.setdefault("Cache-Control", "no-cache")
        self.backoff = backoff

    @property
    def configured(self) -> bool:
        return bool(self.base_urls)

    def index_url(self, base_url: str) -> str:
        return f"{base_url}/{self.index_path}"

    def chapter_url(self, base_url: str, scripture_id: str, book_id: str, chapter: int) -> str:
        path = (
            self.chapter_path_template
            .replace("{scriptureId}", scripture_id)
            .replace("{bookId}", normalize_book_id(book_id))
            .replace("{chapter}", str(chapter))
        )
        return f"{base_url}/{path}"

    def _get_json(self, url: str) -> dict:
        try:
            logger.debug(f"Fetching {url}")
            response = get_with_retry(
                url,
                timeout=self.timeout,
                max_retries=self.max_retries,
                session=self.session,
                backoff=self.backoff,
            )
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise EndpointHTTPError(url, status) from e
        except requests.RequestException as e:
            raise NetworkUnavailable(f"Network error fetching {url}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeFailure(url, e) from e
        if not isinstance(data, dict):
            raise DecodeFailure(url, TypeError("expected a JSON object"))
        return data

    def fetch_catalog(self, base_url: str) -> Catalog:
        url = self.index_url(base_url)
        return decode_catalog(self._get_json(url), url)

    def fetch_chapter(self, base_url: str, scripture_id: str, book_id: str, chapter: int) -> list[Verse]:
        url = self.chapter_url(base_url, scripture_id, book_id, chapter)
        raw = verses_from_document(self._get_json(url), url)
        if not raw:
            raise InvalidChapterSchema(
                f"Verse array is empty for {scripture_id}/{normalize_book_id(book_id)}/{chapter}"
            )
        return normalize_verses(raw, scripture_id, book_id, chapter)
