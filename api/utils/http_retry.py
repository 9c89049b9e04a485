# api/utils/http_retry.py
"""
HTTP GET with retry for rate limits and transient errors.

Shared utility for content endpoints that are fetched over plain HTTP
(static JSON hosted on a CDN or raw git hosting).

Usage:
    from utils.http_retry import get_with_retry

    response = get_with_retry(
        url="https://cdn.example.com/data/index.json",
        timeout=30,
    )
    data = response.json()
"""

import logging
import time
import requests
from typing import Optional

logger = logging.getLogger(__name__)


def get_with_retry(
    url: str,
    timeout: float = 30,
    max_retries: int = 2,
    session: Optional[requests.Session] = None,
    headers: Optional[dict] = None,
    backoff: float = 1.0,
) -> requests.Response:
    """
    GET with automatic retry for rate limits and transient server errors.

    Retry behavior:
    - 429 (rate limit): Respects Retry-After header, falls back to exponential backoff
    - 5xx (server error): Exponential backoff
    - Connection errors: Exponential backoff
    - 4xx (client error): No retry (caller's problem)
    - Timeout: No retry (raises immediately)

    Args:
        url: Endpoint URL
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts
        session: Optional requests.Session to issue the request with
        headers: Optional HTTP headers
        backoff: Base delay in seconds for exponential backoff

    Returns:
        requests.Response with a 2xx status

    Raises:
        requests.HTTPError: Non-2xx response (after retries for 429/5xx)
        requests.ConnectionError: Host unreachable after all attempts
        requests.Timeout: Request timed out
    """
    http = session or requests
    attempts = max(1, max_retries)
    last_response = None

    for attempt in range(attempts):
        is_last = attempt == attempts - 1
        try:
            response = http.get(url, headers=headers, timeout=timeout)
        except requests.Timeout:
            logger.warning(f"Request to {url} timed out after {timeout}s")
            raise
        except requests.ConnectionError as e:
            if is_last:
                raise
            wait = backoff * (2 ** attempt)
            logger.warning(f"Connection error to {url}, retrying in {wait}s: {e}")
            time.sleep(wait)
            continue

        # Rate limited: back off and retry
        if response.status_code == 429 and not is_last:
            retry_after = response.headers.get("retry-after")
            try:
                wait = int(retry_after) if retry_after else backoff * (2 ** attempt)
            except ValueError:
                wait = backoff * (2 ** attempt)
            wait = min(wait, 30)
            logger.info(
                f"Rate limited by {url}, waiting {wait}s "
                f"(attempt {attempt + 1}/{attempts})"
            )
            time.sleep(wait)
            last_response = response
            continue

        # Server error: retry with backoff
        if response.status_code >= 500 and not is_last:
            wait = backoff * (2 ** attempt)
            logger.warning(
                f"Server error {response.status_code} from {url}, "
                f"retrying in {wait}s (attempt {attempt + 1}/{attempts})"
            )
            time.sleep(wait)
            last_response = response
            continue

        response.raise_for_status()
        return response

    # Exhausted retries
    status = last_response.status_code if last_response is not None else "unknown"
    raise requests.HTTPError(
        f"Request to {url} failed after {attempts} attempts (last status: {status})",
        response=last_response,
    )
