# api/services/content/errors.py
"""
Exception taxonomy for content resolution.

Every failure raised by the resolvers is a ContentError subclass so callers
can catch the family in one place. The error classifier (classifier.py)
sorts these into connectivity-class and malformed-data-class failures.
"""

from typing import Optional


class ContentError(Exception):
    """Base exception for content resolution errors."""
    pass


class MissingBundleAsset(ContentError):
    """A required file is not present in the bundled data folder."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Missing bundled data resource: {path}")


class InvalidCatalogSchema(ContentError):
    """Catalog decoded but violates a structural invariant."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid index data: {reason}")


class InvalidChapterSchema(ContentError):
    """Chapter document decoded but violates a structural invariant."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid chapter data: {reason}")


class EmptyResult(InvalidChapterSchema):
    """A tier produced zero verses; never a valid success."""

    def __init__(self, cache_key: str):
        self.cache_key = cache_key
        super().__init__(f"Verse array is empty for {cache_key}")


class DecodeFailure(ContentError):
    """Payload is not JSON or does not match the expected document shape."""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to decode data from {source}{detail}")


class NetworkUnavailable(ContentError):
    """Remote tier unreachable (offline, DNS, timeout, refused)."""
    pass


class EndpointHTTPError(NetworkUnavailable):
    """Remote endpoint answered with a non-2xx status."""

    def __init__(self, url: str, status: Optional[int]):
        self.url = url
        self.status = status
        super().__init__(f"HTTP {status if status is not None else '?'} from {url}")


class AllEndpointsFailed(NetworkUnavailable):
    """Every configured remote endpoint failed with a connectivity error."""

    def __init__(self, attempted: int = 0):
        self.attempted = attempted
        super().__init__(f"All remote URLs failed ({attempted} attempted)")


class MissingPrivilegedLocalData(ContentError):
    """
    Privileged content missing from both bundle and disk cache.

    This is a packaging defect, not a user connectivity problem.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Privileged scripture unavailable locally (bundle/cache): {path}")


class ResolutionCancelled(ContentError):
    """The caller cancelled an in-flight resolution."""
    pass
