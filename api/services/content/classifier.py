# api/services/content/classifier.py
"""
Failure classification for tier fallback decisions.

The General resolution policy may only degrade to disk cache or bundle when
a remote failure is connectivity-class. Malformed-data failures must reach
the caller so that publishing defects stay visible.
"""

from enum import Enum

import requests

from .errors import (
    DecodeFailure,
    InvalidCatalogSchema,
    InvalidChapterSchema,
    NetworkUnavailable,
)


class FailureClass(str, Enum):
    CONNECTIVITY = "connectivity"
    MALFORMED = "malformed"
    OTHER = "other"


_CONNECTIVITY_TYPES = (
    NetworkUnavailable,
    requests.ConnectionError,
    requests.Timeout,
    requests.HTTPError,
    TimeoutError,
    ConnectionError,
)

_MALFORMED_TYPES = (
    DecodeFailure,
    InvalidCatalogSchema,
    InvalidChapterSchema,
    ValueError,
)


def classify(error: BaseException) -> FailureClass:
    """Sort an exception into connectivity, malformed or other."""
    # requests.JSONDecodeError is both a ValueError and a RequestException
    if isinstance(error, requests.JSONDecodeError):
        return FailureClass.MALFORMED
    if isinstance(error, _CONNECTIVITY_TYPES):
        return FailureClass.CONNECTIVITY
    if isinstance(error, _MALFORMED_TYPES):
        return FailureClass.MALFORMED
    return FailureClass.OTHER


def is_connectivity_error(error: BaseException) -> bool:
    return classify(error) is FailureClass.CONNECTIVITY


def is_malformed_error(error: BaseException) -> bool:
    return classify(error) is FailureClass.MALFORMED
