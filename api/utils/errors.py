# api/utils/errors.py
"""
JSON error responses for the content API.

Every error body has the shape {"error": "<code>", "detail": "..."} plus
any extra fields the caller attaches (e.g. the missing bundle path).
Codes are snake_case so clients can branch on them.

Status mapping used by the content endpoints:
    400  bad request parameter
    404  nothing cached / unknown resource
    500  offline-promised data missing from the install
    502  remote content published malformed
    503  no tier reachable
"""

from flask import jsonify
from typing import Optional


def error_response(
    code: str,
    status: int = 400,
    detail: Optional[str] = None,
    **extra
):
    """
    Build an error response.

    Args:
        code: Machine-readable error code
        status: HTTP status code
        detail: Human-readable explanation (optional)
        **extra: Additional fields merged into the body

    Returns:
        Tuple of (jsonify response, status code)
    """
    payload = {"error": code}
    if detail:
        payload["detail"] = detail
    payload.update(extra)
    return jsonify(payload), status


def not_found(resource: str = "content", detail: str = None):
    return error_response("not_found", 404, detail or f"{resource} not found")


def invalid_field(field: str, detail: str = None):
    return error_response(f"invalid_{field}", 400, detail)


def server_error(code: str = "internal_error", detail: str = None):
    return error_response(code, 500, detail)


# -----------------------------------------------------------------------------
# Content resolution failures
# -----------------------------------------------------------------------------

def bad_upstream_data(detail: str = None, **extra):
    """Remote content was published malformed (bad JSON or schema violation)."""
    return error_response("malformed_content", 502, detail, **extra)


def content_unavailable(detail: str = None, **extra):
    """No tier could serve the content due to connectivity."""
    return error_response("content_unavailable", 503, detail, **extra)


def packaging_defect(detail: str = None, **extra):
    """Content promised to work offline is missing locally."""
    return error_response("missing_local_data", 500, detail, **extra)
