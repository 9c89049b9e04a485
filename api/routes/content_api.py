# routes/content_api.py
"""
API endpoints for scripture catalog and chapter content.

Provides access to:
- Catalog (traditions, scriptures, books)
- Chapter verses through the tiered resolver
- Diagnostics report for operational tooling
- Prefetch triggers and cache housekeeping
"""

from flask import Blueprint, current_app, request, jsonify

from services.content import (
    ContentError,
    ContentService,
    MissingBundleAsset,
    MissingPrivilegedLocalData,
    classify,
    FailureClass,
)
from services.content.models import Chapter
from services.content.normalizer import normalize_book_id
from utils.errors import (
    bad_upstream_data,
    content_unavailable,
    invalid_field,
    not_found,
    packaging_defect,
    server_error,
)

content_bp = Blueprint("content_api", __name__, url_prefix="/api/content")

SERVICE_KEY = "CONTENT_SERVICE"


def init_content_api(app, service: ContentService) -> None:
    """Attach a ContentService to the app and register the blueprint."""
    app.config[SERVICE_KEY] = service
    app.register_blueprint(content_bp)


def get_service() -> ContentService:
    """ContentService attached to the current app."""
    return current_app.config[SERVICE_KEY]


def _content_error_response(e: ContentError):
    if isinstance(e, (MissingPrivilegedLocalData, MissingBundleAsset)):
        return packaging_defect(str(e), path=e.path)
    failure = classify(e)
    if failure is FailureClass.MALFORMED:
        return bad_upstream_data(str(e))
    if failure is FailureClass.CONNECTIVITY:
        return content_unavailable(str(e))
    return server_error("content_error", str(e))


# =============================================================================
# Catalog
# =============================================================================

@content_bp.get("/catalog")
def get_catalog():
    """
    Get the scripture catalog.

    Query params:
        extended: "true" to consult the remote index (optional)
        cached_only: "true" to skip any loading beyond local tiers (optional)

    Returns:
        {"version": "...", "traditions": [...], "scriptures": {...}}
    """
    service = get_service()
    if request.args.get("cached_only", "").lower() == "true":
        catalog = service.get_cached_catalog_if_any()
        if catalog is None:
            return not_found("catalog")
        return jsonify(catalog.to_dict())

    extended = request.args.get("extended", "").lower() == "true"
    try:
        return jsonify(service.load_catalog(extended=extended).to_dict())
    except ContentError as e:
        return _content_error_response(e)


# =============================================================================
# Chapters
# =============================================================================

@content_bp.get("/chapters/<scripture_id>/<book_id>/<int:chapter>")
def get_chapter(scripture_id: str, book_id: str, chapter: int):
    """
    Resolve a chapter.

    Query params:
        cached_only: "true" to answer from memory/bundle/disk only

    Returns:
        {
            "scriptureId": "bible-kjv",
            "bookId": "genesis",
            "chapter": 1,
            "verses": [{"id": "bible-kjv|genesis|1|1", "number": 1, "text": "..."}]
        }
    """
    if chapter < 1:
        return invalid_field("chapter", "chapter must be >= 1")

    service = get_service()
    if request.args.get("cached_only", "").lower() == "true":
        verses = service.get_cached_chapter_if_any(scripture_id, book_id, chapter)
        if verses is None:
            return not_found("chapter")
    else:
        try:
            verses = service.resolve_chapter(scripture_id, book_id, chapter)
        except ContentError as e:
            return _content_error_response(e)

    return jsonify(Chapter(
        scripture_id=scripture_id,
        book_id=normalize_book_id(book_id),
        chapter=chapter,
        verses=verses,
    ).to_dict())


# =============================================================================
# Diagnostics, prefetch & cache
# =============================================================================

@content_bp.get("/diagnostics")
def get_diagnostics():
    """Data status report plus bundle verification."""
    service = get_service()
    report = service.data_status_report().to_dict()
    report["bundle_check"] = service.verify_bundle()
    return jsonify(report)


@content_bp.post("/prefetch")
def trigger_prefetch():
    """
    Prefetch privileged content.

    Query params:
        force: "true" to bypass throttle and device checks

    Returns:
        {"ran": true, "result": {"attempted": 10, "succeeded": 10, "failed": 0}}
    """
    service = get_service()
    if request.args.get("force", "").lower() == "true":
        result = service.prefetch_now()
    else:
        result = service.prefetch_if_eligible()

    if result is None:
        return jsonify({"ran": False, "result": None})
    return jsonify({"ran": True, "result": result.to_dict()})


@content_bp.get("/cache")
def get_cache_stats():
    """Cache size and counts."""
    return jsonify(get_service().cache_stats())


@content_bp.post("/cache/purge")
def purge_cache():
    """
    Purge cached content.

    Query params:
        scope: "all" (default) or "chapters"
    """
    scope = request.args.get("scope", "all")
    service = get_service()
    if scope == "all":
        service.purge_all()
    elif scope == "chapters":
        service.purge_chapters()
    else:
        return invalid_field("scope", "scope must be 'all' or 'chapters'")
    return jsonify({"purged": scope, "size_bytes": service.size_in_bytes()})
