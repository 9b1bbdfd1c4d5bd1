# draftpress/api/v1/site.py
from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from draftpress.application.rendering import (
    fetch_collection_items,
    fetch_context_from_request,
    fetch_page_by_path,
)
from draftpress.engine import get_engine
from draftpress.normalizers.pagination import normalize_pagination
from . import v1_bp


def _preview_allowed():
    # Drafts are only readable by authenticated editors.
    verify_jwt_in_request(optional=True)
    return get_jwt_identity() is not None


@v1_bp.route("/site/pages/", defaults={"path": ""}, methods=["GET"])
@v1_bp.route("/site/pages/<path:path>", methods=["GET"])
def site_page(path):
    ctx = fetch_context_from_request(request, preview_allowed=_preview_allowed())
    return jsonify(fetch_page_by_path(path, ctx, settings=get_engine().settings)), 200


@v1_bp.route("/site/collections/<collection_id>/items", methods=["GET"])
def site_collection_items(collection_id):
    ctx = fetch_context_from_request(
        request,
        preview_allowed=_preview_allowed(),
        items_per_page=current_app.config["DEFAULT_ITEMS_PER_PAGE"],
    )
    result = fetch_collection_items(collection_id, ctx)
    response = normalize_pagination(
        result["items"],
        lambda item: item,
        page=ctx.page,
        per_page=ctx.items_per_page,
        total=result["total"],
    )
    response["collection"] = result["collection"]
    return jsonify(response), 200
