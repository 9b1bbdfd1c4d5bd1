# draftpress/api/v1/versions.py
from flask import g, jsonify, request
from flask_jwt_extended import jwt_required

from draftpress.application.cms.restore_version import (
    list_versions,
    redo_entity,
    restore_version,
    undo_entity,
)
from draftpress.normalizers.pagination import normalize_pagination
from draftpress.normalizers.version import normalize_version
from draftpress.utils.decorators import current_actor, roles_required
from draftpress.utils.pagination import parse_limit
from . import v1_bp
from .entities import PUBLISH_ROLES


@v1_bp.route("/versions/<kind>/<entity_id>", methods=["GET"])
@jwt_required()
def list_entity_versions(kind, entity_id):
    include_patches = request.args.get("patches", "").lower() in {"1", "true"}
    items, cursor = list_versions(
        kind=kind,
        entity_id=entity_id,
        limit=parse_limit(request.args.get("limit")),
        cursor=request.args.get("cursor"),
    )
    return jsonify(normalize_pagination(
        items,
        lambda version: normalize_version(version, include_patches=include_patches),
        cursor=cursor,
    )), 200


@v1_bp.route("/versions/<kind>/<entity_id>/undo", methods=["POST"])
@jwt_required()
@current_actor
def undo(kind, entity_id):
    version = undo_entity(kind=kind, entity_id=entity_id, actor_id=g.actor_id, session_id=g.session_id)
    return jsonify(normalize_version(version)), 200


@v1_bp.route("/versions/<kind>/<entity_id>/redo", methods=["POST"])
@jwt_required()
@current_actor
def redo(kind, entity_id):
    version = redo_entity(kind=kind, entity_id=entity_id, actor_id=g.actor_id, session_id=g.session_id)
    return jsonify(normalize_version(version)), 200


@v1_bp.route("/versions/<kind>/<entity_id>/restore/<version_id>", methods=["POST"])
@jwt_required()
@roles_required(*PUBLISH_ROLES)
@current_actor
def restore(kind, entity_id, version_id):
    version = restore_version(
        kind=kind,
        entity_id=entity_id,
        version_id=version_id,
        actor_id=g.actor_id,
        session_id=g.session_id,
    )
    return jsonify(normalize_version(version)), 200
