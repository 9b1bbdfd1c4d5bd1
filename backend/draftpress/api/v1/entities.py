# draftpress/api/v1/entities.py
from flask import g, jsonify, request
from flask_jwt_extended import jwt_required

from draftpress.application.cms.delete_draft import delete_draft
from draftpress.application.cms.revert_draft import revert_to_published
from draftpress.application.cms.save_draft import save_draft
from draftpress.domain.exceptions import ConstraintViolation, NotFound
from draftpress.engine import get_engine
from draftpress.normalizers.entity import normalize_entity
from draftpress.utils.decorators import current_actor, roles_required
from draftpress.utils.optimistic_lock import enforce_unmodified_since, expected_hash_from_request
from . import v1_bp

PUBLISH_ROLES = ("admin", "publisher")


def _entity_response(store, row, status=200):
    response = jsonify(normalize_entity(store, row, admin=True))
    response.status_code = status
    if row.content_hash:
        response.headers["ETag"] = row.content_hash
    return response


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ConstraintViolation("Request body must be a JSON object")
    return data


@v1_bp.route("/entities/<kind>", methods=["POST"])
@jwt_required()
@current_actor
def create_entity(kind):
    store = get_engine().store(kind)
    data = _payload()
    entity_id = data.pop("id", None)

    if entity_id and store.find(entity_id, False, include_deleted=True) is not None:
        raise ConstraintViolation(f"{kind} {entity_id} already exists")

    row = save_draft(
        kind=kind,
        entity_id=entity_id,
        data=data,
        actor_id=g.actor_id,
        session_id=g.session_id,
    )
    return _entity_response(store, row, status=201)


@v1_bp.route("/entities/<kind>/<entity_id>", methods=["GET"])
@jwt_required()
def get_entity(kind, entity_id):
    store = get_engine().store(kind)
    state = request.args.get("state", "draft")

    if state == "published":
        row = store.get_published(entity_id)
    elif state == "draft":
        row = store.get_draft(entity_id)
    else:
        raise ConstraintViolation("state must be 'draft' or 'published'")

    return _entity_response(store, row)


@v1_bp.route("/entities/<kind>/<entity_id>", methods=["PUT", "PATCH"])
@jwt_required()
@current_actor
def update_entity(kind, entity_id):
    store = get_engine().store(kind)

    # -----------------------
    # Optimistic Locking Check
    # -----------------------
    enforce_unmodified_since(store.find(entity_id, False))

    row = save_draft(
        kind=kind,
        entity_id=entity_id,
        data=_payload(),
        expected_hash=expected_hash_from_request(),
        actor_id=g.actor_id,
        session_id=g.session_id,
        description=request.headers.get("X-Change-Description"),
    )
    return _entity_response(store, row)


@v1_bp.route("/entities/<kind>/<entity_id>", methods=["DELETE"])
@jwt_required()
@current_actor
def delete_entity(kind, entity_id):
    deleted = delete_draft(
        kind=kind,
        entity_id=entity_id,
        actor_id=g.actor_id,
        session_id=g.session_id,
    )
    return jsonify({
        "message": f"{kind} deleted",
        "deleted": [f"{k}:{i}" for k, i in deleted],
    }), 200


@v1_bp.route("/entities/<kind>/<entity_id>/children/<child_kind>", methods=["GET"])
@jwt_required()
def list_entity_children(kind, entity_id, child_kind):
    child_store = get_engine().store(child_kind)
    column = next((ref.column for ref in child_store.parents if ref.kind == kind), None)
    if column is None:
        raise NotFound(f"{child_kind} is not a child of {kind}")

    is_published = request.args.get("state", "draft") == "published"
    children = child_store.list_children(entity_id, is_published, column=column)

    return jsonify({
        "items": [normalize_entity(child_store, child) for child in children],
    }), 200


@v1_bp.route("/entities/<kind>/<entity_id>/revert", methods=["POST"])
@jwt_required()
@roles_required(*PUBLISH_ROLES)
@current_actor
def revert_entity(kind, entity_id):
    result = revert_to_published(
        kind=kind,
        entity_id=entity_id,
        actor_id=g.actor_id,
        session_id=g.session_id,
    )
    return jsonify(result), 200
