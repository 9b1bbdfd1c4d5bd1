# draftpress/api/v1/publish.py
from flask import g, jsonify, request
from flask_jwt_extended import jwt_required

from draftpress.application.cms.publish_entity import publish_entity, publish_site, unpublish_entity
from draftpress.utils.decorators import current_actor, roles_required
from . import v1_bp
from .entities import PUBLISH_ROLES


def _timeout():
    raw = request.args.get("timeout", "")
    return float(raw) if raw.replace(".", "", 1).isdigit() else None


@v1_bp.route("/publish/<kind>/<entity_id>", methods=["POST"])
@jwt_required()
@roles_required(*PUBLISH_ROLES)
@current_actor
def publish(kind, entity_id):
    result = publish_entity(
        kind=kind,
        entity_id=entity_id,
        actor_id=g.actor_id,
        session_id=g.session_id,
        timeout=_timeout(),
    )
    return jsonify(result), 200


@v1_bp.route("/publish/<kind>/<entity_id>", methods=["DELETE"])
@jwt_required()
@roles_required(*PUBLISH_ROLES)
@current_actor
def unpublish(kind, entity_id):
    result = unpublish_entity(
        kind=kind,
        entity_id=entity_id,
        actor_id=g.actor_id,
        session_id=g.session_id,
        timeout=_timeout(),
    )
    return jsonify(result), 200


@v1_bp.route("/publish", methods=["POST"])
@jwt_required()
@roles_required(*PUBLISH_ROLES)
@current_actor
def publish_everything():
    return jsonify(publish_site(actor_id=g.actor_id, session_id=g.session_id)), 200
