# draftpress/api/v1/assets.py
from flask import g, jsonify, request
from flask_jwt_extended import jwt_required

from draftpress.application.cms.upload_asset import upload_asset
from draftpress.domain.exceptions import ConstraintViolation
from draftpress.engine import get_engine
from draftpress.normalizers.entity import normalize_entity
from draftpress.utils.decorators import current_actor
from . import v1_bp


def _optional_int(name):
    raw = request.form.get(name, "")
    return int(raw) if raw.isdigit() else None


@v1_bp.route("/assets", methods=["POST"])
@jwt_required()
@current_actor
def create_asset():
    file = request.files.get("file")
    if file is None:
        raise ConstraintViolation("Missing 'file' upload")

    asset = upload_asset(
        file=file,
        actor_id=g.actor_id,
        source=request.form.get("source", "library"),
        width=_optional_int("width"),
        height=_optional_int("height"),
        session_id=g.session_id,
    )

    engine = get_engine()
    data = normalize_entity(engine.store("asset"), asset, admin=True)
    data["public_url"] = engine.blob_store.public_url(asset.storage_path)
    return jsonify(data), 201
