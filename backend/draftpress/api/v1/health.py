from flask import jsonify
from sqlalchemy import text

from draftpress.extensions import db
from . import v1_bp


@v1_bp.route('/health', methods=['GET'])
def health_check():
    db.session.execute(text("SELECT 1"))
    return jsonify({
        "status": "ok",
        "service": "draftpress"
    })
