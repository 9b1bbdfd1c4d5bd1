import uuid
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from draftpress import create_app
from draftpress.application.cms.save_draft import save_draft
from draftpress.engine import get_engine
from draftpress.extensions import db
from draftpress.models.base import utc_now


def build_test_app(tmp_path, overrides=None):
    db_path = tmp_path / f"draftpress_test_{uuid.uuid4().hex[:8]}.db"
    upload_path = tmp_path / f"uploads_{uuid.uuid4().hex[:8]}"

    config = {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "UPLOAD_FOLDER": str(upload_path),
    }
    if overrides:
        config.update(overrides)

    app = create_app("testing", config)
    with app.app_context():
        db.create_all()
    return app


@pytest.fixture()
def app(tmp_path):
    return build_test_app(tmp_path)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def engine(app):
    """Engine-level tests run inside one application context."""
    with app.app_context():
        yield get_engine()
        db.session.remove()


@pytest.fixture()
def save(engine):
    def _save(kind, entity_id=None, expected_hash=None, **fields):
        return save_draft(
            kind=kind,
            entity_id=entity_id,
            data=fields,
            actor_id="user-1",
            expected_hash=expected_hash,
        )
    return _save


def auth_headers(app, role="admin", identity="user-1"):
    with app.app_context():
        token = create_access_token(identity=identity, additional_claims={"role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin(app):
    return auth_headers(app, role="admin")


@pytest.fixture()
def editor(app):
    return auth_headers(app, role="editor", identity="user-2")


@pytest.fixture()
def age_deletion():
    """Backdate a soft delete so the purge sees it as expired."""
    def _age(kind, entity_id, days):
        row = get_engine().store(kind).find(entity_id, False, include_deleted=True)
        row.deleted_at = utc_now() - timedelta(days=days)
        db.session.commit()
    return _age
