import logging
import os

from flask import Flask, current_app, send_file
from flask_swagger_ui import get_swaggerui_blueprint

from .api.v1 import v1_bp
from .cli import register_commands
from .config import config_by_name
from .engine import init_engine
from .errors import register_error_handlers
from .extensions import db, jwt, migrate
from .middleware.edit_session import edit_session_middleware


def create_app(config_name: str = "development", overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    init_engine(app)

    # -------------------------------------------------
    # Middleware
    # -------------------------------------------------
    edit_session_middleware(app)

    # -------------------------------------------------
    # API Blueprints
    # -------------------------------------------------
    app.register_blueprint(v1_bp, url_prefix="/api/v1")
    register_error_handlers(app)
    register_commands(app)

    # -------------------------------------------------
    # Serve OpenAPI YAML (PUBLIC)
    # -------------------------------------------------
    @app.route("/openapi/draftpress.yaml", methods=["GET"], endpoint="openapi_draftpress")
    def serve_openapi():
        spec_path = os.path.join(
            current_app.root_path,
            "api",
            "v1",
            "draftpress_openapi.yaml",
        )

        if not os.path.exists(spec_path):
            raise FileNotFoundError("draftpress_openapi.yaml not found")

        return send_file(
            spec_path,
            mimetype="application/yaml",
            as_attachment=False,
        )

    # -------------------------------------------------
    # Swagger UI
    # -------------------------------------------------
    SWAGGER_URL = "/swagger"
    API_URL = "/openapi/draftpress.yaml"

    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            "app_name": "DraftPress API",
            "deepLinking": True,
            "persistAuthorization": True,
        },
    )

    app.register_blueprint(swaggerui_blueprint, url_prefix=SWAGGER_URL)

    return app
