import logging
import os

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from app.backoffice.config import load_config
from app.backoffice.db import init_db, teardown_db_session
from app.backoffice import models  # noqa: F401  (registers every table on Base.metadata)
from app.backoffice.errors import DomainError, error_body
from app.backoffice.images import ImageService
from app.backoffice.mailer import mailer_from_config
from app.backoffice.storage import storage_from_config
from app.backoffice.routes import bp as routes_bp
from app.backoffice.auth import bp as auth_bp, load_current_principal
from app.backoffice.modules.customers.api import bp as customers_bp
from app.backoffice.modules.locations.api import bp as locations_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        for key in ("SECRET_KEY", "JWT_SECRET"):
            if not app.config.get(key) or str(app.config[key]) in ("", "change-me"):
                raise RuntimeError(f"{key} must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    # Storage config check (fail loudly on misconfiguration)
    if app.config.get("STORAGE_BACKEND") == "s3":
        missing_s3 = [
            key
            for key in ("S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
            if not app.config.get(key)
        ]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))

    app.extensions["storage"] = storage_from_config(app.config)
    app.extensions["image_service"] = ImageService()
    app.extensions["mailer"] = mailer_from_config(app.config)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(locations_bp)

    app.before_request(load_current_principal)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):  # type: ignore[no-redef]
        app.logger.info(
            "%s: %s (request_id=%s)", type(e).__name__, e.message, getattr(g, "request_id", None)
        )
        return jsonify(error_body(e.status_code, e.title, e.message, request.path)), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-redef]
        status = e.code or 500
        return jsonify(error_body(status, e.name, e.description or e.name, request.path)), status

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in the logs.
        app.logger.error(
            "Unhandled 500 (request_id=%s)",
            getattr(g, "request_id", None),
            exc_info=getattr(e, "original_exception", None) or e,
        )
        return jsonify(error_body(500, "Internal server error", "Unexpected error.", request.path)), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
