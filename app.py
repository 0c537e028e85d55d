"""Application factory."""

import os
import uuid

from flask import Flask, jsonify, g, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from errors import AccountError, InternalError
from extensions import jwt, limiter, migrate
from mail import build_mailer
from models import db
from routes.auth import auth_bp
from routes.users import users_bp


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    app.extensions["mailer"] = build_mailer(app.config)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    limiter.init_app(app)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/users")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _json_error(payload: dict, status_code: int):
    request_id = g.get("request_id") or str(uuid.uuid4())
    payload["request_id"] = request_id
    response = jsonify(payload)
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(AccountError)
    def _handle_account_error(error: AccountError):
        if error.status_code >= 500:
            app.logger.error("%s: %s", error.kind, error.message)
        return _json_error(error.to_dict(), error.status_code)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        response = _json_error(
            {
                "error": getattr(error, "name", "Error"),
                "kind": "http_error",
                "detail": error.description,
            },
            error.code or 500,
        )
        # Keep headers such as Retry-After and Allow from the original error.
        for key, value in error.get_headers():
            if key.lower() != "content-type":
                response.headers.setdefault(key, value)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        app.logger.exception("Unhandled application error", exc_info=error)
        internal = InternalError()
        return _json_error(internal.to_dict(), internal.status_code)


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
