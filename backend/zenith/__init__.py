from __future__ import annotations

from typing import Any

from flask import Flask
from flask_jwt_extended import JWTManager

from .auth import auth_bp
from .billing import billing_bp
from .billing.provider import StripeCheckout
from .bootstrap import bootstrap_defaults
from .common.errors import Unauthenticated, register_error_handlers
from .common.realtime import ConnectionRegistry
from .common.storage import LocalObjectStore
from .config import Config, missing_settings
from .extensions import cors, db, jwt, sock
from .files import files_bp
from .folders import folders_bp
from .items import items_bp
from .realtime import realtime_bp
from .shares import objects_bp, shares_bp
from .stars import stars_bp


def _register_jwt_handlers(jwt_manager: JWTManager) -> None:
    """Every token failure is a 401 in the shared error shape."""

    @jwt_manager.unauthorized_loader
    def missing_token(reason: str):  # type: ignore[no-untyped-def]
        return Unauthenticated("Sign in to access your drive.").with_details(reason=reason).to_response()

    @jwt_manager.invalid_token_loader
    def invalid_token(reason: str):  # type: ignore[no-untyped-def]
        return Unauthenticated("Session token is not valid.", code="INVALID_TOKEN").with_details(reason=reason).to_response()

    @jwt_manager.expired_token_loader
    def expired_token(jwt_header, jwt_payload):  # type: ignore[no-untyped-def]
        return Unauthenticated("Session expired, sign in again.", code="TOKEN_EXPIRED").to_response()


def create_app(config_override: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_override:
        app.config.update(config_override)

    missing = missing_settings(app.config)
    if missing:
        app.logger.critical("Missing environment variables: %s", ", ".join(missing))
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    db.init_app(app)
    jwt.init_app(app)
    _register_jwt_handlers(jwt)
    cors.init_app(app, resources={r"/*": {"origins": app.config["FRONTEND_ORIGINS"]}})
    sock.init_app(app)

    app.extensions["object_store"] = LocalObjectStore(app.config["STORAGE_ROOT"], app.config["JWT_SECRET_KEY"])
    app.extensions["connection_registry"] = ConnectionRegistry(app.logger)
    app.extensions["payment_provider"] = StripeCheckout(
        secret_key=app.config["STRIPE_SECRET_KEY"],
        price_id=app.config["STRIPE_PRICE_ID"],
        frontend_origin=app.config["FRONTEND_ORIGIN"],
        webhook_secret=app.config["STRIPE_WEBHOOK_SECRET"],
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(folders_bp)
    app.register_blueprint(shares_bp)
    app.register_blueprint(objects_bp)
    app.register_blueprint(stars_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(realtime_bp)

    @app.get("/")
    def index():
        return "Backend Server is Running!"

    @app.get("/health")
    def healthcheck():
        return {"status": "ok"}

    register_error_handlers(app)
    bootstrap_defaults(app)

    return app
