from __future__ import annotations

from pathlib import Path

from flask import Flask
from sqlalchemy.exc import OperationalError, ProgrammingError

from .extensions import db


def ensure_storage_root(app: Flask) -> None:
    Path(app.config["STORAGE_ROOT"]).mkdir(parents=True, exist_ok=True)


def ensure_schema(app: Flask) -> None:
    with app.app_context():
        try:
            db.create_all()
        except (OperationalError, ProgrammingError):
            db.session.rollback()
            app.logger.warning("Schema creation failed; the resource store may be unreachable", exc_info=True)


def bootstrap_defaults(app: Flask) -> None:
    ensure_storage_root(app)
    if app.config["AUTO_CREATE_SCHEMA"]:
        ensure_schema(app)
