from __future__ import annotations

from typing import Any

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ..extensions import db


class APIError(Exception):
    """A failure rendered to the client as `{"error": {code, message, details}}`."""

    def __init__(self, status_code: int, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}

    def with_details(self, **details: Any) -> APIError:
        self.details.update(details)
        return self

    def to_response(self):  # type: ignore[no-untyped-def]
        return jsonify(error_payload(self.code, self.message, self.details)), self.status_code


class ValidationError(APIError):
    """Missing or malformed input."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: dict[str, Any] | None = None) -> None:
        super().__init__(400, code, message, details)


class NotFoundOrForbidden(APIError):
    """The resource is absent or the caller may not act on it.

    Both cases share one response so that non-owners cannot probe for
    existence.
    """

    def __init__(self, message: str = "Resource not found or you do not have permission.", code: str = "NOT_FOUND") -> None:
        super().__init__(404, code, message)


class Conflict(APIError):
    def __init__(self, message: str, code: str = "CONFLICT") -> None:
        super().__init__(409, code, message)


class Unauthenticated(APIError):
    def __init__(self, message: str = "Authentication required.", code: str = "UNAUTHENTICATED") -> None:
        super().__init__(401, code, message)


class UpstreamFailure(APIError):
    """A store, object store or payment provider call failed."""

    def __init__(self, message: str = "An upstream service failed.", code: str = "UPSTREAM_FAILURE") -> None:
        super().__init__(500, code, message)


def error_payload(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }


# Werkzeug errors raised outside our own code, e.g. MAX_CONTENT_LENGTH or an unknown route.
HTTP_ERROR_CODES = {
    404: "ROUTE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "UPLOAD_TOO_LARGE",
}


def register_error_handlers(app: Flask) -> None:
    app.register_error_handler(APIError, APIError.to_response)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):  # type: ignore[no-untyped-def]
        status = error.code or 500
        code = HTTP_ERROR_CODES.get(status, "HTTP_ERROR")
        return APIError(status, code, error.description or error.name).to_response()

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error: SQLAlchemyError):  # type: ignore[no-untyped-def]
        db.session.rollback()
        app.logger.exception("Resource store query failed", exc_info=error)
        return UpstreamFailure("The resource store failed to process the request.").to_response()

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[no-untyped-def]
        app.logger.exception("Unhandled exception", exc_info=error)
        return APIError(500, "INTERNAL_ERROR", "An unexpected error occurred.").to_response()
