# Overview: Service error hierarchy and the Flask handlers that render it as JSON.

"""
Error model shared by services and routes.

Services raise ServiceError subclasses; routes let them propagate and the
handlers registered here turn them into a JSON body:

    {"message": str, "kind": ErrorKind, "errors": [str]?, "details": {}?}

Only messages written by this codebase reach the client. Anything else
(database failures, bugs) is logged with its traceback and answered with a
generic 500 so raw exception text never leaves the server.
"""

from __future__ import annotations

import enum

from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ErrorKind(str, enum.Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


_STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INTERNAL: 500,
}


class ServiceError(Exception):
    """Base class for errors whose message is safe to show to API clients."""

    kind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str, *, errors: list[str] | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        body = {"message": self.message, "kind": self.kind.value}
        if self.errors:
            body["errors"] = list(self.errors)
        if self.details:
            body["details"] = dict(self.details)
        return body


class ValidationError(ServiceError):
    """Malformed id, missing field or failed field validation (400)."""

    def __init__(self, message: str = "Validation failed", *, errors: list[str] | None = None, details: dict | None = None):
        super().__init__(message, errors=errors if errors is not None else [message], details=details)


class BusinessRuleError(ServiceError):
    """Request is well formed but breaks a domain rule (400)."""


class InvalidTransitionError(BusinessRuleError):
    """Status change not allowed from the current status."""


class InsufficientStockError(BusinessRuleError):
    """Applying a stock change would drive a product below zero."""


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class AuthenticationError(ServiceError):
    kind = ErrorKind.UNAUTHORIZED


class PermissionDenied(ServiceError):
    kind = ErrorKind.FORBIDDEN


def error_response(message: str, kind: ErrorKind, **extra):
    body = {"message": message, "kind": kind.value}
    body.update(extra)
    return jsonify(body), _STATUS_BY_KIND[kind]


def register_error_handlers(app) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        if isinstance(exc, (BusinessRuleError, PermissionDenied)):
            current_app.logger.info(
                "%s %s rejected: %s", request.method, request.path, exc.message
            )
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(exc: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("Database error on %s %s", request.method, request.path)
        return error_response("Internal server error", ErrorKind.INTERNAL)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        kind = {
            400: ErrorKind.BAD_REQUEST,
            401: ErrorKind.UNAUTHORIZED,
            403: ErrorKind.FORBIDDEN,
            404: ErrorKind.NOT_FOUND,
        }.get(exc.code, ErrorKind.BAD_REQUEST if (exc.code or 500) < 500 else ErrorKind.INTERNAL)
        body = {"message": exc.name, "kind": kind.value}
        return jsonify(body), exc.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error_response("Internal server error", ErrorKind.INTERNAL)
