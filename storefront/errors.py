"""Exceptions raised by the storefront services and their HTTP mapping."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db
from .utils.api import api_error


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(StorefrontError):
    """Raised for malformed or missing input."""

    status_code = 400


class NotFoundError(StorefrontError):
    """Raised when a direct lookup (order, product, code) finds nothing."""

    status_code = 404


class ConflictError(StorefrontError):
    """Raised when the request clashes with current stored state."""

    status_code = 409


class StockConflict(ConflictError):
    """Raised when one or more order lines exceed available stock."""

    def __init__(self, shortages):
        self.shortages = list(shortages)
        super().__init__(
            "Insufficient stock",
            {"shortages": [s.as_api() for s in self.shortages]},
        )


def register_error_handlers(app):
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            app.logger.error("storefront error: %s", e.message)
        r = jsonify(api_error(e.message, e.data))
        r.status_code = e.status_code
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        r = jsonify(api_error(e.description or e.name))
        r.status_code = e.code or 500
        return r

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception("unhandled error: %s", e)
        r = jsonify(api_error("Something went wrong. Please try again."))
        r.status_code = 500
        return r
