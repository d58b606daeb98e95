from __future__ import annotations

from flask import Flask
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, StoreError
from .http import fail


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        if isinstance(e, StoreError):
            app.logger.error("store failure: %s", e)
        return fail(str(e), status=e.http_status, code=type(e).__name__)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        app.logger.exception(e)
        if app.config.get("DEBUG"):
            return fail(f"Internal server error: {e}", status=500)
        return fail("Internal server error", status=500)
