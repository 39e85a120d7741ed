# timeclock_api/common/errors.py
from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from timeclock_api.common.http import fail

bp_errors = Blueprint("errors", __name__)


class APIError(Exception):
    """Classified failure surfaced to the caller as-is."""
    code = "api_error"
    status_code = 400

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class Unauthenticated(APIError):
    code = "auth.unauthenticated"
    status_code = 401


class Forbidden(APIError):
    code = "auth.forbidden"
    status_code = 403


class ValidationError(APIError):
    code = "validation_error"
    status_code = 422


class ConflictError(APIError):
    code = "conflict"
    status_code = 409


class NotFoundError(APIError):
    code = "not_found"
    status_code = 404


@bp_errors.app_errorhandler(APIError)
def _api_error(e: APIError):
    return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

@bp_errors.app_errorhandler(HTTPException)
def _http(e: HTTPException):
    return fail(message=e.description or "HTTP error", status=e.code or 400)

# store failures (connectivity, constraint violations) stay opaque to the caller
@bp_errors.app_errorhandler(SQLAlchemyError)
def _store(e: SQLAlchemyError):
    current_app.logger.exception("store failure")
    return fail(message="Internal server error", status=500, code="internal_error")

@bp_errors.app_errorhandler(Exception)
def _unhandled(e: Exception):
    current_app.logger.exception(e)
    return fail(message="Internal server error", status=500, code="internal_error")
