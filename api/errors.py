from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from utils.errors import AuthError, BackendFailure, Unauthenticated


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        if current_app and current_app.debug:
            logging.debug("Validation failed: %s", err.messages)
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Every authentication failure looks the same to the caller
    @app.errorhandler(Unauthenticated)
    def handle_unauthenticated(err: Unauthenticated):
        logging.info("Authentication failed: %s", err.detail or err.__class__.__name__)
        return error_response(Unauthenticated.error, Unauthenticated.message, Unauthenticated.status)

    # Backend failures are logged in full and reported generically
    @app.errorhandler(BackendFailure)
    def handle_backend_failure(err: BackendFailure):
        logging.error("Backend failure: %s", err.detail, exc_info=err)
        return error_response(BackendFailure.error, BackendFailure.message, 500)

    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        return error_response(err.error, err.message, err.status)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(err: SQLAlchemyError):
        logging.exception("Database error", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        return error_response(err.name.upper().replace(" ", "_"), err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)
