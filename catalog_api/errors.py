import logging

from flask import jsonify
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised by shared helpers and rendered as a JSON envelope."""

    def __init__(self, message: str, status_code: int = 400, **extra):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.extra = extra

    def to_dict(self):
        payload = {"error": self.message}
        payload.update(self.extra)
        return payload


def register_error_handlers(app):
    """
    Attach JSON error handlers to the application.

    Args:
        app (Flask): Application instance.
    """

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(DuplicateKeyError)
    def handle_duplicate_key(error: DuplicateKeyError):
        logger.info("Duplicate key rejected: %s", error)
        return jsonify({"error": "A record with the same unique value already exists"}), 400

    @app.errorhandler(PyMongoError)
    def handle_datastore_error(error: PyMongoError):
        logger.exception("Datastore error")
        return jsonify({"error": "Internal server error", "message": str(error)}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "message": str(error)}), 500
