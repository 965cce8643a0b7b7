"""Flask error handlers rendering login flow errors as JSON."""

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

from openid_login.exceptions import LoginFlowException

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Map the exception taxonomy onto HTTP responses."""

    @app.errorhandler(LoginFlowException)
    def handle_login_flow_exception(error: LoginFlowException) -> tuple[Response, int]:
        logger.info(
            "Request failed with %s (%d): %s",
            error.error_code,
            error.status_code,
            error.message,
        )
        return jsonify({"error": error.message, "code": error.error_code}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": error.description, "code": error.name.upper().replace(" ", "_")}), error.code

    @app.errorhandler(Exception)
    def handle_generic_exception(error: Exception) -> tuple[Response, int]:
        logger.exception("Unhandled error: %s", str(error))
        return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
