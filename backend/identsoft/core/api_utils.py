"""
Common API utilities for consistent response formatting across all controllers.
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .exceptions import ClinicError, StoreError

logger = logging.getLogger(__name__)


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code

    Returns:
        Tuple of (json_response, status_code)
    """
    response = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def get_json_body() -> Dict[str, Any]:
    """Return the request's JSON object, or an empty dict for a missing or
    non-object body (DTO validation then reports the missing fields)."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def register_error_handlers(app: Flask) -> None:
    """Map the domain error taxonomy onto HTTP responses."""

    @app.errorhandler(ClinicError)
    def handle_clinic_error(error: ClinicError):
        context = error.to_context()
        log_context = {**context, "path": request.path, "method": request.method}
        if isinstance(error, StoreError):
            logger.error(
                "Store failure",
                extra={"context": log_context},
                exc_info=error.__cause__ is not None,
            )
        else:
            logger.info(
                f"Request rejected: {error.message}",
                extra={"context": log_context},
            )
        return api_response(False, error.message, {"error": context}, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return api_response(
            False,
            error.description or error.name,
            {"error": {"code": error.name.lower().replace(" ", "_")}},
            error.code or 500,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(
            "Unhandled error",
            extra={
                "context": {
                    "path": request.path,
                    "method": request.method,
                    "error": str(error),
                }
            },
            exc_info=True,
        )
        return api_response(
            False, "Internal server error", {"error": {"code": "internal_error"}}, 500
        )
