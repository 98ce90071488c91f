"""
Common API utilities for consistent response formatting across all controllers.
"""

from typing import Any, Optional

from flask import jsonify, request

from petcare.core.exceptions import ValidationError


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


def error_response(code: str, message: str, status_code: int) -> tuple:
    return jsonify({"success": False, "error": code, "message": message}), status_code


def get_json_body() -> dict:
    """Return the request JSON object or raise ValidationError."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("invalid_body", "Request body must be a JSON object.")
    return payload
