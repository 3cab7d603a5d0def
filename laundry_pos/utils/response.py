# -*- coding: utf-8 -*-
"""
Laundry POS - Standard Response Formatter
=========================================

Provides consistent response formatting for print bridge endpoints.

Standard response format:
{
    "message": <data>,        # Main response data
    "exc": None|str,          # Exception type if error
    "error": None|str,        # Machine readable error code
    "success": True|False,    # Success flag
    "_server_messages": []    # Log-friendly messages
}

Usage:
    from laundry_pos.utils.response import success_response, printer_error_response

    @app.route('/status')
    def status():
        return jsonify(success_response(manager.status()))

    if not manager.print_receipt(transaction):
        body, status = printer_error_response(manager.last_error)
        return jsonify(body), status
"""

import logging

from laundry_pos.printer.errors import PrinterError

logger = logging.getLogger(__name__)


def success_response(data, message=None):
    """
    Standard success response format

    Args:
        data: Response data (returned as ``message`` to the client)
        message: Optional human-readable success message

    Returns:
        dict: Standard response object
    """
    response = {
        "message": data,
        "exc": None,
        "error": None,
        "success": True,
        "_server_messages": [message] if message else [],
    }

    if message:
        logger.info(f"[laundry_pos][response] Success: {message}")
    else:
        logger.debug("[laundry_pos][response] Success (no message)")

    return response


def error_response(message, exc_type="ValidationError", http_status=400, error_code=None):
    """
    Standard error response format

    Args:
        message: Human-readable error message
        exc_type: Exception type string (ValidationError, NotFoundError, etc.)
        http_status: HTTP status code (default: 400)
        error_code: Machine readable code, defaults to ``exc_type``

    Returns:
        tuple: (response dict, http status) ready for ``jsonify``
    """
    response = {
        "message": None,
        "exc": exc_type,
        "error": error_code or exc_type,
        "success": False,
        "_server_messages": [message],
    }

    logger.error(f"[laundry_pos][response] Error {http_status}: {message} ({exc_type})")

    return response, http_status


def validation_error(message):
    """Standard validation error (400 Bad Request)"""
    logger.warning(f"[laundry_pos][response] Validation error: {message}")
    return error_response(message, "ValidationError", 400, "invalid_input")


def auth_error(message="Authentication required"):
    """Standard authentication error (401 Unauthorized)"""
    logger.warning(f"[laundry_pos][response] Auth error: {message}")
    return error_response(message, "AuthenticationError", 401, "unauthorized")


def printer_error_response(error):
    """
    Map a printer failure to an error response.

    Args:
        error: The manager's ``last_error``. ``None`` is treated as an
            unexplained failure.

    Returns:
        tuple: (response dict, http status)
    """
    if not isinstance(error, PrinterError):
        return error_response("Printer operation failed", "PrinterError", 500, "printer_error")

    return error_response(error.message, error.__class__.__name__, error.http_status, error.code)
