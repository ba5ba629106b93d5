"""
Translation of core exceptions into the panel's JSON error envelope.
"""

from flask import jsonify
from pydantic import ValidationError

from kilocam.core.actions import ConfirmationRequired
from kilocam.core.device import DeviceError, DeviceUnavailableError
from kilocam.core.downloads import NothingToDownload

# Exceptions a route answers with an error envelope instead of a 500
HANDLED_ERRORS = (DeviceError, ConfirmationRequired, NothingToDownload, ValueError)


def handle_validation_error(e: ValidationError):
    """Standardized validation error response."""
    first = e.errors()[0]
    field = ".".join(str(i) for i in first["loc"]) or "body"
    return (
        jsonify(
            {
                "status": "error",
                "error_code": "INVALID_ARGUMENT",
                "message": f"{field}: {first['msg']}",
            }
        ),
        422,
    )


def error_response(e: Exception, extra: dict = None):
    if isinstance(e, ValidationError):
        return handle_validation_error(e)

    if isinstance(e, ConfirmationRequired):
        code, status, message = e.error_code, 409, e.prompt
    elif isinstance(e, NothingToDownload):
        code, status, message = e.error_code, 404, str(e)
    elif isinstance(e, DeviceUnavailableError):
        code, status, message = e.error_code, 503, str(e)
    elif isinstance(e, DeviceError):
        code, status, message = e.error_code, 502, str(e)
    else:
        code, status, message = "BAD_REQUEST", 400, str(e)

    body = {"status": "error", "error_code": code, "message": message}
    body.update(extra or {})
    return jsonify(body), status
