import json

from flask import jsonify

INVALID_REQUEST_ERROR = "invalid_request_error"
DEFAULT_ERROR_MESSAGE = "Internal server error"


def _error_payload(message, error_type=INVALID_REQUEST_ERROR, code=None, param=None):
    return {
        "error": {
            "message": message,
            "type": error_type,
            "param": param,
            "code": code,
        }
    }


def _error(message, status=400, error_type=INVALID_REQUEST_ERROR, code=None, param=None):
    payload = _error_payload(message, error_type=error_type, code=code, param=param)
    return jsonify(payload), status


def _upstream_message(body):
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body.strip() or None
    if not isinstance(body, dict):
        return None
    nested = body.get("error")
    if isinstance(nested, dict) and nested.get("message"):
        return str(nested["message"])
    if isinstance(nested, str) and nested:
        return nested
    if body.get("message"):
        return str(body["message"])
    if body.get("detail"):
        return str(body["detail"])
    return None


def _upstream_error_payload(error):
    """Build the client-facing envelope for a failed upstream call.

    Reuses the upstream status and message when the error carries them.
    """
    status = getattr(error, "status_code", None)
    if not isinstance(status, int) or status < 400:
        status = 500
    message = (
        _upstream_message(getattr(error, "body", None))
        or getattr(error, "message", None)
        or str(error)
        or DEFAULT_ERROR_MESSAGE
    )
    return _error_payload(message, code=status), status


def _handle_upstream_error(error):
    payload, status = _upstream_error_payload(error)
    return jsonify(payload), status
