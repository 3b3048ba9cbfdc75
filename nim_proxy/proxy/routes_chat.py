import time
import uuid

from flask import Response, g, jsonify, request, stream_with_context

from .client import _create_chat_completion, _open_chat_completion_stream
from .errors import _error, _handle_upstream_error
from .logger import logger
from .logging_utils import _log_payload
from .normalize import _build_upstream_payload, _upstream_to_chat_completion
from .streaming import _safe_stream, _stream_chat_sse


def _validate_chat_payload(payload):
    model = payload.get("model")
    if not model or not isinstance(model, str):
        return _error("you must provide a model parameter", param="model")
    messages = payload.get("messages")
    if not messages or not isinstance(messages, list):
        return _error("messages is required and must be a non-empty array", param="messages")
    return None


def register_chat_routes(app):
    @app.post("/v1/chat/completions")
    def create_chat_completion():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        _log_payload("incoming.raw", payload)
        invalid = _validate_chat_payload(payload)
        if invalid:
            return invalid

        model = payload["model"]
        upstream_payload = _build_upstream_payload(payload)
        stream = upstream_payload["stream"]
        _log_payload("outgoing.payload", upstream_payload)
        try:
            if stream:
                upstream = _open_chat_completion_stream(upstream_payload)
            else:
                data = _create_chat_completion(upstream_payload)
        except Exception as exc:
            logger.exception("Upstream error on /v1/chat/completions.")
            return _handle_upstream_error(exc)

        if not stream:
            _log_payload("upstream.response", data)
            return jsonify(_upstream_to_chat_completion(model, data))

        request_id = getattr(g, "request_id", uuid.uuid4().hex)
        start_time = getattr(g, "start_time", time.time())
        safe_stream = _safe_stream(
            _stream_chat_sse(upstream, model),
            request_id,
            start_time,
            request.method,
            request.path,
        )
        response = Response(
            stream_with_context(safe_stream),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )
        # Covers a client that disconnects before the first chunk is pulled.
        response.call_on_close(upstream.close)
        return response
