import json
import time

from flask import g, request

from .config import (
    LOG_MAX_CHARS,
    LOG_PAYLOAD_MAX_CHARS,
    LOG_PAYLOAD_MAX_DEPTH,
    LOG_PAYLOAD_MAX_ITEMS,
    LOG_PAYLOADS,
    LOG_STREAM_EVENTS,
)
from .logger import logger


def _truncate_log(value, limit=None):
    if value is None:
        return ""
    limit = LOG_MAX_CHARS if limit is None else limit
    text = value if isinstance(value, str) else str(value)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...<truncated>"


def _summarize_payload(value, depth=0):
    """Shrink a JSON-like value for logging.

    Strings are truncated, containers are capped at LOG_PAYLOAD_MAX_ITEMS
    entries and nesting stops at LOG_PAYLOAD_MAX_DEPTH.
    """
    if depth >= LOG_PAYLOAD_MAX_DEPTH:
        return "<max_depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, bytes):
        return f"<bytes:{len(value)}>"
    if isinstance(value, dict):
        summarized = {}
        for idx, (key, val) in enumerate(value.items()):
            if idx >= LOG_PAYLOAD_MAX_ITEMS:
                summarized["<truncated_keys>"] = len(value) - LOG_PAYLOAD_MAX_ITEMS
                break
            summarized[str(key)] = _summarize_payload(val, depth + 1)
        return summarized
    if isinstance(value, (list, tuple)):
        summarized = [_summarize_payload(item, depth + 1) for item in value[:LOG_PAYLOAD_MAX_ITEMS]]
        if len(value) > LOG_PAYLOAD_MAX_ITEMS:
            summarized.append(f"<truncated_items:{len(value) - LOG_PAYLOAD_MAX_ITEMS}>")
        return summarized
    return _truncate_log(value, LOG_PAYLOAD_MAX_CHARS)


def _dump_summary(payload):
    summarized = _summarize_payload(payload)
    try:
        text = json.dumps(summarized, ensure_ascii=False)
    except (TypeError, ValueError):
        text = str(summarized)
    return _truncate_log(text, LOG_PAYLOAD_MAX_CHARS)


def _log_payload(label, payload):
    if LOG_PAYLOADS:
        logger.info("%s=%s", label, _dump_summary(payload))


def _log_stream_event(label, payload):
    if LOG_STREAM_EVENTS:
        logger.info("event.%s=%s", label, _dump_summary(payload))


def _log_request_complete(status_code, stream=False):
    start_time = getattr(g, "start_time", None)
    duration_ms = (time.time() - start_time) * 1000.0 if start_time else 0.0
    logger.info(
        "request.complete request_id=%s method=%s path=%s status=%s duration_ms=%.2f stream=%s",
        getattr(g, "request_id", None),
        request.method,
        request.path,
        status_code,
        duration_ms,
        stream,
    )
