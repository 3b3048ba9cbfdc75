import time
import uuid

from .model_map import _resolve_model

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048
DEFAULT_FINISH_REASON = "stop"


def _completion_id():
    # uuid1 is time based, so rapid successive requests still get distinct ids.
    return f"chatcmpl-{uuid.uuid1().hex}"


def _build_upstream_payload(payload):
    temperature = payload.get("temperature")
    return {
        "model": _resolve_model(payload.get("model")),
        "messages": payload.get("messages"),
        "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        "max_tokens": payload.get("max_tokens") or DEFAULT_MAX_TOKENS,
        "stream": bool(payload.get("stream", False)),
    }


def _content_to_text(content):
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        if "text" in content:
            return str(content.get("text") or "")
        if "content" in content:
            return str(content.get("content") or "")
        return ""
    if isinstance(content, list):
        return "".join(_content_to_text(item) for item in content)
    return str(content)


def _first_choice(data):
    if not isinstance(data, dict):
        return {}
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return {}
    choice = choices[0]
    return choice if isinstance(choice, dict) else {}


def _token_count(value):
    if isinstance(value, bool):
        return 0
    try:
        count = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _upstream_usage_to_chat(usage):
    if not isinstance(usage, dict):
        usage = {}
    return {
        "prompt_tokens": _token_count(usage.get("prompt_tokens")),
        "completion_tokens": _token_count(usage.get("completion_tokens")),
        "total_tokens": _token_count(usage.get("total_tokens")),
    }


def _upstream_to_chat_completion(model, data):
    """Rebuild a chat.completion envelope from an upstream body.

    Missing or malformed pieces of the upstream body fall back to defaults,
    and ``model`` is the name the client asked for, never the backend id.
    """
    choice = _first_choice(data)
    message = choice.get("message")
    if not isinstance(message, dict):
        message = {}
    usage = data.get("usage") if isinstance(data, dict) else None
    return {
        "id": _completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": _content_to_text(message.get("content")),
                },
                "finish_reason": choice.get("finish_reason") or DEFAULT_FINISH_REASON,
            }
        ],
        "usage": _upstream_usage_to_chat(usage),
    }
