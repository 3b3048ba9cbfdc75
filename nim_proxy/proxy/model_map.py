from types import MappingProxyType

from .config import NIM_DEFAULT_MODEL, NIM_MODEL_MAPPING
from .logger import logger

DEFAULT_NIM_MODEL = NIM_DEFAULT_MODEL

# Reported as the creation time of every listed model.
MODEL_CREATED = 1677610602
MODEL_OWNER = "openai"

_BUILTIN_MODEL_MAPPING = {
    "gpt-3.5-turbo": "meta/llama-3.1-8b-instruct",
    "gpt-4": "meta/llama-3.1-70b-instruct",
    "gpt-4-turbo": "meta/llama-3.1-405b-instruct",
    "gpt-4o": "meta/llama-3.1-405b-instruct",
    "gpt-4o-mini": "meta/llama-3.1-8b-instruct",
    "claude-3-opus": "meta/llama-3.1-405b-instruct",
    "claude-3-sonnet": "meta/llama-3.1-70b-instruct",
    "claude-3-haiku": "meta/llama-3.1-8b-instruct",
    "gemini-pro": "meta/llama-3.1-70b-instruct",
}


def _build_model_mapping(overrides):
    mapping = dict(_BUILTIN_MODEL_MAPPING)
    if not isinstance(overrides, dict):
        logger.warning("NIM_MODEL_MAPPING must be a JSON object; ignoring.")
        return mapping
    for name, backend in overrides.items():
        if not isinstance(backend, str) or not backend:
            logger.warning("Ignoring model mapping for %s: backend id must be a string.", name)
            continue
        mapping[name] = backend
    return mapping


MODEL_MAPPING = MappingProxyType(_build_model_mapping(NIM_MODEL_MAPPING))


def _resolve_model(name):
    """Map a client model name to a backend model id, falling back to the default."""
    if not isinstance(name, str):
        return DEFAULT_NIM_MODEL
    return MODEL_MAPPING.get(name) or DEFAULT_NIM_MODEL


def _model_list():
    return {
        "object": "list",
        "data": [
            {
                "id": name,
                "object": "model",
                "created": MODEL_CREATED,
                "owned_by": MODEL_OWNER,
            }
            for name in MODEL_MAPPING
        ],
    }
