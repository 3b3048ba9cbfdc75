import json
import os

from .logger import logger


def _load_dotenv():
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
    dotenv_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(dotenv_path):
        return
    try:
        with open(dotenv_path, "r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                if stripped.startswith("export "):
                    stripped = stripped[7:].strip()
                if "=" not in stripped:
                    logger.warning("Skipping invalid .env line: %s", stripped)
                    continue
                key, value = stripped.split("=", 1)
                key = key.strip()
                value = value.strip()
                if not key:
                    continue
                if len(value) >= 2 and value[0] == value[-1] and value[0] in {"\"", "'"}:
                    value = value[1:-1]
                os.environ.setdefault(key, value)
    except OSError as exc:
        logger.warning("Failed to load .env file %s: %s", dotenv_path, exc)


def _bool_env(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _int_env(name, default):
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning("Invalid integer in %s, using %s.", name, default)
        return default


def _float_env(name, default=None):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number in %s, using default.", name)
        return default


def _json_env(name, default):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON in %s, using default.", name)
        return default


def _normalize_base_url(base_url):
    trimmed = base_url.rstrip("/")
    if not trimmed.endswith("/v1"):
        trimmed = f"{trimmed}/v1"
    return trimmed


_load_dotenv()

PORT = _int_env("PORT", 3000)
PROXY_HOST = os.getenv("PROXY_HOST", "0.0.0.0")
SERVICE_NAME = os.getenv("PROXY_SERVICE_NAME", "OpenAI-Compatible NVIDIA NIM Proxy")

NIM_API_KEY = os.getenv("NIM_API_KEY")
NIM_API_BASE = _normalize_base_url(
    os.getenv("NIM_API_BASE", "https://integrate.api.nvidia.com/v1")
)
# Unset means the upstream call may wait indefinitely.
NIM_TIMEOUT = _float_env("NIM_TIMEOUT")
NIM_MAX_RETRIES = _int_env("NIM_MAX_RETRIES", 0)
NIM_DEFAULT_MODEL = os.getenv("NIM_DEFAULT_MODEL") or "meta/llama-3.1-70b-instruct"
NIM_MODEL_MAPPING = _json_env("NIM_MODEL_MAPPING", {})

LOG_MAX_CHARS = _int_env("PROXY_LOG_MAX_CHARS", 2000)
LOG_PAYLOADS = _bool_env("PROXY_LOG_PAYLOADS", False)
LOG_PAYLOAD_MAX_CHARS = _int_env("PROXY_LOG_PAYLOAD_MAX_CHARS", 4000)
LOG_PAYLOAD_MAX_ITEMS = _int_env("PROXY_LOG_PAYLOAD_MAX_ITEMS", 50)
LOG_PAYLOAD_MAX_DEPTH = _int_env("PROXY_LOG_PAYLOAD_MAX_DEPTH", 6)
LOG_STREAM_EVENTS = _bool_env("PROXY_LOG_STREAM_EVENTS", False)
