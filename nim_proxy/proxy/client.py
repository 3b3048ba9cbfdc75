from openai import OpenAI

from .config import NIM_API_BASE, NIM_API_KEY, NIM_MAX_RETRIES, NIM_TIMEOUT

CLIENT_CACHE = {}


def _get_client(api_key):
    client = CLIENT_CACHE.get(api_key)
    if client is None:
        client = OpenAI(
            api_key=api_key,
            base_url=NIM_API_BASE,
            timeout=NIM_TIMEOUT,
            max_retries=NIM_MAX_RETRIES,
        )
        CLIENT_CACHE[api_key] = client
    return client


def _resolve_upstream_key():
    if NIM_API_KEY:
        return NIM_API_KEY
    raise ValueError("NIM_API_KEY is not set.")


def _create_chat_completion(payload):
    """POST the payload upstream and return the decoded JSON body as-is."""
    client = _get_client(_resolve_upstream_key())
    raw = client.chat.completions.with_raw_response.create(**payload)
    return raw.http_response.json()


def _open_chat_completion_stream(payload):
    """POST a streaming request and return the live upstream response.

    Status errors are raised here, before any body bytes are read. The caller
    owns the returned response and must close() it.
    """
    client = _get_client(_resolve_upstream_key())
    # Entering sends the request; upstream.close() stands in for __exit__.
    return client.chat.completions.with_streaming_response.create(**payload).__enter__()
