import codecs
import json
import time

from .logger import logger
from .logging_utils import _log_stream_event, _truncate_log
from .normalize import _completion_id, _content_to_text, _first_choice

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"
DONE = object()


def _chat_completion_chunk(response_id, model, created, delta, finish_reason=None):
    return {
        "id": response_id,
        "object": "chat.completion.chunk",
        "created": created,
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": delta,
                "finish_reason": finish_reason,
            }
        ],
    }


def _format_sse(record):
    if record is DONE:
        return f"{DATA_PREFIX}{DONE_TOKEN}\n\n"
    return f"{DATA_PREFIX}{json.dumps(record)}\n\n"


class StreamReframer:
    """Turns raw upstream SSE bytes into chat.completion.chunk records.

    Transport chunks may split a line anywhere, including inside a multi-byte
    character. Only complete lines are processed; the unterminated tail stays
    in ``buffer`` until the next feed. Records are either chunk dicts or the
    ``DONE`` sentinel, which is produced at most once; repeated sentinel lines
    are dropped while other data lines keep flowing.
    """

    def __init__(self, model):
        self.model = model
        self.response_id = _completion_id()
        self.created = int(time.time())
        self.buffer = ""
        self.done = False
        self.parse_errors = 0
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk):
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self.buffer += chunk
        lines = self.buffer.split("\n")
        self.buffer = lines.pop()
        records = []
        for line in lines:
            record = self._process_line(line)
            if record is not None:
                records.append(record)
        return records

    def finish(self):
        # Whatever is left in the buffer never got its newline and is dropped.
        if self.buffer:
            logger.debug("Dropping unterminated stream line: %s", _truncate_log(self.buffer))
            self.buffer = ""
        if self.done:
            return []
        self.done = True
        return [DONE]

    def _process_line(self, line):
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):]
        if DONE_TOKEN in data:
            if self.done:
                return None
            self.done = True
            return DONE
        try:
            event = json.loads(data)
        except json.JSONDecodeError as exc:
            self.parse_errors += 1
            logger.warning("Stream parse error: %s line=%s", exc, _truncate_log(data))
            return None
        return self._to_chunk(event)

    def _to_chunk(self, event):
        choice = _first_choice(event)
        upstream_delta = choice.get("delta")
        if not isinstance(upstream_delta, dict):
            upstream_delta = {}
        delta = {}
        role = upstream_delta.get("role")
        if isinstance(role, str) and role:
            delta["role"] = role
        delta["content"] = _content_to_text(upstream_delta.get("content"))
        return _chat_completion_chunk(
            self.response_id,
            self.model,
            self.created,
            delta,
            finish_reason=choice.get("finish_reason") or None,
        )


def _stream_chat_sse(upstream, model):
    """Yield SSE frames for the client while reading the upstream byte stream.

    A transport failure ends the stream without a sentinel or an error frame.
    The upstream response is closed on every exit path, including the client
    going away and the WSGI server closing this generator.
    """
    reframer = StreamReframer(model)
    try:
        for chunk in upstream.iter_bytes():
            for record in reframer.feed(chunk):
                _log_stream_event("chunk", "[DONE]" if record is DONE else record)
                yield _format_sse(record)
        for record in reframer.finish():
            yield _format_sse(record)
    finally:
        upstream.close()
        if reframer.parse_errors:
            logger.warning("Stream finished with %s unparseable lines.", reframer.parse_errors)


def _safe_stream(generator, request_id, start_time, method, path):
    status = 200
    try:
        for chunk in generator:
            yield chunk
    except GeneratorExit:
        status = 499
        logger.info(
            "Stream client disconnect request_id=%s method=%s path=%s",
            request_id,
            method,
            path,
        )
        raise
    except Exception:
        status = 502
        logger.exception(
            "Stream error request_id=%s method=%s path=%s",
            request_id,
            method,
            path,
        )
    finally:
        generator.close()
        duration_ms = (time.time() - start_time) * 1000.0 if start_time else 0.0
        logger.info(
            "request.complete request_id=%s method=%s path=%s status=%s duration_ms=%.2f stream=True",
            request_id,
            method,
            path,
            status,
            duration_ms,
        )
