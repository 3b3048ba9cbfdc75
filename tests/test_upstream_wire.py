"""End-to-end tests of the request the proxy sends upstream."""
import json
import unittest
from unittest import mock

import httpx
from openai import OpenAI

from nim_proxy.app import create_app
from nim_proxy.proxy import client

API_KEY = "nvapi-test-key"
BASE_URL = "https://nim.test/v1"
MESSAGES = [{"role": "user", "content": "hi"}]

STREAM_BODY = (
    b'data: {"choices":[{"index":0,"delta":{"role":"assistant","content":"Hel"}}]}\n\n'
    b'data: {"choices":[{"index":0,"delta":{"content":"lo"},"finish_reason":"stop"}]}\n\n'
    b"data: [DONE]\n\n"
)


class UpstreamWireTestCase(unittest.TestCase):
    def setUp(self):
        self.requests = []
        self.reply = None
        http_client = httpx.Client(transport=httpx.MockTransport(self._handle))
        client.CLIENT_CACHE.clear()
        client.CLIENT_CACHE[API_KEY] = OpenAI(
            api_key=API_KEY,
            base_url=BASE_URL,
            max_retries=0,
            http_client=http_client,
        )
        key_patch = mock.patch.object(client, "NIM_API_KEY", API_KEY)
        key_patch.start()
        self.addCleanup(key_patch.stop)
        self.addCleanup(client.CLIENT_CACHE.clear)
        self.app_client = create_app().test_client()

    def _handle(self, request):
        self.requests.append(request)
        return self.reply

    def _sent(self):
        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), f"{BASE_URL}/chat/completions")
        self.assertEqual(request.headers["authorization"], f"Bearer {API_KEY}")
        return json.loads(request.content)

    def test_buffered_request(self):
        self.reply = httpx.Response(
            200,
            json={
                "choices": [{"message": {"role": "assistant", "content": "hello"}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
            },
        )
        resp = self.app_client.post("/v1/chat/completions", json={"model": "gpt-4", "messages": MESSAGES})

        body = self._sent()
        self.assertEqual(body["model"], "meta/llama-3.1-70b-instruct")
        self.assertEqual(body["messages"], MESSAGES)
        self.assertEqual(body["temperature"], 0.7)
        self.assertEqual(body["max_tokens"], 2048)
        self.assertFalse(body.get("stream", False))

        self.assertEqual(resp.status_code, 200)
        result = resp.get_json()
        self.assertEqual(result["model"], "gpt-4")
        self.assertEqual(result["choices"][0]["message"]["content"], "hello")
        self.assertEqual(result["usage"]["total_tokens"], 4)

    def test_streaming_request(self):
        self.reply = httpx.Response(200, headers={"content-type": "text/event-stream"}, content=STREAM_BODY)
        resp = self.app_client.post(
            "/v1/chat/completions",
            json={"model": "gpt-4o-mini", "messages": MESSAGES, "stream": True},
        )
        text = resp.get_data(as_text=True)

        body = self._sent()
        self.assertEqual(body["model"], "meta/llama-3.1-8b-instruct")
        self.assertIs(body["stream"], True)

        self.assertEqual(resp.mimetype, "text/event-stream")
        frames = [frame for frame in text.split("\n\n") if frame]
        self.assertEqual(frames[-1], "data: [DONE]")
        self.assertEqual(frames.count("data: [DONE]"), 1)
        chunks = [json.loads(frame[len("data: "):]) for frame in frames[:-1]]
        self.assertEqual([c["choices"][0]["delta"] for c in chunks], [
            {"role": "assistant", "content": "Hel"},
            {"content": "lo"},
        ])
        self.assertTrue(all(c["model"] == "gpt-4o-mini" for c in chunks))

    def test_upstream_client_error(self):
        self.reply = httpx.Response(429, json={"error": {"message": "rate limited"}})
        resp = self.app_client.post("/v1/chat/completions", json={"model": "gpt-4", "messages": MESSAGES})

        self._sent()
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(
            resp.get_json(),
            {"error": {"message": "rate limited", "type": "invalid_request_error", "param": None, "code": 429}},
        )

    def test_streaming_upstream_error_is_json(self):
        self.reply = httpx.Response(401, json={"error": {"message": "bad key"}})
        resp = self.app_client.post(
            "/v1/chat/completions",
            json={"model": "gpt-4", "messages": MESSAGES, "stream": True},
        )

        self._sent()
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.mimetype, "application/json")
        self.assertEqual(resp.get_json()["error"]["message"], "bad key")


if __name__ == "__main__":
    unittest.main()
