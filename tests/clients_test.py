import unittest
from unittest.mock import MagicMock

import requests

from crawler.errors import ParseFailed, UpstreamServiceError
from engine.client import CompletionClient
from playbook.embedder import EmbeddingClient


def response(status=200, body=None, text=""):
    mock = MagicMock()
    mock.ok = 200 <= status < 300
    mock.status_code = status
    mock.reason = "Error"
    mock.text = text
    if isinstance(body, Exception):
        mock.json.side_effect = body
    else:
        mock.json.return_value = body
    return mock


def chat(content):
    return {"choices": [{"message": {"content": content}}]}


class TestCompletionClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.session.headers = {}
        self.client = CompletionClient("sk-test", "https://llm.example/v1/", "model-x", max_tokens=123,
                                       session=self.session)

    def test_free_text_request(self):
        self.session.post.return_value = response(body=chat("hello"))

        self.assertEqual(self.client.complete([{"role": "user", "content": "hi"}]), "hello")

        url = self.session.post.call_args[0][0]
        payload = self.session.post.call_args[1]["json"]
        self.assertEqual(url, "https://llm.example/v1/chat/completions")
        self.assertEqual(payload["model"], "model-x")
        self.assertEqual(payload["max_completion_tokens"], 123)
        self.assertNotIn("response_format", payload)
        self.assertEqual(self.session.headers["Authorization"], "Bearer sk-test")

    def test_json_mode(self):
        self.session.post.return_value = response(body=chat('```json\n{"a": 1}\n```'))

        self.assertEqual(self.client.complete_json([]), {"a": 1})
        payload = self.session.post.call_args[1]["json"]
        self.assertEqual(payload["response_format"], {"type": "json_object"})

    def test_non_object_json_is_parse_failure(self):
        self.session.post.return_value = response(body=chat("[1, 2]"))
        with self.assertRaises(ParseFailed):
            self.client.complete_json([])

        self.session.post.return_value = response(body=chat("not json at all"))
        with self.assertRaises(ParseFailed):
            self.client.complete_json([])

    def test_http_error(self):
        self.session.post.return_value = response(status=401, text="invalid key")
        with self.assertRaises(UpstreamServiceError) as ctx:
            self.client.complete([])
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.service, "completion")

    def test_transport_error(self):
        self.session.post.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(UpstreamServiceError):
            self.client.complete([])

    def test_malformed_body(self):
        self.session.post.return_value = response(body={"choices": []})
        with self.assertRaises(UpstreamServiceError):
            self.client.complete([])


class TestEmbeddingClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.session.headers = {}
        self.client = EmbeddingClient("sk-test", "https://llm.example/v1", "embed-x", session=self.session)

    def test_embed(self):
        self.session.post.return_value = response(body={"data": [{"embedding": [1, 0.5]}]})

        self.assertEqual(self.client.embed("text"), [1.0, 0.5])
        self.session.post.assert_called_once_with(
            "https://llm.example/v1/embeddings", json={"model": "embed-x", "input": "text"}
        )

    def test_failures(self):
        self.session.post.return_value = response(status=500, text="boom")
        with self.assertRaises(UpstreamServiceError):
            self.client.embed("text")

        self.session.post.return_value = response(body=ValueError("no json"))
        with self.assertRaises(UpstreamServiceError):
            self.client.embed("text")

    def test_malformed_vectors_are_upstream_errors(self):
        for embedding in (None, ["x", 1.0], []):
            self.session.post.return_value = response(body={"data": [{"embedding": embedding}]})
            with self.assertRaises(UpstreamServiceError):
                self.client.embed("text")


if __name__ == "__main__":
    unittest.main()
