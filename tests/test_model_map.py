"""Tests for the client-to-backend model table."""
import unittest

from nim_proxy.proxy.model_map import (
    DEFAULT_NIM_MODEL,
    MODEL_MAPPING,
    _model_list,
    _resolve_model,
)


class TestResolveModel(unittest.TestCase):
    def test_known_names_map_to_backend(self):
        self.assertEqual(_resolve_model("gpt-4"), "meta/llama-3.1-70b-instruct")
        self.assertEqual(_resolve_model("gpt-3.5-turbo"), "meta/llama-3.1-8b-instruct")
        self.assertEqual(_resolve_model("gpt-4o"), "meta/llama-3.1-405b-instruct")
        for name, backend in MODEL_MAPPING.items():
            self.assertEqual(_resolve_model(name), backend)

    def test_unknown_names_fall_back(self):
        for name in ["foo-bar", "", "GPT-4", "Gpt-4o", "4", "1234", " gpt-4"]:
            self.assertEqual(_resolve_model(name), DEFAULT_NIM_MODEL, name)

    def test_non_string_falls_back(self):
        self.assertEqual(_resolve_model(None), DEFAULT_NIM_MODEL)
        self.assertEqual(_resolve_model(42), DEFAULT_NIM_MODEL)
        self.assertEqual(_resolve_model(["gpt-4"]), DEFAULT_NIM_MODEL)

    def test_mapping_is_read_only(self):
        with self.assertRaises(TypeError):
            MODEL_MAPPING["gpt-4"] = "other"


class TestModelList(unittest.TestCase):
    def test_lists_every_client_name(self):
        listing = _model_list()
        self.assertEqual(listing["object"], "list")
        ids = [item["id"] for item in listing["data"]]
        self.assertEqual(ids, list(MODEL_MAPPING))
        for item in listing["data"]:
            self.assertEqual(item["object"], "model")
            self.assertEqual(item["owned_by"], "openai")
            self.assertIsInstance(item["created"], int)


if __name__ == "__main__":
    unittest.main()
