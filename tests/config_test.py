import os
import unittest
from unittest.mock import patch

from crawler.config import GeoConfig, ALLOWED_DOMAINS, MAX_PAGES
from crawler.errors import ConfigurationError


class TestGeoConfig(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        config = GeoConfig.from_env()
        self.assertEqual(config.allowed_domains, ALLOWED_DOMAINS)
        self.assertEqual(config.max_pages, MAX_PAGES)
        self.assertIsNone(config.api_key)

    @patch.dict(os.environ, {
        "GEO_ALLOWED_DOMAINS": " Example-Allowed.test, other.test ,",
        "GEO_MAX_PAGES": "7",
        "GEO_MATCH_THRESHOLD": "0.75",
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_BASE_URL": "https://llm.example/v1/",
    }, clear=True)
    def test_environment_overrides(self):
        config = GeoConfig.from_env()
        self.assertEqual(config.allowed_domains, ("example-allowed.test", "other.test"))
        self.assertEqual(config.max_pages, 7)
        self.assertEqual(config.match_threshold, 0.75)
        self.assertEqual(config.api_base_url, "https://llm.example/v1")
        config.require_credentials()

    def test_api_key_is_hidden_from_repr(self):
        self.assertNotIn("sk-secret", repr(GeoConfig(api_key="sk-secret")))

    def test_missing_credentials(self):
        with self.assertRaises(ConfigurationError):
            GeoConfig(api_key=None).require_credentials()


if __name__ == "__main__":
    unittest.main()
