"""Test configuration helpers."""

import pytest

from listing_web import config
from listing_web.config import ConfigurationError, require_api_key


class TestRequireApiKey:
    def test_missing_key_fails_fast(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            require_api_key()

    def test_blank_key_fails_fast(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")
        with pytest.raises(ConfigurationError):
            require_api_key()

    def test_returns_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert require_api_key() == "sk-test"


def test_defaults():
    assert config.SAVED_PRODUCT_KEY == "savedProductData"
    assert config.JSON_EXTRACTION_STRATEGY in ("greedy", "fenced")
    assert config.MAX_IMAGE_SIZE > 0
