import pytest

from portfolio_core.providers import create_provider
from portfolio_core.providers.gemini_client import GeminiClient
from portfolio_core.providers.registry import get_provider_config


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "gemini"
        gemini_api_key = "g-test-key-123"
        http_timeout = 1.0
        gemini_base_url = "https://gemini.test/v1beta"

    monkeypatch.setattr("portfolio_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, GeminiClient)


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("openai")


def test_provider_config_lookup_is_case_insensitive():
    assert get_provider_config("GEMINI").name == "gemini"


def test_create_provider_name_is_case_insensitive():
    assert isinstance(create_provider("Gemini"), GeminiClient)
