"""Tests for configuration validation."""

import pytest

from scriptarch.config import Config
from scriptarch.errors import MissingApiKey
from scriptarch.services.gemini import GeminiClient

from conftest import FakeGenaiClient


def test_validate_required_uses_configured_key():
    Config(gemini_api_key="valid-key").validate_required()

    with pytest.raises(MissingApiKey):
        Config(gemini_api_key="").validate_required()


def test_validate_required_prefers_explicit_key():
    Config(gemini_api_key="").validate_required("valid-key")

    with pytest.raises(MissingApiKey):
        Config(gemini_api_key="").validate_required("abc")


def test_gemini_client_rejects_short_key():
    with pytest.raises(MissingApiKey):
        GeminiClient(api_key="abc", client=FakeGenaiClient())


def test_validate_remote_required_names_missing_setting():
    with pytest.raises(ValueError, match="GOOGLE_CLOUD_PROJECT"):
        Config(google_cloud_project="").validate_remote_required()

    Config(google_cloud_project="demo-project").validate_remote_required()


def test_validate_routes_requires_url_placeholder():
    Config(proxy_routes=["https://proxy.test/?{url}"]).validate_routes()

    with pytest.raises(ValueError):
        Config(proxy_routes=["https://proxy.test/"]).validate_routes()


def test_missing_api_key_message_follows_language(monkeypatch):
    from scriptarch.config import config

    monkeypatch.setattr(config, "language", "vi")
    assert MissingApiKey().message == "Chưa cấu hình GEMINI_API_KEY"
