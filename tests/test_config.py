"""Tests for environment-driven settings and the error hierarchy."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from commitsight.config import DEFAULT_MODEL, Settings, load_settings
from commitsight.exceptions import (
    EmptyResponseError,
    InsightError,
    MalformedResponseError,
    MissingCredentialError,
    MissingParameterError,
    UpstreamError,
)

_KEYS = (
    "COMMITSIGHT_LLM_API_KEY",
    "OPENAI_API_KEY",
    "COMMITSIGHT_LLM_MODEL",
    "COMMITSIGHT_LLM_API_BASE",
    "COMMITSIGHT_LLM_TEMPERATURE",
    "COMMITSIGHT_LLM_MAX_TOKENS",
    "COMMITSIGHT_RESPONSE_LANGUAGE",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "COMMITSIGHT_FETCH_CONCURRENCY",
    "COMMITSIGHT_MAX_PAGES",
)


@pytest.fixture
def clean_env():
    with patch.dict(os.environ, {}, clear=False):
        for key in _KEYS:
            os.environ.pop(key, None)
        yield


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.llm_api_key is None
        assert settings.llm_model == DEFAULT_MODEL
        assert settings.llm_temperature == 0.7
        assert settings.llm_max_tokens == 4000
        assert settings.response_language == "English"
        assert settings.github_token is None
        assert settings.fetch_concurrency == 8
        assert settings.max_pages is None

    def test_overrides(self, clean_env):
        env = {
            "COMMITSIGHT_LLM_API_KEY": "sk-a",
            "COMMITSIGHT_LLM_MODEL": "openai/gpt-4o",
            "COMMITSIGHT_LLM_API_BASE": "https://llm.internal/v1",
            "COMMITSIGHT_LLM_TEMPERATURE": "0.1",
            "COMMITSIGHT_LLM_MAX_TOKENS": "2000",
            "COMMITSIGHT_RESPONSE_LANGUAGE": "Spanish",
            "GITHUB_TOKEN": "ghp_x",
            "COMMITSIGHT_FETCH_CONCURRENCY": "4",
            "COMMITSIGHT_MAX_PAGES": "5",
        }
        with patch.dict(os.environ, env):
            settings = load_settings()
        assert settings.llm_api_key == "sk-a"
        assert settings.llm_model == "openai/gpt-4o"
        assert settings.llm_api_base == "https://llm.internal/v1"
        assert settings.llm_temperature == 0.1
        assert settings.llm_max_tokens == 2000
        assert settings.response_language == "Spanish"
        assert settings.github_token == "ghp_x"
        assert settings.fetch_concurrency == 4
        assert settings.max_pages == 5

    def test_fallback_keys(self, clean_env):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-o", "GH_TOKEN": "gh"}):
            settings = load_settings()
        assert settings.llm_api_key == "sk-o"
        assert settings.github_token == "gh"

    def test_primary_key_wins(self, clean_env):
        env = {"COMMITSIGHT_LLM_API_KEY": "sk-c", "OPENAI_API_KEY": "sk-o"}
        with patch.dict(os.environ, env):
            assert load_settings().llm_api_key == "sk-c"

    def test_blank_key_ignored(self, clean_env):
        with patch.dict(os.environ, {"COMMITSIGHT_LLM_API_KEY": "  ", "OPENAI_API_KEY": "sk-o"}):
            assert load_settings().llm_api_key == "sk-o"

    def test_max_pages_zero_means_no_cap(self, clean_env):
        with patch.dict(os.environ, {"COMMITSIGHT_MAX_PAGES": "0"}):
            assert load_settings().max_pages is None

    def test_concurrency_at_least_one(self, clean_env):
        with patch.dict(os.environ, {"COMMITSIGHT_FETCH_CONCURRENCY": "0"}):
            assert load_settings().fetch_concurrency == 1

    def test_require_llm_api_key(self):
        assert Settings(llm_api_key="sk").require_llm_api_key() == "sk"
        with pytest.raises(MissingCredentialError):
            Settings().require_llm_api_key()


class TestErrorKinds:
    def test_kinds(self):
        cause = RuntimeError("x")
        errors = {
            MissingCredentialError("m"): "missing_credential",
            MissingParameterError(["owner"]): "missing_parameter",
            EmptyResponseError("e"): "empty_response",
            MalformedResponseError("bad"): "malformed_response",
            UpstreamError("model client", cause): "upstream_failure",
        }
        for err, kind in errors.items():
            assert isinstance(err, InsightError)
            assert err.kind == kind

    def test_malformed_keeps_content(self):
        err = MalformedResponseError("not json", "hello there")
        assert err.reason == "not json"
        assert err.content == "hello there"
        assert "hello there" in str(err)

    def test_upstream_message_names_cause(self):
        err = UpstreamError("commit source", ValueError("boom"))
        assert str(err) == "commit source failed: ValueError: boom"
